"""
Entry point for `python -m media_roller` and the `media-roller` script.

Errors that escape the CLI are rendered as a Rich panel with suggestions; the
full traceback is only logged at debug level (`-vv`).
"""

import asyncio
import logging
import sys

import typer
from rich.console import Console

from media_roller.cli.app import app
from media_roller.cli.formatters import format_error_with_suggestions
from media_roller.exceptions import MediaRollerError

log = logging.getLogger("media_roller")

# Conventional exit status for a process ended by Ctrl+C
EXIT_INTERRUPTED = 130


def _report(console: Console, error: Exception, unexpected: bool) -> None:
    context = {"type": "Unexpected"} if unexpected else None
    console.print(f"\n{format_error_with_suggestions(error, context)}")
    log.debug("Full traceback:", exc_info=error)


def main() -> None:
    console = Console(stderr=True)

    try:
        app()
    except typer.Exit as e:
        sys.exit(e.exit_code)
    except typer.Abort:
        sys.exit(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        # Signals are handled by the server itself; this only covers
        # interruptions before it is running or in one-shot commands.
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(EXIT_INTERRUPTED)
    except MediaRollerError as e:
        _report(console, e, unexpected=False)
        sys.exit(1)
    except Exception as e:
        _report(console, e, unexpected=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
