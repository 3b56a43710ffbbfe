"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from media_roller.models.config import ServerConfig
from media_roller.utils.formatting import format_duration


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "StaticRootNotFoundError": [
            "• Create the static directory or point --static-dir at it.",
            "• Relative paths are resolved from the current working directory.",
        ],
        "InvalidStaticPrefixError": [
            "• The static prefix must be a plain path such as '/static'.",
            "• Remove any '{', '}' or '*' characters from 'static_prefix'.",
        ],
        "ServerBindError": [
            "• Another process may already be listening on this port.",
            "• Choose a different port with --port.",
            "• Ports below 1024 usually require elevated privileges.",
        ],
        "ConfigurationError": [
            "• Check the values in your configuration file.",
            "• Run `media-roller --show-config` to inspect it.",
            "• Run `media-roller init --force` to restore the defaults.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the raw values of the configuration file."""
    console = Console()
    content = ""
    for key, value in sorted(config_data.items()):
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip() or "[dim](empty)[/dim]",
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_startup_panel(config: ServerConfig, version: str):
    """Displays a summary of the settings the server starts with."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    if config.port == 0:
        address = f"http://{config.host} [dim](free port chosen at bind, see log)[/dim]"
    else:
        address = f"http://{config.host}:{config.port}"
    table.add_row("Address:", address)
    table.add_row("Static Files:", f"{config.static_prefix} → [dim]{config.static_dir}[/dim]")
    table.add_row("Downloads:", f"[dim]{config.download_dir}[/dim]")
    table.add_row("yt-dlp:", f"{config.ytdlp_path} ([dim]{version}[/dim])")
    if config.updater_enabled:
        table.add_row(
            "Auto Update:",
            f"✓ {config.update_channel}, every {format_duration(config.update_interval)}",
        )
    else:
        table.add_row("Auto Update:", "✗ Disabled")
    table.add_row("Grace Period:", format_duration(config.shutdown_timeout))

    console.print(
        Panel(
            table,
            title="[bold green]media-roller[/bold green]",
            border_style="green",
            expand=False,
        )
    )
