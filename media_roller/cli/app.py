"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from media_roller import __version__
from media_roller.core.lifecycle import run_server
from media_roller.core.server import build_server, build_ytdlp
from media_roller.core.updater import PeriodicUpdater
from media_roller.storage.config_manager import ConfigManager

from .formatters import print_config, print_startup_panel

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("media_roller")

app = typer.Typer(
    name="media-roller",
    help="A small web front-end for yt-dlp. Use 'media-roller <command> --help' for more info.",
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "media-roller"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration file."
    ),
):
    """media-roller"""
    if version:
        console.print(f"[bold]media-roller[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("media_roller").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[yellow]No config file found; built-in defaults are in use.[/] "
                "Run [cyan]media-roller init[/cyan] to create one."
            )
            raise typer.Exit()
        print_config(CONFIG_FILE, ConfigManager(CONFIG_FILE).get_config_as_dict())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Write a configuration file populated with the default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    ConfigManager(CONFIG_FILE).save_new_config()
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")


@app.command()
def serve(
    host: str | None = typer.Option(
        None, "--host", help="Interface to listen on (default 0.0.0.0)."
    ),
    port: int | None = typer.Option(
        None, "-p", "--port", help="TCP port to listen on (default 3000)."
    ),
    static_dir: str | None = typer.Option(
        None, "--static-dir", help="Directory holding the single-page application."
    ),
    download_dir: str | None = typer.Option(
        None, "--download-dir", help="Directory fetched media is written to."
    ),
    no_updater: bool = typer.Option(
        False, "--no-updater", help="Do not keep yt-dlp updated in the background."
    ),
):
    """Start the web server."""
    cli_options = {
        key: value
        for key, value in {
            "host": host,
            "port": port,
            "static_dir": static_dir,
            "download_dir": download_dir,
        }.items()
        if value is not None
    }
    if no_updater:
        cli_options["updater_enabled"] = False

    config = ConfigManager(CONFIG_FILE).load_config(cli_options)
    components = build_server(config)

    print_startup_panel(config, asyncio.run(components.ytdlp.version()))

    exit_code = run_server(components.app, config, components.updater)
    raise typer.Exit(code=exit_code)


@app.command()
def update():
    """Update yt-dlp now and print the installed version."""
    config = ConfigManager(CONFIG_FILE).load_config()
    ytdlp = build_ytdlp(config)
    updater = PeriodicUpdater(ytdlp.update, ytdlp.version, config.update_interval)

    if asyncio.run(updater.run_once()):
        console.print(
            f"[green]✓ yt-dlp is up to date ({updater.stats.last_version}).[/green]"
        )
    else:
        console.print(
            f"[red]✗ Update failed.[/red] Installed version: "
            f"{updater.stats.last_version}"
        )
        raise typer.Exit(code=1)
