"""
Composition root: wires configuration, the media subsystem, the route table
and the background updater together.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from aiohttp import web

from media_roller.media import MediaHandlers, YtDlp
from media_roller.models.config import ServerConfig
from media_roller.models.stats import UpdaterStats
from media_roller.web.routes import create_app
from media_roller.web.static import StaticAssetRouter

from .updater import PeriodicUpdater

log = logging.getLogger(__name__)


@dataclass
class ServerComponents:
    """Everything the lifecycle controller needs to run the server."""

    app: web.Application
    ytdlp: YtDlp
    stats: UpdaterStats
    updater: PeriodicUpdater | None


def build_ytdlp(config: ServerConfig) -> YtDlp:
    return YtDlp(
        binary=config.ytdlp_path,
        update_channel=config.update_channel,
        fetch_timeout=config.fetch_timeout,
    )


def build_server(config: ServerConfig) -> ServerComponents:
    """
    Builds the application and its collaborators from a validated config.

    Raises:
        ConfigurationError: If the static prefix or directory is invalid.
    """
    static_router = StaticAssetRouter(config.static_prefix, config.static_dir)
    ytdlp = build_ytdlp(config)
    stats = UpdaterStats()

    download_dir = Path(config.download_dir)
    download_dir.mkdir(parents=True, exist_ok=True)
    log.debug(f"Downloads are stored in '{download_dir}'.")

    handlers = MediaHandlers(ytdlp, download_dir, static_router, stats)
    app = create_app(handlers, static_router)

    updater = None
    if config.updater_enabled:
        updater = PeriodicUpdater(
            ytdlp.update, ytdlp.version, interval=config.update_interval, stats=stats
        )
    else:
        log.info("[yellow]Background yt-dlp updates are disabled.[/yellow]")

    return ServerComponents(app=app, ytdlp=ytdlp, stats=stats, updater=updater)
