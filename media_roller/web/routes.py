"""
Builds the application's route table and the aiohttp Application around it.
"""

import logging

from aiohttp import web

from media_roller.media.handlers import MediaHandlers

from .middleware import error_middleware
from .static import StaticAssetRouter

log = logging.getLogger(__name__)


def build_routes(
    handlers: MediaHandlers, static_router: StaticAssetRouter
) -> list[web.RouteDef]:
    """Binds the fixed set of paths to their handlers."""
    return [
        web.get("/", handlers.index),
        web.get("/fetch", handlers.fetch_media),
        web.get("/api/download", handlers.fetch_media_api),
        web.get("/download", handlers.serve_media),
        web.get("/about", handlers.about),
        *static_router.route_defs(),
    ]


def log_routes(app: web.Application) -> None:
    """Logs every registered route, skipping the implicit HEAD twins."""
    for route in app.router.routes():
        if route.method == "HEAD":
            continue
        info = route.resource.get_info() if route.resource else {}
        path = info.get("path") or info.get("formatter") or info.get("prefix", "")
        log.info(f"{route.method} {path}")


def create_app(
    handlers: MediaHandlers, static_router: StaticAssetRouter
) -> web.Application:
    """
    Creates the aiohttp application with all routes registered.

    The router is frozen by aiohttp when the application starts, after which
    the route table is read-only.
    """
    app = web.Application(middlewares=[error_middleware])
    app.add_routes(build_routes(handlers, static_router))
    log_routes(app)
    return app
