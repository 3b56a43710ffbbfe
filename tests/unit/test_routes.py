"""
Unit tests for the route table and the composition root.
"""

import logging

import pytest

from media_roller.core.server import build_server
from media_roller.core.updater import PeriodicUpdater
from media_roller.exceptions import InvalidStaticPrefixError, StaticRootNotFoundError
from media_roller.media.handlers import MediaHandlers
from media_roller.web.routes import build_routes, create_app
from media_roller.web.static import StaticAssetRouter

EXPECTED_ROUTES = {
    ("GET", "/"),
    ("GET", "/fetch"),
    ("GET", "/api/download"),
    ("GET", "/download"),
    ("GET", "/about"),
    ("GET", "/static"),
    ("GET", "/static/{tail:.*}"),
}


@pytest.fixture
def router(static_root) -> StaticAssetRouter:
    return StaticAssetRouter("/static", static_root)


@pytest.fixture
def handlers(fake_ytdlp, download_dir, router) -> MediaHandlers:
    return MediaHandlers(fake_ytdlp, download_dir, router)


class TestRouteTable:
    """Tests for the fixed route table."""

    def test_binds_expected_paths(self, handlers, router):
        routes = build_routes(handlers, router)

        assert {(r.method, r.path) for r in routes} == EXPECTED_ROUTES

    def test_logs_every_route(self, handlers, router, caplog):
        with caplog.at_level(logging.INFO, logger="media_roller"):
            create_app(handlers, router)

        for path in ("/fetch", "/api/download", "/download", "/about", "/static/{tail}"):
            assert f"GET {path}" in caplog.text
        assert "HEAD" not in caplog.text

    async def test_router_is_frozen_once_serving(self, handlers, router, make_client):
        app = create_app(handlers, router)
        await make_client(app)

        with pytest.raises(RuntimeError):
            app.router.add_get("/late", handlers.index)


class TestBuildServer:
    """Tests for wiring the server together from configuration."""

    def test_builds_without_updater(self, config):
        components = build_server(config)

        assert components.updater is None
        assert components.ytdlp.binary == config.ytdlp_path

    def test_builds_updater_with_interval(self, config):
        config.updater_enabled = True
        config.update_interval = 60

        components = build_server(config)

        assert isinstance(components.updater, PeriodicUpdater)
        assert components.updater.interval == 60
        assert components.updater.stats is components.stats

    def test_missing_static_dir_is_fatal(self, config, tmp_path):
        config.static_dir = str(tmp_path / "missing")

        with pytest.raises(StaticRootNotFoundError):
            build_server(config)

    def test_parameterised_prefix_is_fatal(self, config):
        config.static_prefix = "/static/{file}"

        with pytest.raises(InvalidStaticPrefixError):
            build_server(config)

    def test_creates_download_dir(self, config, tmp_path):
        config.download_dir = str(tmp_path / "new" / "downloads")

        build_server(config)

        assert (tmp_path / "new" / "downloads").is_dir()
