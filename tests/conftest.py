"""
pytest configuration and fixtures.
"""

import asyncio
from pathlib import Path

import pytest
from aiohttp.test_utils import TestClient, TestServer

from media_roller.media.ytdlp import YtDlp
from media_roller.models.config import ServerConfig

INDEX_HTML = "<!DOCTYPE html><html><body><div id='app'></div></body></html>"
APP_JS = "console.log('media-roller');"


class FakeYtDlp(YtDlp):
    """YtDlp that simulates the binary instead of running it."""

    def __init__(self, version: str = "2024.12.06", returncode: int = 0):
        super().__init__(binary="yt-dlp-fake")
        self.fake_version = version
        self.returncode = returncode
        self.calls: list[tuple[str, ...]] = []

    async def _run(self, *args: str, timeout: float) -> tuple[int, str, str]:
        self.calls.append(args)
        if args[0] == "--version":
            return 0, self.fake_version, ""
        if args[0] == "--update-to":
            return self.returncode, "Updated yt-dlp", ""
        if self.returncode != 0:
            return self.returncode, "", "ERROR: Unsupported URL"

        template = args[args.index("--output") + 1]
        output = Path(template.replace("%(title)s", "clip").replace("%(ext)s", "mp4"))
        output.write_bytes(b"fake media bytes")
        return 0, "", ""


@pytest.fixture
def static_root(tmp_path: Path) -> Path:
    """A static directory laid out like a built single-page application."""
    root = tmp_path / "static"
    (root / "css").mkdir(parents=True)
    (root / "docs").mkdir()
    (root / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (root / "app.js").write_text(APP_JS, encoding="utf-8")
    (root / "css" / "site.css").write_text("body { margin: 0; }", encoding="utf-8")
    (root / "docs" / "index.html").write_text("<h1>docs</h1>", encoding="utf-8")
    return root


@pytest.fixture
def download_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "downloads"
    directory.mkdir()
    return directory


@pytest.fixture
def config(static_root: Path, download_dir: Path) -> ServerConfig:
    """Test server configuration bound to loopback on a free port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        static_dir=str(static_root),
        download_dir=str(download_dir),
        shutdown_timeout=5.0,
        updater_enabled=False,
    )


@pytest.fixture
def fake_ytdlp() -> FakeYtDlp:
    return FakeYtDlp()


@pytest.fixture
async def make_client():
    """Factory that serves an aiohttp application on a test server."""
    clients: list[TestClient] = []

    async def _make(app) -> TestClient:
        client = TestClient(TestServer(app))
        await client.start_server()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.close()


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.01) -> None:
    """Polls a predicate until it holds, failing the test on timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("Condition was not met in time.")
        await asyncio.sleep(interval)
