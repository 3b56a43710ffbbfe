"""
HTTP handlers for the media pages and the download API.
"""

import asyncio
import html
import logging
import re
from pathlib import Path
from urllib.parse import urlencode

from aiohttp import web
from pathvalidate import is_valid_filename

from media_roller import __version__
from media_roller.exceptions import MediaNotFoundError
from media_roller.models.stats import UpdaterStats
from media_roller.utils.formatting import format_duration, format_size
from media_roller.web.static import StaticAssetRouter

from .ytdlp import FetchResult, YtDlp

log = logging.getLogger(__name__)

_MEDIA_ID_REGEX = re.compile(r"^[0-9a-f]{40}$")

_ABOUT_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>About media-roller</title></head>
<body>
<h1>media-roller</h1>
<ul>
<li>media-roller version: {app_version}</li>
<li>yt-dlp version: {ytdlp_version}</li>
<li>Updates attempted: {attempts} ({failures} failed)</li>
<li>Uptime: {uptime}</li>
</ul>
</body>
</html>
"""


def download_url(media_id: str, filename: str) -> str:
    """Builds the /download URL for a fetched file."""
    return "/download?" + urlencode({"id": media_id, "file": filename})


class MediaHandlers:
    """Request handlers supplied by the media subsystem."""

    def __init__(
        self,
        ytdlp: YtDlp,
        download_dir: Path,
        static_router: StaticAssetRouter,
        stats: UpdaterStats | None = None,
    ):
        self.ytdlp = ytdlp
        self.download_dir = Path(download_dir)
        self.static_router = static_router
        self.stats = stats

    async def index(self, request: web.Request) -> web.StreamResponse:
        """Serves the single-page application's entry document."""
        return await self.static_router.serve_index()

    async def about(self, request: web.Request) -> web.StreamResponse:
        if self.stats and self.stats.attempts:
            ytdlp_version = self.stats.last_version
        else:
            ytdlp_version = await self.ytdlp.version()

        body = _ABOUT_TEMPLATE.format(
            app_version=html.escape(__version__),
            ytdlp_version=html.escape(ytdlp_version),
            attempts=self.stats.attempts if self.stats else 0,
            failures=self.stats.failures if self.stats else 0,
            uptime=format_duration(self.stats.uptime_seconds) if self.stats else "-",
        )
        return web.Response(text=body, content_type="text/html")

    async def _fetch(self, request: web.Request) -> FetchResult:
        url = request.query.get("url", "").strip()
        if not url:
            raise web.HTTPBadRequest(text="Missing 'url' query parameter.")
        return await self.ytdlp.fetch(url, self.download_dir)

    async def fetch_media(self, request: web.Request) -> web.StreamResponse:
        """Fetches media for a URL and redirects the browser to the first file."""
        result = await self._fetch(request)
        raise web.HTTPFound(location=download_url(result.media_id, result.files[0].name))

    async def fetch_media_api(self, request: web.Request) -> web.StreamResponse:
        """Fetches media for a URL and describes the downloaded files as JSON."""
        if not request.query.get("url", "").strip():
            return web.json_response(
                {"error": "Missing 'url' query parameter."}, status=400
            )
        result = await self._fetch(request)

        files = []
        for path in result.files:
            size = (await asyncio.to_thread(path.stat)).st_size
            files.append(
                {
                    "name": path.name,
                    "size": size,
                    "size_human": format_size(size),
                    "url": download_url(result.media_id, path.name),
                }
            )
        return web.json_response(
            {"id": result.media_id, "cached": result.cached, "files": files}
        )

    async def serve_media(self, request: web.Request) -> web.StreamResponse:
        """Serves a previously fetched file."""
        media_id = request.query.get("id", "")
        filename = request.query.get("file", "")

        if not _MEDIA_ID_REGEX.match(media_id) or not is_valid_filename(filename):
            raise MediaNotFoundError("Requested media does not exist.")

        path = self.download_dir / media_id / filename
        if not await asyncio.to_thread(path.is_file):
            raise MediaNotFoundError("Requested media does not exist.")

        log.debug(f"Serving media file: {path}")
        return web.FileResponse(
            path, headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )
