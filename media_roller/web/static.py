"""
Serves the single-page application's static assets.

Any path under the public prefix that does not name a file on disk is answered
with the root's index.html, so client-side routing can take over navigation.
"""

import logging
import os
from pathlib import Path

import aiofiles.os
from aiohttp import web

from media_roller.exceptions import InvalidStaticPrefixError, StaticRootNotFoundError

log = logging.getLogger(__name__)

INDEX_DOCUMENT = "index.html"
_URL_PARAM_CHARS = "{}*"


class StaticAssetRouter:
    """
    Maps a public URL prefix onto a directory, with an SPA index fallback.
    """

    def __init__(self, prefix: str, root: str | os.PathLike):
        """
        Validates the prefix and root directory.

        Args:
            prefix: The public URL prefix, e.g. "/static".
            root: Directory the files are served from.

        Raises:
            InvalidStaticPrefixError: If the prefix contains URL parameters.
            StaticRootNotFoundError: If the root directory does not exist.
        """
        if any(char in prefix for char in _URL_PARAM_CHARS):
            raise InvalidStaticPrefixError(
                f"Static prefix '{prefix}' must not contain URL parameters."
            )

        self.root = Path(root).resolve()
        if not self.root.exists():
            raise StaticRootNotFoundError(
                f"Static documents directory not found: '{self.root}'"
            )

        self.public_prefix = prefix
        self.prefix = prefix if prefix.endswith("/") else prefix + "/"

    @property
    def index_path(self) -> Path:
        return self.root / INDEX_DOCUMENT

    def route_defs(self) -> list[web.RouteDef]:
        """
        Returns the redirect (for a prefix without trailing slash) and the
        catch-all route as route definitions.
        """
        routes = []
        if self.public_prefix != "/" and not self.public_prefix.endswith("/"):
            routes.append(web.get(self.public_prefix, self._redirect_to_prefix))
        routes.append(web.get(self.prefix + "{tail:.*}", self.handle))
        return routes

    async def _redirect_to_prefix(self, request: web.Request) -> web.StreamResponse:
        location = self.prefix
        if request.query_string:
            location = f"{location}?{request.query_string}"
        raise web.HTTPMovedPermanently(location=location)

    async def handle(self, request: web.Request) -> web.StreamResponse:
        """Serves the requested file, or the index document when it is missing."""
        target = await self._resolve(request.match_info.get("tail", ""))
        if target is None:
            return await self.serve_index()
        return web.FileResponse(target)

    async def _resolve(self, relative: str) -> Path | None:
        """
        Maps a request tail to a file under the root.

        Returns None when nothing servable exists at that location.
        """
        candidate = (self.root / relative.lstrip("/")).resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError:
            log.debug(f"Rejected path outside the static root: '{relative}'")
            return None

        if await aiofiles.os.path.isdir(candidate):
            candidate = candidate / INDEX_DOCUMENT
        if await aiofiles.os.path.isfile(candidate):
            return candidate
        return None

    async def serve_index(self) -> web.StreamResponse:
        """Serves the index document, or a 500 when it is missing."""
        if not await aiofiles.os.path.isfile(self.index_path):
            log.error(f"SPA fallback document is missing: '{self.index_path}'")
            raise web.HTTPInternalServerError(text="Index document not found.")
        return web.FileResponse(self.index_path)
