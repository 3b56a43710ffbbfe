"""
Request middleware that turns application errors into HTTP error responses.
"""

import logging

from aiohttp import web

from media_roller.exceptions import (
    InvalidMediaUrlError,
    MediaError,
    MediaFetchError,
    MediaNotFoundError,
    MediaRollerError,
)

log = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[Exception], int]] = [
    (InvalidMediaUrlError, 400),
    (MediaNotFoundError, 404),
    (MediaFetchError, 502),
    (MediaError, 500),
]


def status_for(error: MediaRollerError) -> int:
    """Picks the HTTP status code that best describes an application error."""
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


def _error_response(request: web.Request, status: int, message: str) -> web.Response:
    if request.path.startswith("/api/"):
        return web.json_response({"error": message}, status=status)
    return web.Response(text=message, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Maps exceptions raised by handlers onto HTTP responses."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except MediaRollerError as e:
        status = status_for(e)
        log.warning(f"{request.method} {request.path} -> {status}: {e}")
        return _error_response(request, status, str(e))
    except Exception:
        log.error(f"Unhandled exception for {request.path}", exc_info=True)
        return _error_response(request, 500, "Internal server error")
