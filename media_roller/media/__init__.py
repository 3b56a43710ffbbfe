"""
Media Layer.

This package wraps the external yt-dlp tool and exposes the HTTP handlers
that fetch and serve media through it.
"""

from .handlers import MediaHandlers
from .ytdlp import FetchResult, YtDlp

__all__ = ["FetchResult", "MediaHandlers", "YtDlp"]
