"""
Web Layer.

This package contains the static asset router and request middleware. The
route table lives in `media_roller.web.routes`.
"""

from .middleware import error_middleware
from .static import StaticAssetRouter

__all__ = ["StaticAssetRouter", "error_middleware"]
