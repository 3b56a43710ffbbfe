"""
Data Models Layer.

This package contains the Pydantic and dataclass models that define the core
data structures used throughout the application, such as configuration and
updater statistics.
"""

from .config import ServerConfig
from .stats import UpdaterStats

__all__ = ["ServerConfig", "UpdaterStats"]
