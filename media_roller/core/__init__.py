"""
Core process coordination.

The `ServerLifecycle` owns the HTTP listener and drives the signal-triggered
graceful shutdown, while the `PeriodicUpdater` keeps the external yt-dlp
binary current on an independent background task.
"""

from .lifecycle import (
    LifecycleState,
    ServerLifecycle,
    ShutdownContext,
    ShutdownOutcome,
    run_server,
)
from .updater import PeriodicUpdater

__all__ = [
    "LifecycleState",
    "PeriodicUpdater",
    "ServerLifecycle",
    "ShutdownContext",
    "ShutdownOutcome",
    "run_server",
]
