"""
Dataclass for tracking background updater statistics.
"""

import time
from dataclasses import dataclass, field


@dataclass
class UpdaterStats:
    """Tracks the outcome of every update attempt made by the background updater."""

    attempts: int = 0
    successes: int = 0
    failures: int = 0
    ticks_skipped: int = 0
    last_version: str = "unknown"
    last_attempt_time: float | None = None
    _started_at: float = field(default_factory=time.monotonic, repr=False)

    def record_attempt(self, success: bool, version: str) -> None:
        self.attempts += 1
        if success:
            self.successes += 1
        else:
            self.failures += 1
        self.last_version = version
        self.last_attempt_time = time.monotonic()

    @property
    def uptime_seconds(self) -> float:
        """Seconds since the stats object was created."""
        return time.monotonic() - self._started_at
