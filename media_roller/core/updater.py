"""
Keeps an external tool current by running an update attempt at startup and
then on a fixed interval in the background.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from media_roller.models.config import DEFAULT_UPDATE_INTERVAL
from media_roller.models.stats import UpdaterStats

log = logging.getLogger(__name__)


class PeriodicUpdater:
    """
    Runs best-effort update attempts on an independent asyncio task.

    Attempts never overlap: a tick that falls due while an attempt is still
    running is skipped, and the schedule stays aligned to the start time.
    """

    def __init__(
        self,
        update: Callable[[], Awaitable[bool]],
        version: Callable[[], Awaitable[str]],
        interval: float = DEFAULT_UPDATE_INTERVAL,
        stats: UpdaterStats | None = None,
        tool_name: str = "yt-dlp",
    ):
        """
        Initializes the updater.

        Args:
            update: Performs one update attempt and reports success.
            version: Returns the currently installed tool version.
            interval: Seconds between scheduled attempts.
            stats: Optional stats object to record attempts into.
            tool_name: Name used in log messages.
        """
        if interval <= 0:
            raise ValueError("Update interval must be greater than zero.")
        self._update = update
        self._version = version
        self.interval = interval
        self.stats = stats or UpdaterStats()
        self.tool_name = tool_name

        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self._attempt_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Starts the background task without waiting for the first attempt."""
        if self._stop_event.is_set():
            log.debug(f"{self.tool_name} updater was stopped; not restarting.")
            return
        if not self.running:
            self._task = asyncio.create_task(
                self._run_loop(), name=f"{self.tool_name}-updater"
            )
            log.debug(
                f"Started {self.tool_name} updater (interval {self.interval:.0f}s)."
            )

    async def stop(self, wait: bool = True) -> None:
        """
        Stops scheduling further attempts.

        An attempt that is already running is allowed to finish. Calling this
        more than once is harmless.

        Args:
            wait: Wait for the task (and any attempt in flight) to end. With
                False the call returns at once and the attempt finishes on
                its own.
        """
        self._stop_event.set()
        if self._task is None or self._task.done() or not wait:
            return
        await asyncio.shield(self._task)
        log.debug(f"Stopped {self.tool_name} updater.")

    async def run_once(self) -> bool:
        """
        Performs a single update attempt and logs the resulting version.

        Failures are logged and reported as False, never raised.
        """
        if self._attempt_lock.locked():
            log.info(f"{self.tool_name} update already in progress, skipping.")
            self.stats.ticks_skipped += 1
            return False

        async with self._attempt_lock:
            success = False
            try:
                success = bool(await self._update())
            except Exception as e:
                log.error(f"[red]{self.tool_name} update raised an error: {e}[/red]")
                log.debug("Full traceback:", exc_info=True)

            if not success:
                log.warning(f"[yellow]{self.tool_name} update attempt failed.[/yellow]")

            try:
                version = await self._version()
            except Exception as e:
                log.warning(f"Could not read {self.tool_name} version: {e}")
                version = "unknown"

            self.stats.record_attempt(success, version)
            log.info(f"{self.tool_name} version: {version}")
            return success

    async def _run_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval

        await self.run_once()

        while not self._stop_event.is_set():
            now = loop.time()
            if now >= next_tick:
                missed = int((now - next_tick) // self.interval) + 1
                next_tick += missed * self.interval
                self.stats.ticks_skipped += missed
                log.info(
                    f"{self.tool_name} update overran the interval; "
                    f"skipped {missed} scheduled attempt(s)."
                )

            try:
                await asyncio.wait_for(self._stop_event.wait(), next_tick - now)
            except asyncio.TimeoutError:
                pass
            if self._stop_event.is_set():
                break

            next_tick += self.interval
            await self.run_once()
