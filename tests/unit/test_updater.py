"""
Unit tests for the periodic updater.
"""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from media_roller.core.updater import PeriodicUpdater
from media_roller.models.stats import UpdaterStats
from tests.conftest import wait_until


def make_updater(update=None, interval: float = 3600, version: str = "2024.12.06"):
    update = update or AsyncMock(return_value=True)
    return PeriodicUpdater(update, AsyncMock(return_value=version), interval=interval)


class TestPeriodicUpdater:
    """Tests for scheduling, failure handling, and stopping."""

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            make_updater(interval=0)

    async def test_runs_one_attempt_immediately(self):
        update = AsyncMock(return_value=True)
        updater = make_updater(update)

        await updater.start()
        await wait_until(lambda: updater.stats.attempts == 1)

        assert update.await_count == 1
        assert updater.running
        await updater.stop()
        assert not updater.running

    async def test_start_does_not_wait_for_attempt(self):
        gate = asyncio.Event()

        async def slow_update():
            await gate.wait()
            return True

        updater = make_updater(slow_update)
        await asyncio.wait_for(updater.start(), timeout=1)

        assert updater.stats.attempts == 0
        gate.set()
        await updater.stop()
        assert updater.stats.attempts == 1

    async def test_one_attempt_per_interval(self):
        update = AsyncMock(return_value=True)
        updater = make_updater(update, interval=0.3)

        await updater.start()
        await asyncio.sleep(0.75)
        await updater.stop()

        # t=0, t=0.3, t=0.6
        assert update.await_count == 3

    async def test_no_attempts_after_stop(self):
        update = AsyncMock(return_value=True)
        updater = make_updater(update, interval=0.05)

        await updater.start()
        await wait_until(lambda: update.await_count >= 2)
        await updater.stop()
        count = update.await_count
        await asyncio.sleep(0.2)

        assert update.await_count == count

    async def test_stop_twice_does_not_block(self):
        updater = make_updater()
        await updater.start()

        await asyncio.wait_for(updater.stop(), timeout=1)
        await asyncio.wait_for(updater.stop(), timeout=1)

    async def test_stop_before_start_is_harmless(self):
        updater = make_updater()

        await asyncio.wait_for(updater.stop(), timeout=1)
        await updater.start()

        assert not updater.running

    async def test_stop_lets_in_flight_attempt_finish(self):
        gate = asyncio.Event()
        finished = []

        async def slow_update():
            await gate.wait()
            finished.append(True)
            return True

        updater = make_updater(slow_update)
        await updater.start()
        await asyncio.sleep(0.01)

        stopping = asyncio.create_task(updater.stop())
        await asyncio.sleep(0.05)
        assert not stopping.done()

        gate.set()
        await asyncio.wait_for(stopping, timeout=1)
        assert finished == [True]
        assert updater.stats.attempts == 1

    async def test_stop_without_waiting_returns_immediately(self):
        gate = asyncio.Event()

        async def slow_update():
            await gate.wait()
            return True

        updater = make_updater(slow_update, interval=0.05)
        await updater.start()
        await asyncio.sleep(0.01)

        await asyncio.wait_for(updater.stop(wait=False), timeout=0.1)
        assert updater.running

        gate.set()
        await wait_until(lambda: not updater.running)
        assert updater.stats.attempts == 1

    async def test_failures_are_swallowed(self, caplog):
        outcomes = [RuntimeError("network down"), False]

        async def flaky_update():
            outcome = outcomes.pop(0) if outcomes else True
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        update = AsyncMock(side_effect=flaky_update)
        updater = make_updater(update, interval=0.05, version="2023.01.01")

        with caplog.at_level(logging.INFO, logger="media_roller"):
            await updater.start()
            await wait_until(lambda: updater.stats.attempts >= 3)
            await updater.stop()

        assert updater.stats.failures == 2
        assert updater.stats.successes >= 1
        assert "network down" in caplog.text
        assert "yt-dlp version: 2023.01.01" in caplog.text

    async def test_version_failure_is_reported_as_unknown(self):
        updater = PeriodicUpdater(
            AsyncMock(return_value=True), AsyncMock(side_effect=OSError("gone"))
        )

        assert await updater.run_once() is True
        assert updater.stats.last_version == "unknown"

    async def test_overdue_ticks_are_skipped(self):
        active = 0
        peak = 0
        durations = [0.35, 0.0, 0.0, 0.0, 0.0, 0.0]

        async def update():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(durations.pop(0) if durations else 0)
            active -= 1
            return True

        updater = make_updater(update, interval=0.1)
        await updater.start()
        await wait_until(lambda: updater.stats.attempts >= 2)
        await updater.stop()

        assert peak == 1
        assert updater.stats.ticks_skipped >= 1

    async def test_concurrent_run_once_is_single_flight(self):
        gate = asyncio.Event()

        async def wait_for_gate():
            await gate.wait()
            return True

        update = AsyncMock(side_effect=wait_for_gate)
        updater = make_updater(update)

        first = asyncio.create_task(updater.run_once())
        await asyncio.sleep(0.01)
        second = await updater.run_once()
        gate.set()
        await first

        assert second is False
        assert update.await_count == 1
        assert updater.stats.ticks_skipped == 1

    async def test_records_into_shared_stats(self):
        stats = UpdaterStats()
        updater = PeriodicUpdater(
            AsyncMock(return_value=True),
            AsyncMock(return_value="2024.12.06"),
            stats=stats,
        )

        await updater.run_once()

        assert stats.attempts == 1
        assert stats.last_version == "2024.12.06"
