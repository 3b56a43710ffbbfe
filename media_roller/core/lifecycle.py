"""
Owns the HTTP listener for the life of the process.

States:
- STARTING: binding the listener
- RUNNING: serving traffic until a termination signal arrives
- SHUTTING_DOWN: inside the bounded graceful-shutdown window
- STOPPED: clean exit
- FAILED: bind error, shutdown error, or the shutdown window elapsed
"""

import asyncio
import logging
import os
import signal
from collections.abc import Awaitable, Callable
from enum import Enum

from aiohttp import web

from media_roller.exceptions import ServerBindError, ShutdownTimeoutError
from media_roller.models.config import ServerConfig

from .updater import PeriodicUpdater

log = logging.getLogger(__name__)

SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = tuple(
    getattr(signal, name)
    for name in ("SIGHUP", "SIGINT", "SIGTERM", "SIGQUIT")
    if hasattr(signal, name)
)

# aiohttp's own handler timeout must outlast the window so that the
# ShutdownContext alone decides between completion and timeout.
_RUNNER_SHUTDOWN_SLACK = 5.0


class LifecycleState(Enum):
    """States of the server lifecycle."""

    STARTING = "starting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"
    FAILED = "failed"


class ShutdownOutcome(Enum):
    """How a shutdown window ended."""

    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class ShutdownContext:
    """
    A single-use, time-bounded window for one shutdown sequence.

    The close coroutine and the deadline are raced in one place, so exactly
    one outcome is ever reported.
    """

    def __init__(self, timeout: float):
        self.timeout = timeout
        self.deadline: float | None = None
        self.outcome: ShutdownOutcome | None = None
        self.error: BaseException | None = None
        self._used = False

    @property
    def remaining(self) -> float | None:
        """Seconds left in the window, or None if it has not opened yet."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - asyncio.get_running_loop().time())

    async def run(self, close: Callable[[], Awaitable[None]]) -> ShutdownOutcome:
        """
        Runs the close coroutine inside the window.

        A close that outlives the window is abandoned (cancelled without
        waiting) and reported as TIMED_OUT.

        Raises:
            RuntimeError: If the context has already been used.
        """
        if self._used:
            raise RuntimeError("A shutdown context can only be used once.")
        self._used = True

        self.deadline = asyncio.get_running_loop().time() + self.timeout
        task = asyncio.ensure_future(close())
        done, _ = await asyncio.wait({task}, timeout=self.timeout)

        if not done:
            task.cancel()
            self.outcome = ShutdownOutcome.TIMED_OUT
            self.error = ShutdownTimeoutError(
                f"Shutdown did not complete within {self.timeout:.0f}s."
            )
        elif task.cancelled():
            self.outcome = ShutdownOutcome.FAILED
            self.error = asyncio.CancelledError("Shutdown was cancelled.")
        elif task.exception() is not None:
            self.outcome = ShutdownOutcome.FAILED
            self.error = task.exception()
        else:
            self.outcome = ShutdownOutcome.COMPLETED
        return self.outcome


class ServerLifecycle:
    """Binds the listener, watches for termination signals and shuts down once."""

    def __init__(
        self,
        app: web.Application,
        config: ServerConfig,
        updater: PeriodicUpdater | None = None,
        exit_func: Callable[[int], None] = os._exit,
        signals: tuple[signal.Signals, ...] = SHUTDOWN_SIGNALS,
    ):
        """
        Args:
            app: The application to serve.
            config: Listener address and shutdown timeout.
            updater: Background updater started once the listener is up.
            exit_func: Called with status 1 when shutdown fails or times out.
            signals: The OS signals that trigger shutdown.
        """
        self.app = app
        self.config = config
        self.updater = updater
        self.signals = signals
        self._exit = exit_func

        self._state = LifecycleState.STARTING
        self._runner: web.AppRunner | None = None
        self._shutdown_requested = asyncio.Event()
        self._shutdown_context: ShutdownContext | None = None
        self._installed_signals: list[signal.Signals] = []

    @property
    def state(self) -> LifecycleState:
        """Current lifecycle state."""
        return self._state

    @property
    def shutdown_context(self) -> ShutdownContext | None:
        return self._shutdown_context

    @property
    def bound_port(self) -> int | None:
        """The port actually bound, useful when configured with port 0."""
        if self._runner is None or not self._runner.addresses:
            return None
        return self._runner.addresses[0][1]

    def _set_state(self, state: LifecycleState) -> None:
        log.debug(f"Server state: {self._state.value} -> {state.value}")
        self._state = state

    async def start(self) -> None:
        """
        Binds the listener and starts the background updater.

        Raises:
            ServerBindError: If the configured address cannot be bound.
        """
        if self._state is not LifecycleState.STARTING:
            raise RuntimeError(f"Cannot start a server in state '{self._state.value}'.")

        self._runner = web.AppRunner(
            self.app,
            handle_signals=False,
            shutdown_timeout=self.config.shutdown_timeout + _RUNNER_SHUTDOWN_SLACK,
        )
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.config.host, self.config.port)
        try:
            await site.start()
        except OSError as e:
            self._set_state(LifecycleState.FAILED)
            await self._runner.cleanup()
            raise ServerBindError(
                f"Could not listen on {self.config.host}:{self.config.port}: {e}"
            ) from e

        self._set_state(LifecycleState.RUNNING)
        log.info(
            f"[green]Listening on http://{self.config.host}:{self.bound_port}[/green]"
        )

        self._install_signal_handlers()
        if self.updater is not None:
            await self.updater.start()

    def request_shutdown(self, sig: signal.Signals | None = None) -> None:
        """
        Translates a termination signal into the shutdown request.

        Only the first request counts; later ones are ignored.
        """
        name = signal.Signals(sig).name if sig is not None else "shutdown request"
        if self._shutdown_requested.is_set():
            log.debug(f"Ignoring {name}: shutdown already in progress.")
            return
        log.info(f"[yellow]Received {name}, shutting down...[/yellow]")
        self._shutdown_requested.set()

    async def shutdown(self) -> LifecycleState:
        """
        Runs the graceful shutdown sequence.

        Only the first call runs the sequence; later calls return the current
        state. A failed or timed-out shutdown hard-exits the process.
        """
        if self._shutdown_context is not None:
            return self._state

        self._shutdown_context = ShutdownContext(self.config.shutdown_timeout)
        self._set_state(LifecycleState.SHUTTING_DOWN)
        log.info(
            f"Stopping listener (grace period {self.config.shutdown_timeout:.0f}s)..."
        )

        # No new update attempts; one already running is not waited for and
        # never counts against the grace period.
        if self.updater is not None:
            await self.updater.stop(wait=False)

        outcome = await self._shutdown_context.run(self._close)
        self._remove_signal_handlers()

        if outcome is ShutdownOutcome.COMPLETED:
            self._set_state(LifecycleState.STOPPED)
            log.info("Shutdown complete")
            log.debug(
                f"Listener closed with {self._shutdown_context.remaining:.1f}s "
                "of the grace period left."
            )
        elif outcome is ShutdownOutcome.TIMED_OUT:
            self._set_state(LifecycleState.FAILED)
            log.critical("[red]graceful shutdown timed out.. forcing exit.[/red]")
            self._force_exit()
        else:
            self._set_state(LifecycleState.FAILED)
            error = self._shutdown_context.error
            log.critical(
                f"[red]Shutdown failed: {error}[/red]",
                exc_info=(type(error), error, error.__traceback__),
            )
            self._force_exit()
        return self._state

    async def serve(self) -> LifecycleState:
        """Starts the server, blocks until a shutdown request, then shuts down."""
        await self.start()
        await self._shutdown_requested.wait()
        return await self.shutdown()

    async def _close(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()

    def _force_exit(self) -> None:
        for handler in logging.getLogger().handlers:
            handler.flush()
        self._exit(1)

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self.signals:
            try:
                loop.add_signal_handler(sig, self.request_shutdown, sig)
            except NotImplementedError:
                # Event loops without add_signal_handler (Windows)
                signal.signal(
                    sig,
                    lambda signum, frame: loop.call_soon_threadsafe(
                        self.request_shutdown, signum
                    ),
                )
            self._installed_signals.append(sig)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._installed_signals:
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                signal.signal(sig, signal.SIG_DFL)
        self._installed_signals.clear()


def run_server(
    app: web.Application,
    config: ServerConfig,
    updater: PeriodicUpdater | None = None,
) -> int:
    """
    Runs the server until it is told to stop.

    Returns:
        The process exit code: 0 after a clean shutdown, 1 otherwise.

    Raises:
        ServerBindError: If the listener cannot be bound.
    """
    lifecycle = ServerLifecycle(app, config, updater)
    state = asyncio.run(lifecycle.serve())
    return 0 if state is LifecycleState.STOPPED else 1
