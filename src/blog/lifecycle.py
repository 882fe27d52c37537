"""Signal-driven shutdown for the blog API server."""
import asyncio
import contextlib
import signal
from typing import Protocol

import structlog

logger = structlog.get_logger()

HANDLED_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGTERM, signal.SIGINT)


class Stoppable(Protocol):
    """Server that exits its serve loop once ``should_exit`` is set."""

    should_exit: bool

    async def serve(self) -> None: ...


class ShutdownSignal:
    """One-shot shutdown request raised by SIGTERM/SIGINT.

    Attributes:
        grace_seconds: Time the server gets to drain in-flight requests.
        reason: What requested shutdown, or None while running.
    """

    def __init__(self, grace_seconds: float = 30.0) -> None:
        self.grace_seconds = grace_seconds
        self.reason: str | None = None
        self._event = asyncio.Event()

    @property
    def requested(self) -> bool:
        return self.reason is not None

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route the handled signals on ``loop`` to :meth:`request`."""
        for sig in HANDLED_SIGNALS:
            loop.add_signal_handler(sig, self.request, sig.name)

    def request(self, reason: str = "manual") -> None:
        """Ask the server to stop. Later requests are ignored."""
        if self.requested:
            return
        self.reason = reason
        logger.info("shutdown_requested", reason=reason, grace_seconds=self.grace_seconds)
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


async def serve_until_signalled(server: Stoppable, shutdown: ShutdownSignal) -> None:
    """Run ``server`` and tell it to exit as soon as shutdown is requested.

    Args:
        server: uvicorn server (or anything with the same serve contract).
        shutdown: Shutdown request shared with the signal handlers.
    """

    async def stop_when_requested() -> None:
        await shutdown.wait()
        server.should_exit = True

    stopper = asyncio.create_task(stop_when_requested())
    try:
        await server.serve()
    finally:
        stopper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await stopper
    logger.info("server_stopped", reason=shutdown.reason)
