"""Periodic tick driving the arrest clock."""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class Ticker(Protocol):
    """Repeating timer owned by the arrest engine."""

    @property
    def running(self) -> bool:
        """Return True while ticks are scheduled."""

    def start(self, callback: TickCallback) -> None:
        """Begin calling ``callback`` periodically; no-op if already running."""

    def stop(self) -> None:
        """Stop ticking; no-op if already stopped."""


class AsyncioTicker(Ticker):
    """Ticker implemented as a task on the running event loop.

    Each tick only triggers a recomputation from wall-clock deltas, so a
    late or skipped tick never loses time.
    """

    def __init__(self, interval_seconds: float = 1.0) -> None:
        if interval_seconds <= 0.0:
            raise ValueError("interval_seconds must be > 0")
        self._interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: TickCallback) -> None:
        """Schedule ticks on the running loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(callback))
        logger.debug("Ticker started")

    def stop(self) -> None:
        """Cancel the tick task."""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.debug("Ticker stopped")

    async def aclose(self) -> None:
        """Cancel the tick task and wait for it to finish."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self, callback: TickCallback) -> None:
        while True:
            await asyncio.sleep(self._interval_seconds)
            try:
                callback()
            except Exception:
                logger.exception("Tick failed")
