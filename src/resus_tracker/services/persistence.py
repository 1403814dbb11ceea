"""Fire-and-forget dispatch of storage calls."""

import logging
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor

logger = logging.getLogger(__name__)


class PersistenceQueue:
    """Runs storage calls off the caller's path and logs their failures.

    With an executor, calls are queued and the caller returns immediately.
    A single-worker executor keeps writes in submission order. Without one,
    calls run inline; failures are still logged and never raised.
    """

    def __init__(self, executor: Executor | None = None) -> None:
        self._executor = executor

    @classmethod
    def create(cls) -> "PersistenceQueue":
        """Create a queue backed by a single background worker."""
        return cls(ThreadPoolExecutor(max_workers=1, thread_name_prefix="persist"))

    def submit(
        self, description: str, fn: Callable[..., object], *args: object
    ) -> None:
        """Schedule ``fn(*args)`` without waiting for it."""
        if self._executor is None:
            try:
                fn(*args)
            except Exception:
                logger.exception("Failed to %s", description)
            return
        future = self._executor.submit(fn, *args)
        future.add_done_callback(lambda done: _log_failure(description, done))

    def close(self) -> None:
        """Wait for queued calls to finish and release the worker."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)


def _log_failure(description: str, future: Future) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.error("Failed to %s", description, exc_info=error)
