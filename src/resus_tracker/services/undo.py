"""Snapshot stack for single-step undo."""

from dataclasses import dataclass

from resus_tracker.domain.arrest import ArrestSession
from resus_tracker.domain.events import Event


@dataclass(frozen=True)
class UndoSnapshot:
    """Session and event log captured before a mutating action."""

    session: ArrestSession
    events: tuple[Event, ...]


class UndoHistory:
    """LIFO stack of snapshots, optionally capped at ``limit`` entries."""

    def __init__(self, limit: int | None = None) -> None:
        if limit is not None and limit <= 0:
            raise ValueError("limit must be > 0")
        self._limit = limit
        self._stack: list[UndoSnapshot] = []

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def can_undo(self) -> bool:
        return bool(self._stack)

    def push(self, snapshot: UndoSnapshot) -> None:
        """Push a snapshot, dropping the oldest when over the cap."""
        self._stack.append(snapshot)
        if self._limit is not None and len(self._stack) > self._limit:
            del self._stack[0]

    def pop(self) -> UndoSnapshot | None:
        """Return the most recent snapshot, or None when empty."""
        if not self._stack:
            return None
        return self._stack.pop()

    def clear(self) -> None:
        self._stack.clear()
