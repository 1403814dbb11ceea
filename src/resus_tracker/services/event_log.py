"""Append-only clinical event log."""

from resus_tracker.domain.events import Event, EventKind


class EventLog:
    """Keeps events in insertion order and serves them newest first."""

    def __init__(self, events: tuple[Event, ...] = ()) -> None:
        self._events: list[Event] = list(events)

    def __len__(self) -> int:
        return len(self._events)

    def append(self, message: str, kind: EventKind, timestamp: int) -> Event:
        """Record a new event and return it."""
        event = Event(timestamp=timestamp, message=message, kind=kind)
        self._events.append(event)
        return event

    def entries(self) -> list[Event]:
        """Return events most recent first."""
        return list(reversed(self._events))

    def chronological(self) -> list[Event]:
        """Return events oldest first."""
        return list(self._events)

    def snapshot(self) -> tuple[Event, ...]:
        """Return an immutable copy of the log."""
        return tuple(self._events)

    def restore(self, events: tuple[Event, ...]) -> None:
        """Replace the log contents wholesale."""
        self._events = list(events)

    def clear(self) -> None:
        """Remove every event."""
        self._events = []
