"""Wall-clock access for the arrest engine."""

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        """Return the current UTC instant."""


@dataclass
class SystemClock(Clock):
    """Clock backed by the host's wall clock."""

    def now(self) -> datetime:
        """Return the current UTC instant."""
        return datetime.now(tz=UTC)


def elapsed_since(start: datetime, now: datetime) -> int:
    """Return whole seconds between two instants, never negative."""
    seconds = (now - start).total_seconds()
    return max(0, math.floor(seconds))
