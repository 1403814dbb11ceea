"""Plain-text resuscitation summaries."""

import math
from collections.abc import Iterable, Sequence
from typing import Protocol

from resus_tracker.domain.events import Event

ARREST_SUMMARY_TITLE = "eResus Event Summary"
EVENT_LOG_DIVIDER = "--- Event Log ---"


class SummaryExporter(Protocol):
    """Destination for exported summaries (clipboard, file, ...)."""

    def export(self, text: str) -> None:
        """Deliver a summary text."""


def format_clock(seconds: float) -> str:
    """Format seconds as MM:SS, flooring and clamping at zero."""
    total = max(0, math.floor(seconds))
    minutes, remainder = divmod(total, 60)
    return f"{minutes:02d}:{remainder:02d}"


def build_summary(
    total_time: int,
    events: Iterable[Event],
    title: str = ARREST_SUMMARY_TITLE,
    total_label: str = "Total Arrest Time",
    details: Sequence[str] = (),
) -> str:
    """Build a summary from events given oldest first.

    The text opens with a title and the total time, then any extra detail
    lines, then one ``[MM:SS] message`` line per event under a divider.
    """
    lines = [title, f"{total_label}: {format_clock(total_time)}", *details]
    lines.extend(["", EVENT_LOG_DIVIDER])
    lines.extend(
        f"[{format_clock(event.timestamp)}] {event.message}" for event in events
    )
    return "\n".join(lines)
