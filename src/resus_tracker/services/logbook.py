"""Logbook service over archived arrests."""

from dataclasses import dataclass

from resus_tracker.services.sessions import ArrestRepository
from resus_tracker.services.summary import format_clock

MAX_LOGBOOK_LIMIT = 200


@dataclass
class LogbookService:
    """Service for browsing archived arrest logs."""

    repository: ArrestRepository

    def list_entries(self, limit: int = 50) -> list[dict[str, object]]:
        """Return archived arrests, newest first."""
        if limit <= 0:
            raise ValueError("limit must be > 0")
        archives = self.repository.list_archives(min(limit, MAX_LOGBOOK_LIMIT))
        return [
            {
                "id": str(archive.id),
                "start_time": (
                    archive.start_time.isoformat() if archive.start_time else None
                ),
                "total_duration": archive.total_duration,
                "duration": format_clock(archive.total_duration),
                "final_outcome": archive.final_outcome,
                "event_count": len(archive.document.get("events") or []),
            }
            for archive in archives
        ]
