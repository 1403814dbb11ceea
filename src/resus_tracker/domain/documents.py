"""Domain models for archived arrest logs."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class ArchivedArrest:
    """Logbook entry for an archived episode."""

    id: UUID
    start_time: datetime | None
    total_duration: int
    final_outcome: str
    document: dict[str, object]
