"""Domain models for the clinical event log."""

from dataclasses import dataclass, field
from enum import StrEnum
from uuid import UUID, uuid4


class EventKind(StrEnum):
    """Category of a logged clinical event."""

    STATUS = "STATUS"
    CPR = "CPR"
    SHOCK = "SHOCK"
    ANALYSIS = "ANALYSIS"
    RHYTHM = "RHYTHM"
    DRUG = "DRUG"
    AIRWAY = "AIRWAY"
    ETCO2 = "ETCO2"
    CAUSE = "CAUSE"
    ASSESSMENT = "ASSESSMENT"
    INTERVENTION = "INTERVENTION"
    MILESTONE = "MILESTONE"


@dataclass(frozen=True)
class Event:
    """A timestamped entry in a resuscitation event log."""

    timestamp: int
    message: str
    kind: EventKind
    id: UUID = field(default_factory=uuid4)
