"""Domain models for a newborn life support episode."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from resus_tracker.domain.checklists import ChecklistItem

ROOM_AIR_FIO2 = 21
FULL_FIO2 = 100
INFLATION_BREATH_TARGET = 5
VENTILATION_REASSESS_SECONDS = 30


class NewbornStep(StrEnum):
    """Stage of the guided newborn algorithm."""

    START = "START"
    INITIAL_ASSESSMENT = "INITIAL_ASSESSMENT"
    BREATHING_ASSESSMENT = "BREATHING_ASSESSMENT"
    CPAP = "CPAP"
    INFLATION_BREATHS = "INFLATION_BREATHS"
    REASSESS_AFTER_INFLATION = "REASSESS_AFTER_INFLATION"
    VENTILATION_BREATHS = "VENTILATION_BREATHS"
    CHEST_COMPRESSIONS = "CHEST_COMPRESSIONS"
    DRUGS_AND_ACCESS = "DRUGS_AND_ACCESS"
    STABILISED = "STABILISED"
    ENDED = "ENDED"


class BirthType(StrEnum):
    """Gestation band chosen when the clock starts."""

    PRETERM = "PRETERM"
    TERM = "TERM"

    @property
    def label(self) -> str:
        if self is BirthType.PRETERM:
            return "Preterm (<32 weeks)"
        return "Term/Near-term"


@dataclass(frozen=True)
class SpO2Target:
    """Acceptable pre-ductal saturation at a minute mark."""

    time: str
    target: str


SPO2_TARGETS = (
    SpO2Target("2 min", "60%"),
    SpO2Target("3 min", "70-75%"),
    SpO2Target("5 min", "80-85%"),
    SpO2Target("10 min", "85-95%"),
)

CHEST_NOT_MOVING_TEMPLATE = (
    ChecklistItem("mask", "Check mask seal"),
    ChecklistItem("head", "Reposition head & jaw"),
    ChecklistItem("twoperson", "2-person airway support"),
    ChecklistItem("suction", "Consider suction (if visible obstruction)"),
    ChecklistItem("oropharyngeal", "Consider oropharyngeal airway"),
)

POST_STABILISATION_TEMPLATE = (
    ChecklistItem("parents", "Update parents"),
    ChecklistItem("records", "Complete records"),
    ChecklistItem("debrief", "Debrief team"),
    ChecklistItem("temp", "Check temperature"),
    ChecklistItem("glucose", "Check blood glucose"),
    ChecklistItem("transfer", "Arrange appropriate transfer/care"),
)

CONSIDER_FACTORS_TEMPLATE = (
    ChecklistItem("hypovolaemia", "Hypovolaemia"),
    ChecklistItem("pneumothorax", "Pneumothorax"),
    ChecklistItem("congenital", "Congenital abnormality"),
    ChecklistItem("glucose", "Check blood glucose"),
)


@dataclass(frozen=True)
class NewbornSession:
    """State of one newborn resuscitation.

    ``ventilation_started_at`` is the elapsed second at which ventilation
    breaths began; the heart rate is due for reassessment 30 seconds later.
    """

    step: NewbornStep
    birth_type: BirthType | None
    started_at: datetime | None
    elapsed_seconds: int
    running: bool
    inflation_breaths: int
    chest_moving: bool | None
    ventilation_started_at: int | None
    compression_cycles: int
    fio2: int
    adrenaline_count: int
    volume_given: bool
    vascular_access: bool
    chest_not_moving_checks: tuple[ChecklistItem, ...]
    post_stabilisation_tasks: tuple[ChecklistItem, ...]
    consider_factors: tuple[ChecklistItem, ...]

    @classmethod
    def fresh(cls) -> "NewbornSession":
        """Return a session waiting for the birth type to be chosen."""
        return cls(
            step=NewbornStep.START,
            birth_type=None,
            started_at=None,
            elapsed_seconds=0,
            running=False,
            inflation_breaths=0,
            chest_moving=None,
            ventilation_started_at=None,
            compression_cycles=0,
            fio2=ROOM_AIR_FIO2,
            adrenaline_count=0,
            volume_given=False,
            vascular_access=False,
            chest_not_moving_checks=CHEST_NOT_MOVING_TEMPLATE,
            post_stabilisation_tasks=POST_STABILISATION_TEMPLATE,
            consider_factors=CONSIDER_FACTORS_TEMPLATE,
        )

    @property
    def ventilation_elapsed(self) -> int:
        if self.ventilation_started_at is None:
            return 0
        return self.elapsed_seconds - self.ventilation_started_at

    @property
    def heart_rate_reassessment_due(self) -> bool:
        return (
            self.step is NewbornStep.VENTILATION_BREATHS
            and self.ventilation_elapsed >= VENTILATION_REASSESS_SECONDS
        )
