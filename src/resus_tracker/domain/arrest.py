"""Domain models for a resuscitation episode."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from resus_tracker.domain.checklists import (
    POST_MORTEM_TASKS_TEMPLATE,
    POST_ROSC_TASKS_TEMPLATE,
    REVERSIBLE_CAUSES_TEMPLATE,
    ChecklistItem,
)
from resus_tracker.domain.dosage import PatientAgeCategory


class ArrestState(StrEnum):
    """Top-level phase of an episode."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    ROSC = "ROSC"
    ENDED = "ENDED"


class UIState(StrEnum):
    """Rhythm-check sub-state while an arrest is running."""

    DEFAULT = "DEFAULT"
    ANALYZING = "ANALYZING"
    SHOCK_ADVISED = "SHOCK_ADVISED"


class AntiarrhythmicDrug(StrEnum):
    """Antiarrhythmic committed to for the episode."""

    NONE = "NONE"
    AMIODARONE = "AMIODARONE"
    LIDOCAINE = "LIDOCAINE"


@dataclass(frozen=True)
class ArrestSession:
    """Complete state of one arrest episode.

    Instances are immutable; the state machine swaps in a new value for every
    mutation, so any retained instance is an independent snapshot.
    """

    phase: ArrestState
    ui_state: UIState
    started_at: datetime | None
    elapsed_seconds: int
    time_offset_seconds: int
    cpr_cycle_anchor: int
    cpr_time: int
    shock_count: int
    adrenaline_count: int
    amiodarone_count: int
    lidocaine_count: int
    last_adrenaline_time: int | None
    antiarrhythmic_given: AntiarrhythmicDrug
    shock_count_at_first_amiodarone: int | None
    airway_placed: bool
    reversible_causes: tuple[ChecklistItem, ...]
    post_rosc_tasks: tuple[ChecklistItem, ...]
    post_mortem_tasks: tuple[ChecklistItem, ...]
    patient_age_category: PatientAgeCategory | None

    @classmethod
    def pending(cls, cpr_cycle_duration: int) -> "ArrestSession":
        """Return a fresh session awaiting the start of an arrest."""
        return cls(
            phase=ArrestState.PENDING,
            ui_state=UIState.DEFAULT,
            started_at=None,
            elapsed_seconds=0,
            time_offset_seconds=0,
            cpr_cycle_anchor=0,
            cpr_time=cpr_cycle_duration,
            shock_count=0,
            adrenaline_count=0,
            amiodarone_count=0,
            lidocaine_count=0,
            last_adrenaline_time=None,
            antiarrhythmic_given=AntiarrhythmicDrug.NONE,
            shock_count_at_first_amiodarone=None,
            airway_placed=False,
            reversible_causes=REVERSIBLE_CAUSES_TEMPLATE,
            post_rosc_tasks=POST_ROSC_TASKS_TEMPLATE,
            post_mortem_tasks=POST_MORTEM_TASKS_TEMPLATE,
            patient_age_category=None,
        )

    @property
    def total_time(self) -> int:
        """Clinical time including any manual offset."""
        return self.elapsed_seconds + self.time_offset_seconds

    @property
    def final_outcome(self) -> str:
        """Outcome label recorded on persisted documents."""
        if self.phase is ArrestState.ROSC:
            return "ROSC"
        if self.phase is ArrestState.ENDED:
            return "Deceased"
        return "Incomplete"
