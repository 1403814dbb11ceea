"""Drug eligibility and reminder rules.

Every value here is derived from the current session on demand. Nothing is
stored, so the rules can never drift from the counters they read.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from resus_tracker.domain.arrest import AntiarrhythmicDrug, ArrestSession
from resus_tracker.domain.checklists import (
    HYPOTHERMIA_ID,
    ChecklistItem,
    HypothermiaStatus,
)

FIRST_ANTIARRHYTHMIC_SHOCKS = 3
SECOND_ANTIARRHYTHMIC_SHOCKS = 5
AMIODARONE_REMINDER_SHOCK_GAP = 2


@dataclass(frozen=True)
class DrugEligibility:
    """Derived drug availability and prompts for the current session."""

    hypothermia_status: HypothermiaStatus
    adrenaline_available: bool
    amiodarone_available: bool
    lidocaine_available: bool
    adrenaline_due_in: int | None
    show_amiodarone_reminder: bool
    show_amiodarone_first_dose_prompt: bool
    show_adrenaline_prompt: bool


def hypothermia_status(causes: Iterable[ChecklistItem]) -> HypothermiaStatus:
    """Return the hypothermia status recorded on the reversible causes."""
    for cause in causes:
        if cause.id == HYPOTHERMIA_ID:
            return cause.hypothermia_status
    return HypothermiaStatus.NONE


def is_adrenaline_available(session: ArrestSession) -> bool:
    status = hypothermia_status(session.reversible_causes)
    return status is not HypothermiaStatus.SEVERE


def _dose_due_by_shocks(shock_count: int, dose_count: int) -> bool:
    return (shock_count >= FIRST_ANTIARRHYTHMIC_SHOCKS and dose_count == 0) or (
        shock_count >= SECOND_ANTIARRHYTHMIC_SHOCKS and dose_count == 1
    )


def is_amiodarone_available(session: ArrestSession) -> bool:
    return (
        _dose_due_by_shocks(session.shock_count, session.amiodarone_count)
        and session.antiarrhythmic_given is not AntiarrhythmicDrug.LIDOCAINE
        and is_adrenaline_available(session)
    )


def is_lidocaine_available(session: ArrestSession) -> bool:
    return (
        _dose_due_by_shocks(session.shock_count, session.lidocaine_count)
        and session.antiarrhythmic_given is not AntiarrhythmicDrug.AMIODARONE
    )


def adrenaline_due_in(session: ArrestSession, interval_seconds: int) -> int | None:
    """Return seconds until the next adrenaline dose.

    None means no dose has been given yet; zero or less means due now.
    Moderate hypothermia doubles the dosing interval.
    """
    if session.last_adrenaline_time is None:
        return None
    interval = interval_seconds
    if hypothermia_status(session.reversible_causes) is HypothermiaStatus.MODERATE:
        interval *= 2
    return interval - (session.total_time - session.last_adrenaline_time)


def should_show_amiodarone_reminder(session: ArrestSession) -> bool:
    return (
        session.amiodarone_count == 1
        and session.shock_count_at_first_amiodarone is not None
        and session.shock_count
        >= session.shock_count_at_first_amiodarone + AMIODARONE_REMINDER_SHOCK_GAP
    )


def should_show_amiodarone_first_dose_prompt(session: ArrestSession) -> bool:
    return is_amiodarone_available(session) and session.amiodarone_count == 0


def should_show_adrenaline_prompt(session: ArrestSession) -> bool:
    return (
        session.shock_count >= FIRST_ANTIARRHYTHMIC_SHOCKS
        and session.adrenaline_count == 0
        and is_adrenaline_available(session)
    )


def evaluate(
    session: ArrestSession, adrenaline_interval_seconds: int
) -> DrugEligibility:
    """Compute every derived drug view for a session."""
    return DrugEligibility(
        hypothermia_status=hypothermia_status(session.reversible_causes),
        adrenaline_available=is_adrenaline_available(session),
        amiodarone_available=is_amiodarone_available(session),
        lidocaine_available=is_lidocaine_available(session),
        adrenaline_due_in=adrenaline_due_in(session, adrenaline_interval_seconds),
        show_amiodarone_reminder=should_show_amiodarone_reminder(session),
        show_amiodarone_first_dose_prompt=should_show_amiodarone_first_dose_prompt(
            session
        ),
        show_adrenaline_prompt=should_show_adrenaline_prompt(session),
    )
