"""Guided state machine for newborn life support."""

import logging
from dataclasses import dataclass, field, replace

from resus_tracker.domain.checklists import ChecklistItem
from resus_tracker.domain.events import Event, EventKind
from resus_tracker.domain.newborn import (
    FULL_FIO2,
    INFLATION_BREATH_TARGET,
    ROOM_AIR_FIO2,
    BirthType,
    NewbornSession,
    NewbornStep,
)
from resus_tracker.services.clock import Clock, elapsed_since
from resus_tracker.services.cues import CueSink
from resus_tracker.services.event_log import EventLog
from resus_tracker.services.persistence import PersistenceQueue
from resus_tracker.services.sessions import UnknownChecklistItemError
from resus_tracker.services.summary import SummaryExporter, build_summary
from resus_tracker.services.ticker import Ticker

logger = logging.getLogger(__name__)

NEWBORN_SUMMARY_TITLE = "eResus Newborn Life Support Summary"

_STABILISING_STEPS = (
    NewbornStep.CPAP,
    NewbornStep.VENTILATION_BREATHS,
    NewbornStep.CHEST_COMPRESSIONS,
    NewbornStep.DRUGS_AND_ACCESS,
)


class NewbornStepError(RuntimeError):
    """Raised when an action does not belong to the current step."""


@dataclass
class NewbornSessionService:
    """Walks one newborn resuscitation through the algorithm.

    The episode lives in memory only. Elapsed time is recomputed from the
    clock on every action and tick, and freezes once the episode ends.
    """

    clock: Clock
    ticker: Ticker
    persistence: PersistenceQueue
    cues: CueSink
    exporter: SummaryExporter
    _session: NewbornSession = field(init=False, default_factory=NewbornSession.fresh)
    _events: EventLog = field(init=False, default_factory=EventLog)
    _reassessment_alerted: bool = field(init=False, default=False)

    @property
    def session(self) -> NewbornSession:
        return self._session

    @property
    def events(self) -> list[Event]:
        """Return logged events, most recent first."""
        return self._events.entries()

    @property
    def chronological_events(self) -> list[Event]:
        return self._events.chronological()

    def summary(self) -> str:
        """Return the plain-text event summary."""
        birth_type = self._session.birth_type
        return build_summary(
            self._session.elapsed_seconds,
            self._events.chronological(),
            title=NEWBORN_SUMMARY_TITLE,
            total_label="Total Time",
            details=[f"Birth Type: {birth_type.label if birth_type else 'Unknown'}"],
        )

    def tick(self) -> None:
        """Refresh elapsed time and alert once when the heart rate check is due."""
        if not self._session.running:
            return
        self._sync_clock()
        if self._session.heart_rate_reassessment_due and not self._reassessment_alerted:
            self._reassessment_alerted = True
            self.cues.notification("warning")

    # Algorithm steps

    def start(self, birth_type: BirthType) -> None:
        """Start the clock for a birth of the given type."""
        self._require_step(NewbornStep.START)
        self._session = replace(
            self._session,
            step=NewbornStep.INITIAL_ASSESSMENT,
            birth_type=birth_type,
            started_at=self.clock.now(),
            elapsed_seconds=0,
            running=True,
        )
        self._log(f"Clock started - {birth_type.label} birth", EventKind.STATUS)
        self.cues.impact()
        self.ticker.start(self.tick)

    def complete_initial_assessment(self) -> None:
        """Record drying, stimulation and thermal care."""
        self._require_step(NewbornStep.INITIAL_ASSESSMENT)
        self._advance(NewbornStep.BREATHING_ASSESSMENT)
        self._log(
            "Initial assessment complete: Dried, stimulated, thermal care applied",
            EventKind.ASSESSMENT,
        )
        if self._session.birth_type is BirthType.PRETERM:
            self._log("Baby placed in plastic bag (preterm)", EventKind.ASSESSMENT)

    def assess_breathing(self, breathing: bool) -> None:
        """Branch to CPAP for a breathing baby, otherwise to inflation breaths."""
        self._require_step(NewbornStep.BREATHING_ASSESSMENT)
        if breathing:
            self._advance(NewbornStep.CPAP)
            self._log("Baby IS breathing - initiating CPAP", EventKind.ASSESSMENT)
        else:
            self._advance(NewbornStep.INFLATION_BREATHS)
            self._log(
                "Baby NOT breathing - proceeding to inflation breaths",
                EventKind.ASSESSMENT,
            )

    def report_stopped_breathing(self) -> None:
        """Leave CPAP for inflation breaths."""
        self._require_step(NewbornStep.CPAP)
        self._advance(NewbornStep.INFLATION_BREATHS)
        self._log(
            "Baby stopped breathing - moving to inflation breaths",
            EventKind.ASSESSMENT,
        )

    def log_inflation_breath(self) -> None:
        """Count one inflation breath, up to five per round."""
        self._require_step(NewbornStep.INFLATION_BREATHS)
        if self._session.inflation_breaths >= INFLATION_BREATH_TARGET:
            raise NewbornStepError("All inflation breaths already delivered")
        self._sync_clock()
        count = self._session.inflation_breaths + 1
        self._session = replace(self._session, inflation_breaths=count)
        self._log(f"Inflation breath {count} delivered", EventKind.INTERVENTION)
        if count >= INFLATION_BREATH_TARGET:
            self._log(
                f"{INFLATION_BREATH_TARGET} inflation breaths completed",
                EventKind.MILESTONE,
            )

    def reassess_after_inflation(self) -> None:
        """Move on to checking heart rate and chest rise."""
        self._require_step(NewbornStep.INFLATION_BREATHS)
        self._advance(NewbornStep.REASSESS_AFTER_INFLATION)
        self._log(
            "Reassessing heart rate and chest rise after inflation breaths",
            EventKind.ASSESSMENT,
        )

    def assess_chest_movement(self, moving: bool) -> None:
        """Start ventilation breaths if the chest moves, otherwise flag the airway."""
        self._require_step(NewbornStep.REASSESS_AFTER_INFLATION)
        self._sync_clock()
        if moving:
            self._session = replace(
                self._session,
                step=NewbornStep.VENTILATION_BREATHS,
                chest_moving=True,
                ventilation_started_at=self._session.elapsed_seconds,
            )
            self._reassessment_alerted = False
            self._log(
                "Chest IS moving - continuing ventilation breaths",
                EventKind.ASSESSMENT,
            )
        else:
            self._session = replace(self._session, chest_moving=False)
            self._log("Chest NOT moving - checking airway", EventKind.ASSESSMENT)

    def retry_inflation_breaths(self) -> None:
        """Start a fresh round of inflation breaths after airway adjustments."""
        self._require_step(NewbornStep.REASSESS_AFTER_INFLATION)
        self._sync_clock()
        self._session = replace(
            self._session, step=NewbornStep.INFLATION_BREATHS, inflation_breaths=0
        )
        self._log(
            "Retrying inflation breaths after airway adjustments",
            EventKind.INTERVENTION,
        )

    def start_compressions(self) -> None:
        """Begin 3:1 compressions with full oxygen after 30s of ventilation."""
        self._require_step(NewbornStep.VENTILATION_BREATHS)
        self._sync_clock()
        self._session = replace(
            self._session, step=NewbornStep.CHEST_COMPRESSIONS, fio2=FULL_FIO2
        )
        self._log(
            "HR <60 after 30s ventilation - starting chest compressions 3:1",
            EventKind.INTERVENTION,
        )
        self._log(f"Increase FiO2 to {FULL_FIO2}%", EventKind.INTERVENTION)

    def log_compression_cycle(self) -> None:
        """Count one cycle of fifteen 3:1 sets."""
        self._require_step(NewbornStep.CHEST_COMPRESSIONS)
        self._sync_clock()
        count = self._session.compression_cycles + 1
        self._session = replace(self._session, compression_cycles=count)
        self._log(
            f"Compression cycle {count} completed (15 sets of 3:1)",
            EventKind.INTERVENTION,
        )

    def escalate_to_drugs(self) -> None:
        """Move on to drugs and vascular access while HR stays below 60."""
        self._require_step(NewbornStep.CHEST_COMPRESSIONS)
        self._advance(NewbornStep.DRUGS_AND_ACCESS)
        self._log(
            "HR remains <60 - considering drugs and vascular access",
            EventKind.INTERVENTION,
        )

    def log_adrenaline(self) -> None:
        """Record an adrenaline dose."""
        self._require_step(NewbornStep.DRUGS_AND_ACCESS)
        self._sync_clock()
        count = self._session.adrenaline_count + 1
        self._session = replace(self._session, adrenaline_count=count)
        self._log(f"Adrenaline dose {count} given (10-30 mcg/kg IV)", EventKind.DRUG)

    def log_vascular_access(self) -> None:
        """Record umbilical or intraosseous access, once."""
        self._require_step(NewbornStep.DRUGS_AND_ACCESS)
        if self._session.vascular_access:
            raise NewbornStepError("Vascular access already recorded")
        self._sync_clock()
        self._session = replace(self._session, vascular_access=True)
        self._log("Vascular access obtained (UVC/IO)", EventKind.INTERVENTION)

    def log_volume(self) -> None:
        """Record the intravascular volume bolus, once."""
        self._require_step(NewbornStep.DRUGS_AND_ACCESS)
        if self._session.volume_given:
            raise NewbornStepError("Volume already given")
        self._sync_clock()
        self._session = replace(self._session, volume_given=True)
        self._log("Intravascular volume given (10 ml/kg 0.9% NaCl)", EventKind.DRUG)

    def stabilise(self) -> None:
        """Record a heart rate above 60 and switch to post-stabilisation care."""
        self._require_step(*_STABILISING_STEPS)
        self._advance(NewbornStep.STABILISED)
        self._log("Baby stabilised - HR >60", EventKind.STATUS)

    def end(self, should_export_summary: bool = False) -> str | None:
        """Stop the clock and close the episode.

        Returns the summary text when an export was requested. The export is
        queued and never blocks or fails the end.
        """
        self._require_running()
        self._sync_clock()
        self._session = replace(self._session, step=NewbornStep.ENDED, running=False)
        self.ticker.stop()
        self._log("Resuscitation ended", EventKind.STATUS)
        if not should_export_summary:
            return None
        summary = self.summary()
        self.persistence.submit("export newborn summary", self._export, summary)
        return summary

    def reset(self) -> None:
        """Discard the episode and wait for a new birth."""
        self.ticker.stop()
        self._session = NewbornSession.fresh()
        self._events.clear()
        self._reassessment_alerted = False
        logger.info("Newborn session reset")

    # Measurements

    def log_heart_rate(self, value: str | int) -> bool:
        """Record a heart rate; blank or invalid readings return False."""
        self._require_running()
        bpm = _parse_heart_rate(value)
        if bpm is None:
            return False
        self._sync_clock()
        self._log(f"Heart rate: {bpm} bpm", EventKind.ASSESSMENT)
        return True

    def set_fio2(self, percent: int) -> None:
        """Record a change of inspired oxygen concentration."""
        if not ROOM_AIR_FIO2 <= percent <= FULL_FIO2:
            raise ValueError(
                f"FiO2 must be between {ROOM_AIR_FIO2} and {FULL_FIO2} percent"
            )
        self._require_running()
        self._sync_clock()
        self._session = replace(self._session, fio2=percent)
        self._log(f"FiO2 changed to {percent}%", EventKind.INTERVENTION)

    # Checklists

    def toggle_chest_check(self, item_id: str) -> None:
        self._session = replace(
            self._session,
            chest_not_moving_checks=_toggle(
                self._session.chest_not_moving_checks, item_id
            ),
        )

    def toggle_consider_factor(self, item_id: str) -> None:
        self._session = replace(
            self._session,
            consider_factors=_toggle(self._session.consider_factors, item_id),
        )

    def toggle_post_stabilisation_task(self, item_id: str) -> None:
        self._session = replace(
            self._session,
            post_stabilisation_tasks=_toggle(
                self._session.post_stabilisation_tasks, item_id
            ),
        )

    # Internals

    def _require_step(self, *steps: NewbornStep) -> None:
        if self._session.step not in steps:
            allowed = ", ".join(step.value for step in steps)
            raise NewbornStepError(
                f"Action requires step {allowed}, current step is "
                f"{self._session.step.value}"
            )

    def _require_running(self) -> None:
        if not self._session.running:
            raise NewbornStepError("No newborn resuscitation in progress")

    def _advance(self, step: NewbornStep) -> None:
        self._sync_clock()
        self._session = replace(self._session, step=step)

    def _sync_clock(self) -> None:
        session = self._session
        if not session.running or session.started_at is None:
            return
        elapsed = elapsed_since(session.started_at, self.clock.now())
        if elapsed != session.elapsed_seconds:
            self._session = replace(session, elapsed_seconds=elapsed)

    def _log(self, message: str, kind: EventKind) -> Event:
        logger.info("[newborn %s] %s", kind.value, message)
        return self._events.append(message, kind, self._session.elapsed_seconds)

    def _export(self, summary: str) -> None:
        try:
            self.exporter.export(summary)
        except Exception:
            self.cues.notification("error")
            raise
        self.cues.notification("success")


def _toggle(
    items: tuple[ChecklistItem, ...], item_id: str
) -> tuple[ChecklistItem, ...]:
    if not any(item.id == item_id for item in items):
        raise UnknownChecklistItemError(item_id)
    return tuple(
        replace(item, is_completed=not item.is_completed)
        if item.id == item_id
        else item
        for item in items
    )


def _parse_heart_rate(value: str | int) -> int | None:
    try:
        bpm = int(str(value).strip())
    except ValueError:
        return None
    if bpm <= 0:
        return None
    return bpm
