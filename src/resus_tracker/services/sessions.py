"""State machine for a cardiac arrest episode."""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Protocol

from resus_tracker.domain.arrest import (
    AntiarrhythmicDrug,
    ArrestSession,
    ArrestState,
    UIState,
)
from resus_tracker.domain.checklists import (
    HYPOTHERMIA_ID,
    ChecklistItem,
    HypothermiaStatus,
)
from resus_tracker.domain.documents import ArchivedArrest
from resus_tracker.domain.dosage import PatientAgeCategory
from resus_tracker.domain.events import Event, EventKind
from resus_tracker.services.clock import Clock, elapsed_since
from resus_tracker.services.cues import CueSink
from resus_tracker.services.eligibility import DrugEligibility, evaluate
from resus_tracker.services.event_log import EventLog
from resus_tracker.services.persistence import PersistenceQueue
from resus_tracker.services.preferences import ProtocolSettings
from resus_tracker.services.snapshots import from_document, to_document
from resus_tracker.services.summary import SummaryExporter, build_summary
from resus_tracker.services.ticker import Ticker
from resus_tracker.services.undo import UndoHistory, UndoSnapshot

logger = logging.getLogger(__name__)

CYCLE_WARNING_SECONDS = 10
# Tolerance for tick jitter before a cycle counts as complete.
CYCLE_OVERRUN_TOLERANCE = -0.9

_RUNNING_PHASES = {ArrestState.ACTIVE, ArrestState.ROSC}


class ArrestRepository(Protocol):
    """Persistence interface for the live arrest document and its archive."""

    def save_state(self, document: dict[str, object]) -> None:
        """Upsert the live arrest document."""

    def load_state(self) -> dict[str, object] | None:
        """Return the live arrest document, if present."""

    def delete_state(self) -> None:
        """Delete the live arrest document."""

    def archive(self, document: dict[str, object]) -> None:
        """Append a finished arrest document to the archive."""

    def list_archives(self, limit: int) -> list[ArchivedArrest]:
        """Return archived arrests, newest start first."""


class ArrestStateError(RuntimeError):
    """Raised when an action is invalid for the current phase."""


class UnknownChecklistItemError(KeyError):
    """Raised when a checklist item id does not exist."""


@dataclass
class ArrestSessionService:
    """Drives one arrest episode: phases, CPR cycles, drugs, undo and logging.

    Every clinical action follows the same sequence: check the phase, push an
    undo snapshot, mutate, append to the event log, then queue a save. The
    periodic ``tick`` recomputes elapsed time from the clock and never pushes
    an undo snapshot.
    """

    repository: ArrestRepository
    clock: Clock
    ticker: Ticker
    persistence: PersistenceQueue
    cues: CueSink
    exporter: SummaryExporter
    settings: ProtocolSettings = field(default_factory=ProtocolSettings)
    undo_limit: int | None = None
    _session: ArrestSession = field(init=False)
    _events: EventLog = field(init=False)
    _history: UndoHistory = field(init=False)
    _restore_attempted: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        self._session = ArrestSession.pending(self.settings.cpr_cycle_duration_seconds)
        self._events = EventLog()
        self._history = UndoHistory(self.undo_limit)

    # Read-only views

    @property
    def session(self) -> ArrestSession:
        return self._session

    @property
    def events(self) -> list[Event]:
        """Return logged events, most recent first."""
        return self._events.entries()

    @property
    def chronological_events(self) -> list[Event]:
        return self._events.chronological()

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def undo_depth(self) -> int:
        return len(self._history)

    @property
    def eligibility(self) -> DrugEligibility:
        """Return drug availability derived from the current session."""
        return evaluate(self._session, self.settings.adrenaline_interval_seconds)

    def summary(self) -> str:
        """Return the plain-text event summary."""
        return build_summary(self._session.total_time, self._events.chronological())

    # Clock

    def tick(self) -> None:
        """Recompute elapsed time and advance the CPR cycle."""
        if self._session.started_at is None:
            return
        self._sync_clock()
        session = self._session
        if (
            session.phase is not ArrestState.ACTIVE
            or session.ui_state is not UIState.DEFAULT
        ):
            return
        cycle = self.settings.cpr_cycle_duration_seconds
        remaining = cycle - (session.total_time - session.cpr_cycle_anchor)
        if 0 < remaining <= CYCLE_WARNING_SECONDS:
            self.cues.impact("light")
        if remaining < CYCLE_OVERRUN_TOLERANCE:
            self.cues.notification("warning")
            self._log("CPR Cycle Complete", EventKind.CPR)
            self._session = replace(
                session, cpr_cycle_anchor=session.total_time, cpr_time=cycle
            )
            self._persist()
        else:
            self._session = replace(session, cpr_time=remaining)

    def apply_settings(self, settings: ProtocolSettings) -> None:
        """Swap in new protocol settings and re-base the countdown."""
        previous = self.settings
        self.settings = settings
        cycle = settings.cpr_cycle_duration_seconds
        if cycle == previous.cpr_cycle_duration_seconds:
            return
        session = self._session
        if session.phase is ArrestState.PENDING:
            self._session = replace(session, cpr_time=cycle)
        elif (
            session.phase is ArrestState.ACTIVE
            and session.ui_state is UIState.DEFAULT
        ):
            elapsed_in_cycle = session.total_time - session.cpr_cycle_anchor
            self._session = replace(session, cpr_time=cycle - elapsed_in_cycle)

    # Phase transitions

    def start_arrest(self) -> None:
        """Begin the arrest clock, honouring any pre-entered offset."""
        self._require_phase(ArrestState.PENDING)
        self._save_undo_state()
        now = self.clock.now()
        offset = self._session.time_offset_seconds
        started_at = now - timedelta(seconds=offset)
        self._session = replace(
            self._session,
            phase=ArrestState.ACTIVE,
            ui_state=UIState.DEFAULT,
            started_at=started_at,
            elapsed_seconds=elapsed_since(started_at, now),
            cpr_cycle_anchor=offset,
            cpr_time=self.settings.cpr_cycle_duration_seconds,
        )
        local_time = now.astimezone().strftime("%H:%M:%S")
        self._log(f"Arrest Started at {local_time}", EventKind.STATUS, timestamp=offset)
        self._sync_ticker()
        self._persist()

    def analyse_rhythm(self) -> None:
        """Pause CPR for a rhythm check."""
        self._require_phase(ArrestState.ACTIVE)
        self._require_ui_state(UIState.DEFAULT)
        self._save_undo_state()
        self._sync_clock()
        self._session = replace(self._session, ui_state=UIState.ANALYZING)
        self._log("Rhythm analysis. Pausing CPR.", EventKind.ANALYSIS)
        self._persist()

    def log_rhythm(self, rhythm: str, shockable: bool) -> None:
        """Record the analysed rhythm and advise a shock or resume CPR."""
        self._require_phase(ArrestState.ACTIVE)
        self._require_ui_state(UIState.ANALYZING)
        self._save_undo_state()
        self._sync_clock()
        self._log(f"Rhythm is {rhythm}", EventKind.RHYTHM)
        if shockable:
            self._session = replace(self._session, ui_state=UIState.SHOCK_ADVISED)
        else:
            self._resume_cpr()
        self._persist()

    def deliver_shock(self) -> None:
        """Record a delivered shock and resume CPR."""
        self._require_phase(ArrestState.ACTIVE)
        self._require_ui_state(UIState.SHOCK_ADVISED)
        self._save_undo_state()
        self._sync_clock()
        shock_count = self._session.shock_count + 1
        self._session = replace(self._session, shock_count=shock_count)
        self._log(f"Shock {shock_count} Delivered", EventKind.SHOCK)
        self._resume_cpr()
        self._persist()

    def achieve_rosc(self) -> None:
        """Record return of spontaneous circulation."""
        self._require_phase(ArrestState.ACTIVE)
        self._save_undo_state()
        self._sync_clock()
        self._session = replace(
            self._session, phase=ArrestState.ROSC, ui_state=UIState.DEFAULT
        )
        self._log("Return of Spontaneous Circulation (ROSC)", EventKind.STATUS)
        self._persist()

    def re_arrest(self) -> None:
        """Return from ROSC to an active arrest with a fresh CPR cycle."""
        self._require_phase(ArrestState.ROSC)
        self._save_undo_state()
        self._sync_clock()
        self._session = replace(
            self._session,
            phase=ArrestState.ACTIVE,
            ui_state=UIState.DEFAULT,
            cpr_cycle_anchor=self._session.total_time,
            cpr_time=self.settings.cpr_cycle_duration_seconds,
        )
        self._log("Patient Re-Arrested. CPR Resumed.", EventKind.STATUS)
        self._sync_ticker()
        self._persist()

    def end_arrest(self) -> None:
        """End the episode with the patient deceased."""
        self._require_phase(ArrestState.ACTIVE, ArrestState.ROSC)
        self._save_undo_state()
        self._sync_clock()
        self._session = replace(self._session, phase=ArrestState.ENDED)
        self._sync_ticker()
        self._log("Arrest Ended (Patient Deceased)", EventKind.STATUS)
        self._persist()

    def add_time_offset(self, seconds: int) -> None:
        """Add pre-arrival or missed time to the arrest clock."""
        if seconds <= 0:
            raise ValueError("seconds must be > 0")
        self._require_phase(ArrestState.PENDING, ArrestState.ACTIVE)
        self._save_undo_state()
        self._sync_clock()
        logged_at = self._session.total_time
        self._session = replace(
            self._session,
            time_offset_seconds=self._session.time_offset_seconds + seconds,
        )
        self._log(
            f"Time offset added: +{seconds / 60:g} min",
            EventKind.STATUS,
            timestamp=logged_at,
        )
        self._persist()

    # Interventions

    def log_adrenaline(
        self,
        dosage: str | None = None,
        age_category: PatientAgeCategory | None = None,
    ) -> None:
        """Record an adrenaline dose."""
        self._require_phase(*_RUNNING_PHASES)
        self._save_undo_state()
        self._sync_clock()
        count = self._session.adrenaline_count + 1
        self._session = replace(
            self._session,
            adrenaline_count=count,
            last_adrenaline_time=self._session.total_time,
        )
        self._record_age_category(age_category)
        self._log(
            f"Adrenaline{self._dosage_text(dosage)} Given - Dose {count}",
            EventKind.DRUG,
        )
        self._persist()

    def log_amiodarone(
        self,
        dosage: str | None = None,
        age_category: PatientAgeCategory | None = None,
    ) -> None:
        """Record an amiodarone dose, committing to amiodarone."""
        self._require_phase(*_RUNNING_PHASES)
        self._save_undo_state()
        self._sync_clock()
        session = self._session
        count = session.amiodarone_count + 1
        first_dose_shocks = session.shock_count_at_first_amiodarone
        if count == 1:
            first_dose_shocks = session.shock_count
        self._session = replace(
            session,
            amiodarone_count=count,
            antiarrhythmic_given=AntiarrhythmicDrug.AMIODARONE,
            shock_count_at_first_amiodarone=first_dose_shocks,
        )
        self._record_age_category(age_category)
        self._log(
            f"Amiodarone{self._dosage_text(dosage)} Given - Dose {count}",
            EventKind.DRUG,
        )
        self._persist()

    def log_lidocaine(
        self,
        dosage: str | None = None,
        age_category: PatientAgeCategory | None = None,
    ) -> None:
        """Record a lidocaine dose, committing to lidocaine."""
        self._require_phase(*_RUNNING_PHASES)
        self._save_undo_state()
        self._sync_clock()
        count = self._session.lidocaine_count + 1
        self._session = replace(
            self._session,
            lidocaine_count=count,
            antiarrhythmic_given=AntiarrhythmicDrug.LIDOCAINE,
        )
        self._record_age_category(age_category)
        self._log(
            f"Lidocaine{self._dosage_text(dosage)} Given - Dose {count}",
            EventKind.DRUG,
        )
        self._persist()

    def log_other_drug(self, drug: str, dosage: str | None = None) -> None:
        """Record any other drug by name."""
        self._require_phase(*_RUNNING_PHASES)
        self._save_undo_state()
        self._sync_clock()
        self._log(f"{drug}{self._dosage_text(dosage)} Given", EventKind.DRUG)
        self._persist()

    def log_airway_placed(self) -> None:
        """Record placement of an advanced airway."""
        self._require_phase(*_RUNNING_PHASES)
        self._save_undo_state()
        self._sync_clock()
        self._session = replace(self._session, airway_placed=True)
        self._log("Advanced Airway Placed", EventKind.AIRWAY)
        self._persist()

    def log_etco2(self, value: str | float) -> bool:
        """Record an end-tidal CO2 reading.

        Empty, non-numeric or non-positive readings are ignored and return
        False without touching the session or the undo history.
        """
        self._require_phase(*_RUNNING_PHASES)
        reading = _parse_etco2(value)
        if reading is None:
            return False
        self._save_undo_state()
        self._sync_clock()
        self._log(f"ETCO2: {reading:g} mmHg", EventKind.ETCO2)
        self._persist()
        return True

    # Checklists

    def toggle_checklist_item(self, item_id: str) -> None:
        """Flip a reversible cause between checked and unchecked."""
        item = _find_item(self._session.reversible_causes, item_id)
        self._save_undo_state()
        self._sync_clock()
        causes = _toggle(self._session.reversible_causes, item_id)
        self._session = replace(self._session, reversible_causes=causes)
        self._log(f"{item.name} {_check_label(item)}", EventKind.CAUSE)
        self._persist()

    def set_hypothermia_status(self, status: HypothermiaStatus) -> None:
        """Record the patient's temperature classification."""
        _find_item(self._session.reversible_causes, HYPOTHERMIA_ID)
        self._save_undo_state()
        self._sync_clock()
        causes = tuple(
            replace(
                cause,
                hypothermia_status=status,
                is_completed=status is not HypothermiaStatus.NONE,
            )
            if cause.id == HYPOTHERMIA_ID
            else cause
            for cause in self._session.reversible_causes
        )
        self._session = replace(self._session, reversible_causes=causes)
        self._log(f"Hypothermia status set to: {status.value}", EventKind.CAUSE)
        self._persist()

    def toggle_rosc_task(self, item_id: str) -> None:
        """Flip a post-ROSC care task."""
        item = _find_item(self._session.post_rosc_tasks, item_id)
        self._save_undo_state()
        self._sync_clock()
        tasks = _toggle(self._session.post_rosc_tasks, item_id)
        self._session = replace(self._session, post_rosc_tasks=tasks)
        self._log(f"Post-ROSC task: {item.name} {_check_label(item)}", EventKind.STATUS)
        self._persist()

    def toggle_mortem_task(self, item_id: str) -> None:
        """Flip a post-mortem task."""
        item = _find_item(self._session.post_mortem_tasks, item_id)
        self._save_undo_state()
        self._sync_clock()
        tasks = _toggle(self._session.post_mortem_tasks, item_id)
        self._session = replace(self._session, post_mortem_tasks=tasks)
        self._log(
            f"Post-mortem task: {item.name} {_check_label(item)}", EventKind.STATUS
        )
        self._persist()

    # History

    def undo(self) -> bool:
        """Restore the state before the last action; False when nothing to undo."""
        snapshot = self._history.pop()
        if snapshot is None:
            return False
        self._session = snapshot.session
        self._events.restore(snapshot.events)
        self._sync_ticker()
        self._persist()
        logger.info("Undid last action")
        return True

    def perform_reset(
        self, should_archive: bool = False, should_export_summary: bool = False
    ) -> str | None:
        """Close out the episode and return to a fresh pending session.

        Export and archive calls are queued and never block or fail the reset.
        Returns the summary text when an export was requested.
        """
        summary = None
        if should_export_summary:
            summary = self.summary()
            self.persistence.submit("export arrest summary", self._export, summary)
        if should_archive and self._session.started_at is not None:
            document = self._document()
            self.persistence.submit(
                "archive arrest log", self._archive_and_delete, document
            )
        else:
            self.persistence.submit("delete arrest log", self.repository.delete_state)
        self.ticker.stop()
        self._session = ArrestSession.pending(self.settings.cpr_cycle_duration_seconds)
        self._events.clear()
        self._history.clear()
        logger.info("Arrest session reset (archived=%s)", should_archive)
        return summary

    def restore(self) -> bool:
        """Load a stored session once, only into a fresh pending session."""
        if self._restore_attempted:
            return False
        self._restore_attempted = True
        try:
            document = self.repository.load_state()
        except Exception:
            logger.exception("Failed to load arrest state")
            return False
        if not document or not document.get("start_time"):
            return False
        if (
            self._session.phase is not ArrestState.PENDING
            or self._session.started_at is not None
        ):
            logger.info("Local session already in progress, skipping restore")
            return False
        try:
            session, events = from_document(
                document, self.settings.cpr_cycle_duration_seconds
            )
        except (KeyError, TypeError, ValueError, OverflowError, OSError):
            logger.exception("Stored arrest state is invalid, starting fresh")
            return False
        self._session = session
        self._events.restore(events)
        self._sync_clock()
        self._sync_ticker()
        logger.info("Restored arrest session in phase %s", session.phase.value)
        return True

    # Internals

    def _require_phase(self, *phases: ArrestState) -> None:
        if self._session.phase not in phases:
            allowed = ", ".join(phase.value for phase in phases)
            raise ArrestStateError(
                f"Action requires phase {allowed}, current phase is "
                f"{self._session.phase.value}"
            )

    def _require_ui_state(self, ui_state: UIState) -> None:
        if self._session.ui_state is not ui_state:
            raise ArrestStateError(
                f"Action requires {ui_state.value}, current state is "
                f"{self._session.ui_state.value}"
            )

    def _save_undo_state(self) -> None:
        self._history.push(
            UndoSnapshot(session=self._session, events=self._events.snapshot())
        )

    def _sync_clock(self) -> None:
        started_at = self._session.started_at
        if started_at is None:
            return
        elapsed = elapsed_since(started_at, self.clock.now())
        if elapsed != self._session.elapsed_seconds:
            self._session = replace(self._session, elapsed_seconds=elapsed)

    def _sync_ticker(self) -> None:
        if self._session.phase in _RUNNING_PHASES:
            self.ticker.start(self.tick)
        else:
            self.ticker.stop()

    def _resume_cpr(self) -> None:
        self._session = replace(
            self._session,
            ui_state=UIState.DEFAULT,
            cpr_cycle_anchor=self._session.total_time,
            cpr_time=self.settings.cpr_cycle_duration_seconds,
        )
        self._log("Resuming CPR.", EventKind.CPR)

    def _log(
        self, message: str, kind: EventKind, timestamp: int | None = None
    ) -> Event:
        logged_at = self._session.total_time if timestamp is None else timestamp
        logger.info("[%s] %s", kind.value, message)
        event = self._events.append(message, kind, logged_at)
        self.cues.impact()
        return event

    def _dosage_text(self, dosage: str | None) -> str:
        if self.settings.show_dosage_prompts and dosage:
            return f" ({dosage})"
        return ""

    def _record_age_category(self, age_category: PatientAgeCategory | None) -> None:
        if age_category is not None and self._session.patient_age_category is None:
            self._session = replace(self._session, patient_age_category=age_category)

    def _document(self) -> dict[str, object]:
        return to_document(self._session, self._events.chronological())

    def _persist(self) -> None:
        self.persistence.submit(
            "save arrest state", self.repository.save_state, self._document()
        )

    def _export(self, summary: str) -> None:
        try:
            self.exporter.export(summary)
        except Exception:
            self.cues.notification("error")
            raise
        self.cues.notification("success")

    def _archive_and_delete(self, document: dict[str, object]) -> None:
        self.repository.archive(document)
        self.repository.delete_state()


def _find_item(items: tuple[ChecklistItem, ...], item_id: str) -> ChecklistItem:
    for item in items:
        if item.id == item_id:
            return item
    raise UnknownChecklistItemError(item_id)


def _toggle(
    items: tuple[ChecklistItem, ...], item_id: str
) -> tuple[ChecklistItem, ...]:
    return tuple(
        replace(item, is_completed=not item.is_completed)
        if item.id == item_id
        else item
        for item in items
    )


def _check_label(item: ChecklistItem) -> str:
    """Return the label for the state the item is about to enter."""
    return "unchecked" if item.is_completed else "checked"


def _parse_etco2(value: str | float) -> float | None:
    try:
        reading = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(reading) or reading <= 0:
        return None
    return reading
