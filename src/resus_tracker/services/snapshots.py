"""Translation between arrest sessions and persisted documents."""

from collections.abc import Iterable
from datetime import UTC, datetime
from uuid import UUID, uuid4

from resus_tracker.domain.arrest import (
    AntiarrhythmicDrug,
    ArrestSession,
    ArrestState,
    UIState,
)
from resus_tracker.domain.checklists import (
    POST_MORTEM_TASKS_TEMPLATE,
    POST_ROSC_TASKS_TEMPLATE,
    REVERSIBLE_CAUSES_TEMPLATE,
    ChecklistItem,
    HypothermiaStatus,
)
from resus_tracker.domain.dosage import PatientAgeCategory
from resus_tracker.domain.events import Event, EventKind


def to_document(session: ArrestSession, events: Iterable[Event]) -> dict[str, object]:
    """Serialize a session and its chronological events."""
    return {
        "start_time": session.started_at.timestamp() if session.started_at else None,
        "total_duration": session.total_time,
        "final_outcome": session.final_outcome,
        "events": [_event_to_dict(event) for event in events],
        "arrest_state": session.phase.value,
        "master_time": session.elapsed_seconds,
        "cpr_time": session.cpr_time,
        "time_offset": session.time_offset_seconds,
        "ui_state": session.ui_state.value,
        "shock_count": session.shock_count,
        "adrenaline_count": session.adrenaline_count,
        "amiodarone_count": session.amiodarone_count,
        "lidocaine_count": session.lidocaine_count,
        "airway_placed": session.airway_placed,
        "antiarrhythmic_given": session.antiarrhythmic_given.value,
        "last_adrenaline_time": session.last_adrenaline_time,
        "shock_count_for_amiodarone_1": session.shock_count_at_first_amiodarone,
        "reversible_causes": _items_to_list(session.reversible_causes),
        "post_rosc_tasks": _items_to_list(session.post_rosc_tasks),
        "post_mortem_tasks": _items_to_list(session.post_mortem_tasks),
        "patient_age_category": (
            session.patient_age_category.value if session.patient_age_category else None
        ),
        "cpr_cycle_start_time": session.cpr_cycle_anchor,
    }


def from_document(
    document: dict[str, object], cpr_cycle_duration: int
) -> tuple[ArrestSession, tuple[Event, ...]]:
    """Deserialize a stored document, filling missing fields with defaults."""
    start_time = document.get("start_time")
    age = document.get("patient_age_category")
    last_adrenaline = document.get("last_adrenaline_time")
    first_amiodarone = document.get("shock_count_for_amiodarone_1")
    session = ArrestSession(
        phase=ArrestState(document.get("arrest_state") or ArrestState.PENDING),
        ui_state=UIState(document.get("ui_state") or UIState.DEFAULT),
        started_at=(
            datetime.fromtimestamp(float(start_time), tz=UTC)
            if isinstance(start_time, int | float)
            else None
        ),
        elapsed_seconds=_int(document.get("master_time")),
        time_offset_seconds=_int(document.get("time_offset")),
        cpr_cycle_anchor=_int(document.get("cpr_cycle_start_time")),
        cpr_time=_int(document.get("cpr_time"), cpr_cycle_duration),
        shock_count=_int(document.get("shock_count")),
        adrenaline_count=_int(document.get("adrenaline_count")),
        amiodarone_count=_int(document.get("amiodarone_count")),
        lidocaine_count=_int(document.get("lidocaine_count")),
        last_adrenaline_time=(
            int(last_adrenaline) if isinstance(last_adrenaline, int | float) else None
        ),
        antiarrhythmic_given=AntiarrhythmicDrug(
            document.get("antiarrhythmic_given") or AntiarrhythmicDrug.NONE
        ),
        shock_count_at_first_amiodarone=(
            int(first_amiodarone) if isinstance(first_amiodarone, int | float) else None
        ),
        airway_placed=bool(document.get("airway_placed", False)),
        reversible_causes=_items_from_list(
            document.get("reversible_causes"), REVERSIBLE_CAUSES_TEMPLATE
        ),
        post_rosc_tasks=_items_from_list(
            document.get("post_rosc_tasks"), POST_ROSC_TASKS_TEMPLATE
        ),
        post_mortem_tasks=_items_from_list(
            document.get("post_mortem_tasks"), POST_MORTEM_TASKS_TEMPLATE
        ),
        patient_age_category=PatientAgeCategory(age) if isinstance(age, str) else None,
    )
    raw_events = document.get("events")
    events = tuple(
        _event_from_dict(item)
        for item in (raw_events if isinstance(raw_events, list) else [])
        if isinstance(item, dict)
    )
    return session, events


def _int(value: object, default: int = 0) -> int:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return int(value)
    return default


def _event_to_dict(event: Event) -> dict[str, object]:
    return {
        "id": str(event.id),
        "timestamp": event.timestamp,
        "message": event.message,
        "type": event.kind.value,
    }


def _event_from_dict(item: dict[str, object]) -> Event:
    raw_id = item.get("id")
    return Event(
        timestamp=_int(item.get("timestamp")),
        message=str(item.get("message", "")),
        kind=EventKind(item.get("type") or EventKind.STATUS),
        id=UUID(raw_id) if isinstance(raw_id, str) else uuid4(),
    )


def _items_to_list(items: tuple[ChecklistItem, ...]) -> list[dict[str, object]]:
    return [
        {
            "id": item.id,
            "name": item.name,
            "is_completed": item.is_completed,
            "hypothermia_status": item.hypothermia_status.value,
        }
        for item in items
    ]


def _items_from_list(
    raw: object, template: tuple[ChecklistItem, ...]
) -> tuple[ChecklistItem, ...]:
    if not isinstance(raw, list):
        return template
    return tuple(
        ChecklistItem(
            id=str(item["id"]),
            name=str(item.get("name", "")),
            is_completed=bool(item.get("is_completed", False)),
            hypothermia_status=HypothermiaStatus(
                item.get("hypothermia_status") or HypothermiaStatus.NONE
            ),
        )
        for item in raw
        if isinstance(item, dict) and "id" in item
    )
