"""Newborn life support API endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from resus_tracker.api.models import (
    BreathingRequest,
    ChestMovementRequest,
    Fio2Request,
    HeartRateRequest,
    NewbornEndRequest,
    NewbornStartRequest,
)
from resus_tracker.domain.newborn import SPO2_TARGETS, BirthType

if TYPE_CHECKING:
    from resus_tracker.containers import AppContainer
    from resus_tracker.domain.checklists import ChecklistItem
    from resus_tracker.domain.newborn import NewbornSession
    from resus_tracker.services.newborn import NewbornSessionService

router = APIRouter(prefix="/newborn", tags=["newborn"])


def _newborn_service(request: Request) -> NewbornSessionService:
    container: AppContainer = request.app.state.container
    return container.newborn_service


@router.get("")
async def get_newborn(request: Request) -> dict[str, object]:
    """Return the newborn session with its event log."""
    return _newborn_payload(_newborn_service(request))


@router.get("/summary", response_class=PlainTextResponse)
async def newborn_summary(request: Request) -> PlainTextResponse:
    """Return the plain-text newborn summary."""
    return PlainTextResponse(_newborn_service(request).summary())


@router.get("/options")
async def newborn_options() -> dict[str, object]:
    """Return birth types and saturation targets."""
    return {
        "birth_types": [
            {"value": birth_type.value, "label": birth_type.label}
            for birth_type in BirthType
        ],
        "spo2_targets": [
            {"time": target.time, "target": target.target} for target in SPO2_TARGETS
        ],
    }


@router.post("/start")
async def start(payload: NewbornStartRequest, request: Request) -> dict[str, object]:
    """Start the newborn clock."""
    service = _newborn_service(request)
    service.start(payload.birth_type)
    return _newborn_payload(service)


@router.post("/initial-assessment")
async def complete_initial_assessment(request: Request) -> dict[str, object]:
    """Record the initial assessment."""
    service = _newborn_service(request)
    service.complete_initial_assessment()
    return _newborn_payload(service)


@router.post("/breathing")
async def assess_breathing(
    payload: BreathingRequest, request: Request
) -> dict[str, object]:
    """Record whether the baby is breathing."""
    service = _newborn_service(request)
    service.assess_breathing(payload.breathing)
    return _newborn_payload(service)


@router.post("/stopped-breathing")
async def report_stopped_breathing(request: Request) -> dict[str, object]:
    service = _newborn_service(request)
    service.report_stopped_breathing()
    return _newborn_payload(service)


@router.post("/inflation-breaths")
async def log_inflation_breath(request: Request) -> dict[str, object]:
    """Count one inflation breath."""
    service = _newborn_service(request)
    service.log_inflation_breath()
    return _newborn_payload(service)


@router.post("/reassess")
async def reassess_after_inflation(request: Request) -> dict[str, object]:
    service = _newborn_service(request)
    service.reassess_after_inflation()
    return _newborn_payload(service)


@router.post("/chest-movement")
async def assess_chest_movement(
    payload: ChestMovementRequest, request: Request
) -> dict[str, object]:
    """Record whether the chest rises."""
    service = _newborn_service(request)
    service.assess_chest_movement(payload.moving)
    return _newborn_payload(service)


@router.post("/retry-inflation")
async def retry_inflation_breaths(request: Request) -> dict[str, object]:
    service = _newborn_service(request)
    service.retry_inflation_breaths()
    return _newborn_payload(service)


@router.post("/compressions")
async def start_compressions(request: Request) -> dict[str, object]:
    """Start 3:1 chest compressions."""
    service = _newborn_service(request)
    service.start_compressions()
    return _newborn_payload(service)


@router.post("/compression-cycles")
async def log_compression_cycle(request: Request) -> dict[str, object]:
    service = _newborn_service(request)
    service.log_compression_cycle()
    return _newborn_payload(service)


@router.post("/drugs")
async def escalate_to_drugs(request: Request) -> dict[str, object]:
    service = _newborn_service(request)
    service.escalate_to_drugs()
    return _newborn_payload(service)


@router.post("/adrenaline")
async def log_adrenaline(request: Request) -> dict[str, object]:
    service = _newborn_service(request)
    service.log_adrenaline()
    return _newborn_payload(service)


@router.post("/vascular-access")
async def log_vascular_access(request: Request) -> dict[str, object]:
    service = _newborn_service(request)
    service.log_vascular_access()
    return _newborn_payload(service)


@router.post("/volume")
async def log_volume(request: Request) -> dict[str, object]:
    service = _newborn_service(request)
    service.log_volume()
    return _newborn_payload(service)


@router.post("/stabilise")
async def stabilise(request: Request) -> dict[str, object]:
    """Record that the baby is stabilising."""
    service = _newborn_service(request)
    service.stabilise()
    return _newborn_payload(service)


@router.post("/heart-rate")
async def log_heart_rate(
    payload: HeartRateRequest, request: Request
) -> dict[str, object]:
    """Record a heart rate; invalid readings are ignored."""
    service = _newborn_service(request)
    logged = service.log_heart_rate(payload.value)
    return {"logged": logged, **_newborn_payload(service)}


@router.post("/fio2")
async def set_fio2(payload: Fio2Request, request: Request) -> dict[str, object]:
    service = _newborn_service(request)
    service.set_fio2(payload.percent)
    return _newborn_payload(service)


@router.post("/checklists/{checklist}/{item_id}")
async def toggle_checklist_item(
    checklist: str, item_id: str, request: Request
) -> dict[str, object]:
    """Toggle an item on one of the newborn checklists."""
    service = _newborn_service(request)
    toggles = {
        "chest-not-moving": service.toggle_chest_check,
        "consider-factors": service.toggle_consider_factor,
        "post-stabilisation": service.toggle_post_stabilisation_task,
    }
    toggle = toggles.get(checklist)
    if toggle is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown checklist: {checklist}",
        )
    toggle(item_id)
    return _newborn_payload(service)


@router.post("/end")
async def end(payload: NewbornEndRequest, request: Request) -> dict[str, object]:
    """Stop the clock, optionally exporting the summary."""
    service = _newborn_service(request)
    summary = service.end(should_export_summary=payload.should_export_summary)
    return {"summary": summary, **_newborn_payload(service)}


@router.post("/reset")
async def reset(request: Request) -> dict[str, object]:
    """Discard the newborn session."""
    service = _newborn_service(request)
    service.reset()
    return _newborn_payload(service)


def _newborn_payload(service: NewbornSessionService) -> dict[str, object]:
    return {
        "session": _session_payload(service.session),
        "events": [
            {
                "id": str(event.id),
                "timestamp": event.timestamp,
                "message": event.message,
                "kind": event.kind.value,
            }
            for event in service.events
        ],
    }


def _session_payload(session: NewbornSession) -> dict[str, object]:
    birth_type = session.birth_type
    return {
        "step": session.step.value,
        "birth_type": birth_type.value if birth_type else None,
        "started_at": session.started_at.isoformat() if session.started_at else None,
        "elapsed_seconds": session.elapsed_seconds,
        "running": session.running,
        "inflation_breaths": session.inflation_breaths,
        "chest_moving": session.chest_moving,
        "ventilation_elapsed": session.ventilation_elapsed,
        "heart_rate_reassessment_due": session.heart_rate_reassessment_due,
        "compression_cycles": session.compression_cycles,
        "fio2": session.fio2,
        "adrenaline_count": session.adrenaline_count,
        "volume_given": session.volume_given,
        "vascular_access": session.vascular_access,
        "chest_not_moving_checks": _items(session.chest_not_moving_checks),
        "post_stabilisation_tasks": _items(session.post_stabilisation_tasks),
        "consider_factors": _items(session.consider_factors),
    }


def _items(items: tuple[ChecklistItem, ...]) -> list[dict[str, object]]:
    return [
        {"id": item.id, "name": item.name, "is_completed": item.is_completed}
        for item in items
    ]
