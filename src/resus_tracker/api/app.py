"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from resus_tracker.api.logbook import router as logbook_router
from resus_tracker.api.newborn import router as newborn_router
from resus_tracker.api.models import (
    DrugRequest,
    Etco2Request,
    HypothermiaRequest,
    OtherDrugRequest,
    PreferencesUpdate,
    ResetRequest,
    RhythmRequest,
    TimeOffsetRequest,
)
from resus_tracker.app_logging import configure_logging
from resus_tracker.containers import AppContainer
from resus_tracker.domain.arrest import ArrestSession
from resus_tracker.domain.checklists import (
    NON_SHOCKABLE_RHYTHMS,
    OTHER_DRUGS,
    SHOCKABLE_RHYTHMS,
    ChecklistItem,
    HypothermiaStatus,
)
from resus_tracker.domain.dosage import (
    PatientAgeCategory,
    adrenaline_dose,
    amiodarone_dose,
)
from resus_tracker.domain.events import Event
from resus_tracker.services.newborn import NewbornStepError
from resus_tracker.services.sessions import (
    ArrestSessionService,
    ArrestStateError,
    UnknownChecklistItemError,
)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        try:
            state_container.arrest_service.apply_settings(
                state_container.preferences_service.get()
            )
        except Exception:
            logger.exception("Failed to load device preferences")
        state_container.arrest_service.restore()
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(logbook_router)
    app.include_router(newborn_router)

    @app.exception_handler(ArrestStateError)
    async def arrest_state_error(
        request: Request, exc: ArrestStateError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.exception_handler(NewbornStepError)
    async def newborn_step_error(
        request: Request, exc: NewbornStepError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.exception_handler(UnknownChecklistItemError)
    async def unknown_item_error(
        request: Request, exc: UnknownChecklistItemError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": f"Unknown checklist item: {exc.args[0]}"},
        )

    @app.exception_handler(ValueError)
    async def value_error(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/arrest")
    async def get_arrest(request: Request) -> dict[str, object]:
        """Return the live session with its derived views."""
        return _arrest_payload(_arrest_service(request))

    @app.get("/arrest/summary", response_class=PlainTextResponse)
    async def arrest_summary(request: Request) -> PlainTextResponse:
        """Return the plain-text event summary."""
        return PlainTextResponse(_arrest_service(request).summary())

    @app.get("/arrest/options")
    async def arrest_options() -> dict[str, object]:
        """Return the fixed pick lists offered to the operator."""
        return {
            "shockable_rhythms": list(SHOCKABLE_RHYTHMS),
            "non_shockable_rhythms": list(NON_SHOCKABLE_RHYTHMS),
            "other_drugs": list(OTHER_DRUGS),
            "age_categories": [category.value for category in PatientAgeCategory],
            "hypothermia_statuses": [item.value for item in HypothermiaStatus],
        }

    @app.post("/arrest/start")
    async def start_arrest(request: Request) -> dict[str, object]:
        """Start the arrest clock."""
        service = _arrest_service(request)
        service.start_arrest()
        return _arrest_payload(service)

    @app.post("/arrest/analyse")
    async def analyse_rhythm(request: Request) -> dict[str, object]:
        """Pause CPR for rhythm analysis."""
        service = _arrest_service(request)
        service.analyse_rhythm()
        return _arrest_payload(service)

    @app.post("/arrest/rhythm")
    async def log_rhythm(
        payload: RhythmRequest, request: Request
    ) -> dict[str, object]:
        """Record the analysed rhythm."""
        service = _arrest_service(request)
        service.log_rhythm(payload.rhythm, payload.shockable)
        return _arrest_payload(service)

    @app.post("/arrest/shock")
    async def deliver_shock(request: Request) -> dict[str, object]:
        """Record a delivered shock."""
        service = _arrest_service(request)
        service.deliver_shock()
        return _arrest_payload(service)

    @app.post("/arrest/rosc")
    async def achieve_rosc(request: Request) -> dict[str, object]:
        """Record return of spontaneous circulation."""
        service = _arrest_service(request)
        service.achieve_rosc()
        return _arrest_payload(service)

    @app.post("/arrest/re-arrest")
    async def re_arrest(request: Request) -> dict[str, object]:
        """Record a re-arrest after ROSC."""
        service = _arrest_service(request)
        service.re_arrest()
        return _arrest_payload(service)

    @app.post("/arrest/end")
    async def end_arrest(request: Request) -> dict[str, object]:
        """End the arrest."""
        service = _arrest_service(request)
        service.end_arrest()
        return _arrest_payload(service)

    @app.post("/arrest/time-offset")
    async def add_time_offset(
        payload: TimeOffsetRequest, request: Request
    ) -> dict[str, object]:
        """Add time to the arrest clock."""
        service = _arrest_service(request)
        service.add_time_offset(payload.seconds)
        return _arrest_payload(service)

    @app.post("/arrest/drugs/adrenaline")
    async def log_adrenaline(
        payload: DrugRequest, request: Request
    ) -> dict[str, object]:
        """Record an adrenaline dose."""
        service = _arrest_service(request)
        service.log_adrenaline(payload.dosage, payload.age_category)
        return _arrest_payload(service)

    @app.post("/arrest/drugs/amiodarone")
    async def log_amiodarone(
        payload: DrugRequest, request: Request
    ) -> dict[str, object]:
        """Record an amiodarone dose."""
        service = _arrest_service(request)
        service.log_amiodarone(payload.dosage, payload.age_category)
        return _arrest_payload(service)

    @app.post("/arrest/drugs/lidocaine")
    async def log_lidocaine(
        payload: DrugRequest, request: Request
    ) -> dict[str, object]:
        """Record a lidocaine dose."""
        service = _arrest_service(request)
        service.log_lidocaine(payload.dosage, payload.age_category)
        return _arrest_payload(service)

    @app.post("/arrest/drugs/other")
    async def log_other_drug(
        payload: OtherDrugRequest, request: Request
    ) -> dict[str, object]:
        """Record any other drug."""
        service = _arrest_service(request)
        service.log_other_drug(payload.drug, payload.dosage)
        return _arrest_payload(service)

    @app.post("/arrest/airway")
    async def log_airway(request: Request) -> dict[str, object]:
        """Record an advanced airway."""
        service = _arrest_service(request)
        service.log_airway_placed()
        return _arrest_payload(service)

    @app.post("/arrest/etco2")
    async def log_etco2(payload: Etco2Request, request: Request) -> dict[str, object]:
        """Record an ETCO2 reading; invalid readings are ignored."""
        service = _arrest_service(request)
        logged = service.log_etco2(payload.value)
        return {"logged": logged, **_arrest_payload(service)}

    @app.post("/arrest/checklists/reversible-causes/{item_id}")
    async def toggle_reversible_cause(
        item_id: str, request: Request
    ) -> dict[str, object]:
        """Toggle a reversible cause."""
        service = _arrest_service(request)
        service.toggle_checklist_item(item_id)
        return _arrest_payload(service)

    @app.post("/arrest/checklists/post-rosc/{item_id}")
    async def toggle_rosc_task(item_id: str, request: Request) -> dict[str, object]:
        """Toggle a post-ROSC task."""
        service = _arrest_service(request)
        service.toggle_rosc_task(item_id)
        return _arrest_payload(service)

    @app.post("/arrest/checklists/post-mortem/{item_id}")
    async def toggle_mortem_task(item_id: str, request: Request) -> dict[str, object]:
        """Toggle a post-mortem task."""
        service = _arrest_service(request)
        service.toggle_mortem_task(item_id)
        return _arrest_payload(service)

    @app.post("/arrest/hypothermia")
    async def set_hypothermia(
        payload: HypothermiaRequest, request: Request
    ) -> dict[str, object]:
        """Record the hypothermia classification."""
        service = _arrest_service(request)
        service.set_hypothermia_status(payload.status)
        return _arrest_payload(service)

    @app.post("/arrest/undo")
    async def undo(request: Request) -> dict[str, object]:
        """Undo the last action."""
        service = _arrest_service(request)
        undone = service.undo()
        return {"undone": undone, **_arrest_payload(service)}

    @app.post("/arrest/reset")
    async def reset(payload: ResetRequest, request: Request) -> dict[str, object]:
        """Close out the episode and start fresh."""
        service = _arrest_service(request)
        summary = service.perform_reset(
            should_archive=payload.should_archive,
            should_export_summary=payload.should_export_summary,
        )
        return {"summary": summary, **_arrest_payload(service)}

    @app.get("/preferences")
    async def get_preferences(request: Request) -> dict[str, object]:
        """Return the device's protocol preferences."""
        state_container: AppContainer = request.app.state.container
        return asdict(state_container.preferences_service.get())

    @app.put("/preferences")
    async def update_preferences(
        payload: PreferencesUpdate, request: Request
    ) -> dict[str, object]:
        """Update protocol preferences and apply them to the live session."""
        state_container: AppContainer = request.app.state.container
        updated = state_container.preferences_service.update(
            **payload.model_dump(exclude_none=True)
        )
        state_container.arrest_service.apply_settings(updated)
        logger.info("Protocol preferences updated")
        return asdict(updated)

    return app


def _arrest_service(request: Request) -> ArrestSessionService:
    container: AppContainer = request.app.state.container
    return container.arrest_service


def _arrest_payload(service: ArrestSessionService) -> dict[str, object]:
    return {
        "session": _session_payload(service.session),
        "eligibility": asdict(service.eligibility),
        "events": [_event_payload(event) for event in service.events],
        "can_undo": service.can_undo,
    }


def _session_payload(session: ArrestSession) -> dict[str, object]:
    age = session.patient_age_category
    return {
        "phase": session.phase.value,
        "ui_state": session.ui_state.value,
        "started_at": session.started_at.isoformat() if session.started_at else None,
        "elapsed_seconds": session.elapsed_seconds,
        "time_offset_seconds": session.time_offset_seconds,
        "total_time": session.total_time,
        "cpr_time": session.cpr_time,
        "cpr_cycle_anchor": session.cpr_cycle_anchor,
        "shock_count": session.shock_count,
        "adrenaline_count": session.adrenaline_count,
        "amiodarone_count": session.amiodarone_count,
        "lidocaine_count": session.lidocaine_count,
        "last_adrenaline_time": session.last_adrenaline_time,
        "antiarrhythmic_given": session.antiarrhythmic_given.value,
        "shock_count_at_first_amiodarone": session.shock_count_at_first_amiodarone,
        "airway_placed": session.airway_placed,
        "patient_age_category": age.value if age else None,
        "next_doses": (
            {
                "adrenaline": adrenaline_dose(age),
                "amiodarone": amiodarone_dose(age, session.amiodarone_count + 1),
            }
            if age
            else None
        ),
        "final_outcome": session.final_outcome,
        "reversible_causes": [
            _item_payload(item) for item in session.reversible_causes
        ],
        "post_rosc_tasks": [_item_payload(item) for item in session.post_rosc_tasks],
        "post_mortem_tasks": [
            _item_payload(item) for item in session.post_mortem_tasks
        ],
    }


def _item_payload(item: ChecklistItem) -> dict[str, object]:
    return {
        "id": item.id,
        "name": item.name,
        "is_completed": item.is_completed,
        "hypothermia_status": item.hypothermia_status.value,
    }


def _event_payload(event: Event) -> dict[str, object]:
    return {
        "id": str(event.id),
        "timestamp": event.timestamp,
        "message": event.message,
        "kind": event.kind.value,
    }
