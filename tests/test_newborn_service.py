"""Tests for the newborn life support state machine."""

import pytest

from resus_tracker.domain.events import EventKind
from resus_tracker.domain.newborn import (
    BirthType,
    NewbornSession,
    NewbornStep,
)
from resus_tracker.services.newborn import NewbornSessionService, NewbornStepError
from resus_tracker.services.sessions import UnknownChecklistItemError
from tests.conftest import (
    FakeClock,
    FakeTicker,
    RecordingCueSink,
    RecordingSummaryExporter,
)


def _messages(service: NewbornSessionService) -> list[str]:
    return [event.message for event in service.chronological_events]


def _to_inflation_breaths(service: NewbornSessionService) -> None:
    service.start(BirthType.TERM)
    service.complete_initial_assessment()
    service.assess_breathing(False)


def _to_ventilation(service: NewbornSessionService) -> None:
    _to_inflation_breaths(service)
    for _ in range(5):
        service.log_inflation_breath()
    service.reassess_after_inflation()
    service.assess_chest_movement(True)


def test_new_service_waits_for_birth_type(
    newborn_service: NewbornSessionService,
) -> None:
    assert newborn_service.session == NewbornSession.fresh()
    assert newborn_service.events == []
    assert newborn_service.session.fio2 == 21


def test_start_runs_clock(
    newborn_service: NewbornSessionService,
    newborn_ticker: FakeTicker,
    cues: RecordingCueSink,
) -> None:
    newborn_service.start(BirthType.TERM)

    session = newborn_service.session
    assert session.step is NewbornStep.INITIAL_ASSESSMENT
    assert session.birth_type is BirthType.TERM
    assert session.running
    assert newborn_ticker.running
    assert cues.impacts == ["light"]
    event = newborn_service.events[0]
    assert event.message == "Clock started - Term/Near-term birth"
    assert event.kind is EventKind.STATUS
    assert event.timestamp == 0


def test_actions_before_start_are_rejected(
    newborn_service: NewbornSessionService,
) -> None:
    with pytest.raises(NewbornStepError):
        newborn_service.complete_initial_assessment()
    with pytest.raises(NewbornStepError):
        newborn_service.log_heart_rate("120")
    with pytest.raises(NewbornStepError):
        newborn_service.end()

    assert newborn_service.events == []


def test_start_twice_is_rejected(newborn_service: NewbornSessionService) -> None:
    newborn_service.start(BirthType.TERM)

    with pytest.raises(NewbornStepError):
        newborn_service.start(BirthType.PRETERM)
    assert newborn_service.session.birth_type is BirthType.TERM


def test_preterm_assessment_records_plastic_bag(
    newborn_service: NewbornSessionService, clock: FakeClock
) -> None:
    newborn_service.start(BirthType.PRETERM)
    clock.advance(20)

    newborn_service.complete_initial_assessment()

    assert newborn_service.session.step is NewbornStep.BREATHING_ASSESSMENT
    assert _messages(newborn_service)[1:] == [
        "Initial assessment complete: Dried, stimulated, thermal care applied",
        "Baby placed in plastic bag (preterm)",
    ]
    assert newborn_service.events[0].timestamp == 20


def test_breathing_baby_goes_to_cpap_then_inflation(
    newborn_service: NewbornSessionService,
) -> None:
    newborn_service.start(BirthType.TERM)
    newborn_service.complete_initial_assessment()

    newborn_service.assess_breathing(True)
    assert newborn_service.session.step is NewbornStep.CPAP

    newborn_service.report_stopped_breathing()
    assert newborn_service.session.step is NewbornStep.INFLATION_BREATHS
    assert _messages(newborn_service)[-2:] == [
        "Baby IS breathing - initiating CPAP",
        "Baby stopped breathing - moving to inflation breaths",
    ]


def test_inflation_breaths_stop_at_five(
    newborn_service: NewbornSessionService,
) -> None:
    _to_inflation_breaths(newborn_service)

    for _ in range(5):
        newborn_service.log_inflation_breath()

    assert newborn_service.session.inflation_breaths == 5
    assert _messages(newborn_service)[-2:] == [
        "Inflation breath 5 delivered",
        "5 inflation breaths completed",
    ]
    assert newborn_service.events[0].kind is EventKind.MILESTONE
    with pytest.raises(NewbornStepError):
        newborn_service.log_inflation_breath()
    assert newborn_service.session.inflation_breaths == 5


def test_chest_not_moving_allows_retry(
    newborn_service: NewbornSessionService, clock: FakeClock
) -> None:
    _to_inflation_breaths(newborn_service)
    for _ in range(5):
        newborn_service.log_inflation_breath()
    newborn_service.reassess_after_inflation()

    newborn_service.assess_chest_movement(False)
    assert newborn_service.session.chest_moving is False
    assert newborn_service.session.step is NewbornStep.REASSESS_AFTER_INFLATION
    newborn_service.toggle_chest_check("mask")
    newborn_service.retry_inflation_breaths()

    session = newborn_service.session
    assert session.step is NewbornStep.INFLATION_BREATHS
    assert session.inflation_breaths == 0
    assert session.chest_not_moving_checks[0].is_completed
    assert _messages(newborn_service)[-2:] == [
        "Chest NOT moving - checking airway",
        "Retrying inflation breaths after airway adjustments",
    ]

    newborn_service.reassess_after_inflation()
    clock.advance(45)
    newborn_service.assess_chest_movement(True)

    session = newborn_service.session
    assert session.step is NewbornStep.VENTILATION_BREATHS
    assert session.chest_moving is True
    assert session.ventilation_started_at == 45


def test_tick_alerts_once_when_heart_rate_check_due(
    newborn_service: NewbornSessionService,
    clock: FakeClock,
    cues: RecordingCueSink,
) -> None:
    _to_ventilation(newborn_service)
    clock.advance(29)
    newborn_service.tick()
    assert not newborn_service.session.heart_rate_reassessment_due
    assert cues.notifications == []

    clock.advance(1)
    newborn_service.tick()
    clock.advance(5)
    newborn_service.tick()

    assert newborn_service.session.heart_rate_reassessment_due
    assert newborn_service.session.ventilation_elapsed == 35
    assert cues.notifications == ["warning"]


def test_compressions_and_drugs(newborn_service: NewbornSessionService) -> None:
    _to_ventilation(newborn_service)

    newborn_service.start_compressions()
    assert newborn_service.session.fio2 == 100
    assert _messages(newborn_service)[-2:] == [
        "HR <60 after 30s ventilation - starting chest compressions 3:1",
        "Increase FiO2 to 100%",
    ]
    newborn_service.log_compression_cycle()
    newborn_service.log_compression_cycle()
    newborn_service.escalate_to_drugs()
    newborn_service.log_vascular_access()
    newborn_service.log_adrenaline()
    newborn_service.log_adrenaline()
    newborn_service.log_volume()

    session = newborn_service.session
    assert session.step is NewbornStep.DRUGS_AND_ACCESS
    assert session.compression_cycles == 2
    assert session.adrenaline_count == 2
    assert session.vascular_access
    assert session.volume_given
    assert "Compression cycle 2 completed (15 sets of 3:1)" in _messages(
        newborn_service
    )
    assert _messages(newborn_service)[-3:] == [
        "Adrenaline dose 1 given (10-30 mcg/kg IV)",
        "Adrenaline dose 2 given (10-30 mcg/kg IV)",
        "Intravascular volume given (10 ml/kg 0.9% NaCl)",
    ]
    with pytest.raises(NewbornStepError):
        newborn_service.log_vascular_access()
    with pytest.raises(NewbornStepError):
        newborn_service.log_volume()


def test_stabilise_only_from_treatment_steps(
    newborn_service: NewbornSessionService,
) -> None:
    newborn_service.start(BirthType.TERM)
    with pytest.raises(NewbornStepError):
        newborn_service.stabilise()

    newborn_service.complete_initial_assessment()
    newborn_service.assess_breathing(True)
    newborn_service.stabilise()
    newborn_service.toggle_post_stabilisation_task("parents")

    session = newborn_service.session
    assert session.step is NewbornStep.STABILISED
    assert session.running
    assert session.post_stabilisation_tasks[0].is_completed
    assert _messages(newborn_service)[-1] == "Baby stabilised - HR >60"


def test_end_freezes_clock(
    newborn_service: NewbornSessionService,
    newborn_ticker: FakeTicker,
    clock: FakeClock,
) -> None:
    newborn_service.start(BirthType.TERM)
    clock.advance(90)

    assert newborn_service.end() is None

    session = newborn_service.session
    assert session.step is NewbornStep.ENDED
    assert not session.running
    assert not newborn_ticker.running
    assert session.elapsed_seconds == 90
    clock.advance(60)
    newborn_service.tick()
    assert newborn_service.session.elapsed_seconds == 90
    with pytest.raises(NewbornStepError):
        newborn_service.end()


def test_end_exports_summary(
    newborn_service: NewbornSessionService,
    newborn_exporter: RecordingSummaryExporter,
    clock: FakeClock,
    cues: RecordingCueSink,
) -> None:
    newborn_service.start(BirthType.PRETERM)
    clock.advance(90)

    summary = newborn_service.end(should_export_summary=True)

    assert summary is not None
    assert summary.splitlines() == [
        "eResus Newborn Life Support Summary",
        "Total Time: 01:30",
        "Birth Type: Preterm (<32 weeks)",
        "",
        "--- Event Log ---",
        "[00:00] Clock started - Preterm (<32 weeks) birth",
        "[01:30] Resuscitation ended",
    ]
    assert newborn_exporter.exported == [summary]
    assert cues.notifications == ["success"]


def test_heart_rate_ignores_invalid_readings(
    newborn_service: NewbornSessionService,
) -> None:
    newborn_service.start(BirthType.TERM)

    assert not newborn_service.log_heart_rate("")
    assert not newborn_service.log_heart_rate("fast")
    assert not newborn_service.log_heart_rate("0")
    assert newborn_service.log_heart_rate(" 85 ")

    assert _messages(newborn_service)[-1] == "Heart rate: 85 bpm"
    assert len(newborn_service.events) == 2


def test_fio2_changes_are_bounded(newborn_service: NewbornSessionService) -> None:
    newborn_service.start(BirthType.TERM)

    with pytest.raises(ValueError):
        newborn_service.set_fio2(15)
    newborn_service.set_fio2(30)

    assert newborn_service.session.fio2 == 30
    assert _messages(newborn_service)[-1] == "FiO2 changed to 30%"


def test_unknown_checklist_item_is_rejected(
    newborn_service: NewbornSessionService,
) -> None:
    newborn_service.start(BirthType.TERM)

    with pytest.raises(UnknownChecklistItemError):
        newborn_service.toggle_consider_factor("sepsis")
    newborn_service.toggle_consider_factor("glucose")

    assert newborn_service.session.consider_factors[3].is_completed


def test_reset_discards_episode(
    newborn_service: NewbornSessionService, newborn_ticker: FakeTicker
) -> None:
    _to_ventilation(newborn_service)

    newborn_service.reset()

    assert newborn_service.session == NewbornSession.fresh()
    assert newborn_service.events == []
    assert not newborn_ticker.running
