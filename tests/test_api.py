"""Tests for the arrest HTTP endpoints."""

from fastapi.testclient import TestClient

from resus_tracker.api.app import create_app
from resus_tracker.containers import AppContainer
from tests.conftest import (
    START,
    FakeTicker,
    InMemoryArrestRepository,
    RecordingSummaryExporter,
)


def test_health(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_get_arrest_when_pending(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    data = client.get("/arrest").json()

    assert data["session"]["phase"] == "PENDING"
    assert data["session"]["cpr_time"] == 120
    assert data["session"]["next_doses"] is None
    assert len(data["session"]["reversible_causes"]) == 8
    assert data["events"] == []
    assert data["can_undo"] is False
    assert data["eligibility"]["adrenaline_available"] is True


def test_rhythm_and_shock_flow(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    assert client.post("/arrest/start").status_code == 200
    assert client.post("/arrest/analyse").status_code == 200
    response = client.post(
        "/arrest/rhythm", json={"rhythm": "VF", "shockable": True}
    )
    assert response.json()["session"]["ui_state"] == "SHOCK_ADVISED"
    data = client.post("/arrest/shock").json()

    assert data["session"]["shock_count"] == 1
    assert data["session"]["ui_state"] == "DEFAULT"
    assert [event["message"] for event in data["events"][:2]] == [
        "Resuming CPR.",
        "Shock 1 Delivered",
    ]
    assert data["events"][1]["kind"] == "SHOCK"


def test_invalid_transition_returns_conflict(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    client.post("/arrest/start")

    response = client.post("/arrest/shock")

    assert response.status_code == 409
    assert "SHOCK_ADVISED" in response.json()["detail"]


def test_rosc_re_arrest_and_end(container: AppContainer, ticker: FakeTicker) -> None:
    client = TestClient(create_app(container))
    client.post("/arrest/start")

    assert client.post("/arrest/rosc").json()["session"]["phase"] == "ROSC"
    assert client.post("/arrest/re-arrest").json()["session"]["phase"] == "ACTIVE"
    data = client.post("/arrest/end").json()

    assert data["session"]["phase"] == "ENDED"
    assert data["session"]["final_outcome"] == "Deceased"
    assert not ticker.running


def test_drug_endpoints(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    client.post("/arrest/start")

    data = client.post(
        "/arrest/drugs/adrenaline", json={"age_category": "≥12 years / Adult"}
    ).json()
    assert data["session"]["adrenaline_count"] == 1
    assert data["session"]["next_doses"] == {
        "adrenaline": "1mg",
        "amiodarone": "300mg",
    }

    data = client.post("/arrest/drugs/amiodarone", json={}).json()
    assert data["session"]["antiarrhythmic_given"] == "AMIODARONE"
    assert data["session"]["next_doses"]["amiodarone"] == "150mg"

    data = client.post("/arrest/drugs/lidocaine", json={}).json()
    assert data["session"]["lidocaine_count"] == 1

    data = client.post("/arrest/drugs/other", json={"drug": "Atropine"}).json()
    assert data["events"][0]["message"] == "Atropine Given"


def test_airway_and_etco2(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    client.post("/arrest/start")

    assert client.post("/arrest/airway").json()["session"]["airway_placed"] is True
    logged = client.post("/arrest/etco2", json={"value": "32"}).json()
    ignored = client.post("/arrest/etco2", json={"value": "abc"}).json()

    assert logged["logged"] is True
    assert logged["events"][0]["message"] == "ETCO2: 32 mmHg"
    assert ignored["logged"] is False
    assert len(ignored["events"]) == len(logged["events"])


def test_checklist_endpoints(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    cause = client.post("/arrest/checklists/reversible-causes/toxins").json()
    task = client.post("/arrest/checklists/post-rosc/ecg").json()
    mortem = client.post("/arrest/checklists/post-mortem/leaflet").json()
    missing = client.post("/arrest/checklists/post-rosc/missing")

    assert cause["events"][0]["message"] == "Toxins checked"
    assert task["session"]["post_rosc_tasks"][1]["is_completed"] is True
    assert mortem["session"]["post_mortem_tasks"][5]["is_completed"] is True
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Unknown checklist item: missing"


def test_hypothermia_endpoint(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    data = client.post("/arrest/hypothermia", json={"status": "SEVERE"}).json()

    assert data["eligibility"]["adrenaline_available"] is False
    assert data["eligibility"]["hypothermia_status"] == "SEVERE"


def test_time_offset_validation(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    accepted = client.post("/arrest/time-offset", json={"seconds": 120})
    rejected = client.post("/arrest/time-offset", json={"seconds": 0})

    assert accepted.json()["session"]["time_offset_seconds"] == 120
    assert rejected.status_code == 422
    assert rejected.json()["detail"] == "seconds must be > 0"


def test_undo_endpoint(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    client.post("/arrest/start")

    first = client.post("/arrest/undo").json()
    second = client.post("/arrest/undo").json()

    assert first["undone"] is True
    assert first["session"]["phase"] == "PENDING"
    assert second["undone"] is False


def test_summary_and_reset(
    container: AppContainer, exporter: RecordingSummaryExporter
) -> None:
    client = TestClient(create_app(container))
    client.post("/arrest/start")
    client.post("/arrest/drugs/adrenaline", json={})

    summary = client.get("/arrest/summary")
    assert summary.headers["content-type"].startswith("text/plain")
    assert summary.text.splitlines()[1] == "Total Arrest Time: 00:00"
    assert summary.text.splitlines()[-1] == "[00:00] Adrenaline Given - Dose 1"

    data = client.post("/arrest/reset", json={"should_export_summary": True}).json()

    assert data["summary"] == summary.text
    assert exporter.exported == [summary.text]
    assert data["session"]["phase"] == "PENDING"
    assert data["events"] == []
    assert data["can_undo"] is False


def test_options(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    data = client.get("/arrest/options").json()

    assert data["shockable_rhythms"] == ["VF", "VT"]
    assert "Atropine" in data["other_drugs"]
    assert data["age_categories"][0] == "≥12 years / Adult"
    assert data["hypothermia_statuses"] == [
        "NONE",
        "SEVERE",
        "MODERATE",
        "NORMOTHERMIC",
    ]


def test_preferences_apply_to_live_session(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    assert client.get("/preferences").json()["cpr_cycle_duration_seconds"] == 120
    response = client.put("/preferences", json={"cpr_cycle_duration_seconds": 90})
    rejected = client.put("/preferences", json={"metronome_bpm": 10})

    assert response.status_code == 200
    assert response.json()["cpr_cycle_duration_seconds"] == 90
    assert client.get("/arrest").json()["session"]["cpr_time"] == 90
    assert rejected.status_code == 422
    assert client.get("/preferences").json()["metronome_bpm"] == 110


def test_lifespan_restores_and_closes(
    container: AppContainer,
    repository: InMemoryArrestRepository,
    ticker: FakeTicker,
) -> None:
    repository.state = {
        "start_time": START.timestamp(),
        "arrest_state": "ROSC",
        "shock_count": 2,
        "events": [
            {"timestamp": 0, "message": "Arrest Started", "type": "STATUS"}
        ],
    }

    with TestClient(create_app(container)) as client:
        data = client.get("/arrest").json()
        assert data["session"]["phase"] == "ROSC"
        assert data["session"]["shock_count"] == 2
        assert data["events"][0]["message"] == "Arrest Started"
        assert ticker.running

    assert not ticker.running
    assert repository.loads == 1
