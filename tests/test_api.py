"""
Tests des routes API (FastAPI TestClient sur une base en memoire).
"""
from datetime import date

import pytest
from fastapi.testclient import TestClient

from loadbook.core.database import Database
from loadbook.domain.services.sync_lock import ReconciliationLock
from loadbook.main import app

from tests.conftest import make_external_session


@pytest.fixture
def client():
    database = Database("sqlite://").open()
    app.state.database = database
    with TestClient(app) as test_client:
        yield test_client
    app.state.database = None
    database.close()


def _import(client, *sessions, replace_existing=False):
    payload = {
        "sessions": [s.model_dump(mode="json") for s in sessions],
        "replace_existing": replace_existing,
    }
    return client.post("/api/v1/sync/import", json=payload)


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["services"]["database"] == "open"


class TestSyncRoutes:

    def test_import_then_reimport(self, client):
        first = _import(client, make_external_session())
        assert first.status_code == 200
        assert first.json()["newly_imported"] == 1

        second = _import(client, make_external_session(with_route=True))
        assert second.json()["routes_backfilled"] == 1
        assert second.json()["newly_imported"] == 0

    def test_invalid_session_rejected(self, client):
        response = client.post("/api/v1/sync/import", json={"sessions": [{"external_id": "x"}]})
        assert response.status_code == 422

    def test_reprocess(self, client):
        _import(client, make_external_session())
        response = client.post("/api/v1/sync/reprocess")
        assert response.status_code == 200
        assert response.json() == {"found_in_store": 1, "processed": 1, "errors": 0}

    def test_conflict_when_pass_in_progress(self, client):
        lock = ReconciliationLock(app.state.database.url)
        with lock.hold():
            response = _import(client, make_external_session())
        assert response.status_code == 409


class TestWorkoutRoutes:

    def test_list_and_get(self, client):
        _import(client, make_external_session(), make_external_session(external_id="hc-002", modality_code="biking"))

        listed = client.get("/api/v1/workouts", params={"start": "2026-03-01", "end": "2026-03-03"})
        assert listed.status_code == 200
        assert {w["external_id"] for w in listed.json()} == {"hc-001", "hc-002"}

        bikes = client.get("/api/v1/workouts", params={"modality": "bike"})
        assert [w["external_id"] for w in bikes.json()] == ["hc-002"]

        single = client.get("/api/v1/workouts/hc-001")
        assert single.json()["avg_heart_rate"] == 150

        raw = client.get("/api/v1/workouts/hc-001/raw")
        assert raw.json()["has_route"] is False

    def test_unknown_workout(self, client):
        assert client.get("/api/v1/workouts/nope").status_code == 404


class TestProfileAndLoadRoutes:

    def test_profile_defaults_then_update(self, client):
        default = client.get("/api/v1/profile").json()
        assert default["ftp_watts"] is None
        assert default["default_swim_stress_per_hour"] == 60.0

        response = client.put("/api/v1/profile", json={"lthr": 150, "max_heart_rate": 190})
        assert response.status_code == 200
        assert client.get("/api/v1/profile").json()["lthr"] == 150

    def test_load_after_reprocess(self, client):
        _import(client, make_external_session())
        client.put("/api/v1/profile", json={"lthr": 150})
        client.post("/api/v1/sync/reprocess")

        point = client.get("/api/v1/load", params={"date": "2026-03-02"}).json()
        assert point["date"] == "2026-03-02"
        assert point["chronic_load"] == pytest.approx(100.0 / 42)
        assert point["acute_load"] == pytest.approx(100.0 / 7)

        form = client.get("/api/v1/load/form", params={"date": "2026-03-02"}).json()
        assert form["status"] == "optimal"

    def test_timeline(self, client):
        _import(client, make_external_session())
        response = client.get("/api/v1/load/timeline", params={"start": "2026-03-01", "end": "2026-03-07"})
        assert response.status_code == 200
        assert len(response.json()) == 7

    def test_timeline_invalid_range(self, client):
        response = client.get("/api/v1/load/timeline", params={"start": "2026-03-07", "end": "2026-03-01"})
        assert response.status_code == 400

    def test_load_without_data(self, client):
        point = client.get("/api/v1/load").json()
        assert point["date"] == date.today().isoformat()
        assert point["balance"] == 0.0


class TestPlanRoutes:

    def test_crud_and_comparison(self, client):
        created = client.post("/api/v1/plans", json={
            "date": "2026-03-02",
            "modality": "run",
            "planned_duration_minutes": 60,
            "planned_stress": 70.0,
        })
        assert created.status_code == 201
        plan_id = created.json()["id"]

        listed = client.get("/api/v1/plans", params={"start": "2026-03-01", "end": "2026-03-31"})
        assert len(listed.json()) == 1

        updated = client.put(f"/api/v1/plans/{plan_id}", json={"planned_stress": 80.0})
        assert updated.json()["planned_stress"] == 80.0

        advice = client.get(f"/api/v1/plans/{plan_id}/intensity").json()
        assert advice["zone_label"] == "Interval Focus"

        comparison = client.get("/api/v1/plans/comparison", params={"start": "2026-03-02", "end": "2026-03-03"})
        assert comparison.json()[0]["planned_stress"] == 80.0

        assert client.delete(f"/api/v1/plans/{plan_id}").status_code == 200
        assert client.delete(f"/api/v1/plans/{plan_id}").status_code == 404

    def test_update_with_null_required_field_is_rejected(self, client):
        plan_id = client.post("/api/v1/plans", json={
            "date": "2026-03-02",
            "modality": "run",
            "planned_duration_minutes": 60,
            "planned_stress": 70.0,
        }).json()["id"]

        response = client.put(f"/api/v1/plans/{plan_id}", json={"planned_duration_minutes": None})

        assert response.status_code == 422
        assert client.get("/api/v1/plans", params={"start": "2026-03-01", "end": "2026-03-31"}).json()[0][
            "planned_duration_minutes"
        ] == 60


class TestDataRoutes:

    def test_clear_all(self, client):
        _import(client, make_external_session(), make_external_session(external_id="hc-002"))
        response = client.delete("/api/v1/data")
        assert response.status_code == 200
        assert response.json() == {"deleted_workouts": 2, "deleted_raw_captures": 2}
        assert client.get("/api/v1/workouts").json() == []
