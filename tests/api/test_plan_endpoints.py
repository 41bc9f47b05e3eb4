"""Tests for the plan HTTP endpoints.

Uses a real app built by create_app with an injected PlanGenerationService,
so routing, status mapping and error bodies are exercised end to end.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from fitplan.main import create_app


@pytest.fixture
def make_client(build_service):
    clients = []

    def _make(stub, timeout_s: float = 0.5) -> TestClient:
        client = TestClient(create_app(plan_service=build_service(stub, timeout_s=timeout_s)))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


def test_generate_workout_success(make_client, stubs, profile, request_payload, plan_text, count_rows):
    client = make_client(stubs.text(plan_text))

    response = client.post("/api/generate-workout", json=request_payload)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Plan created"
    assert set(body["plan"]) == {"id", "description", "difficulty", "workouts"}
    assert body["plan"]["workouts"] == 2
    assert count_rows()["exercises"] == 6


def test_generate_workout_validation_error(make_client, stubs, profile, request_payload, plan_text):
    stub = stubs.text(plan_text)
    client = make_client(stub)

    response = client.post(
        "/api/generate-workout",
        json={**request_payload, "durationWeeks": 0, "focusMuscles": ["wings"]},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request data"
    assert {d["path"] for d in body["details"]} == {"durationWeeks", "focusMuscles.0"}
    assert stub.calls == []


def test_generate_workout_rejects_non_json_body(make_client, stubs):
    client = make_client(stubs.text("{}"))

    response = client.post(
        "/api/generate-workout",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["details"] == [{"path": "", "message": "Request body must be valid JSON"}]


def test_generate_workout_missing_profile(make_client, stubs, request_payload, plan_text):
    client = make_client(stubs.text(plan_text))

    response = client.post("/api/generate-workout", json=request_payload)

    assert response.status_code == 404
    assert response.json() == {"error": "User profile not found"}


def test_generate_workout_timeout(make_client, stubs, profile, request_payload, count_rows):
    client = make_client(stubs.hanging(5.0), timeout_s=0.05)

    response = client.post("/api/generate-workout", json=request_payload)

    assert response.status_code == 504
    assert "timed out" in response.json()["error"]
    assert count_rows()["workout_plans"] == 0


def test_generate_workout_provider_failure(make_client, stubs, profile, request_payload):
    client = make_client(stubs.failing(RuntimeError("boom")))

    response = client.post("/api/generate-workout", json=request_payload)

    assert response.status_code == 502
    assert "boom" not in response.json()["error"]


def test_generate_workout_unparseable_output(make_client, stubs, profile, request_payload):
    client = make_client(stubs.text("Here are some ideas: squats, rows."))

    response = client.post("/api/generate-workout", json=request_payload)

    assert response.status_code == 500
    assert response.json()["error"].startswith("Failed to parse workout plan")


def test_generate_workout_conflict(make_client, stubs, profile, request_payload, plan_text):
    client = make_client(stubs.text(plan_text))
    assert client.post("/api/generate-workout", json=request_payload).status_code == 200

    response = client.post("/api/generate-workout", json=request_payload)

    assert response.status_code == 409
    assert "active workout plan already exists" in response.json()["error"]


def test_get_active_plan(make_client, stubs, profile, request_payload, plan_text, user_id):
    client = make_client(stubs.text(plan_text))
    created = client.post("/api/generate-workout", json=request_payload).json()

    response = client.get("/api/plans/active", params={"userId": user_id})

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == created["plan"]["id"]
    assert len(body["workouts"]) == 2
    assert len(body["workouts"][0]["exercises"]) == 3


def test_get_active_plan_not_found(make_client, stubs):
    client = make_client(stubs.text("{}"))

    response = client.get("/api/plans/active", params={"userId": str(uuid.uuid4())})

    assert response.status_code == 404
    assert response.json() == {"error": "No active workout plan found"}


def test_get_active_plan_rejects_bad_user_id(make_client, stubs):
    client = make_client(stubs.text("{}"))

    response = client.get("/api/plans/active", params={"userId": "nope"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request data"
    assert response.json()["details"][0]["path"] == "query.userId"


def test_health(make_client, stubs):
    client = make_client(stubs.text("{}"))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_lifespan_wires_service_from_settings(settings):
    with TestClient(create_app(settings=settings)) as client:
        assert client.get("/health").json() == {"status": "ok"}
        response = client.get("/api/plans/active", params={"userId": str(uuid.uuid4())})

    assert response.status_code == 404
