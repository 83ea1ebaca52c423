"""End-to-end practice session flows through the HTTP API."""
from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import get_services, router
from config import default_route
from services.sessions import build_services
from storage.kv import USER_CREDENTIAL_KEY, InMemoryKeyValueStore
from tests.conftest import TEST_KEY, FakeHttpClient, FakeResponse, completion

CONFIG = {"jobRole": "Frontend Engineer", "difficultyLevel": "beginner", "targetCompany": "Acme"}


@pytest.fixture
def api():
    fake = FakeHttpClient()
    store = InMemoryKeyValueStore({USER_CREDENTIAL_KEY: TEST_KEY})
    route = default_route().model_copy(update={"retry_backoff_s": 0.0})
    services = build_services(store, route=route, http_client=fake, timer_interval=0.05)
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as client:
        yield client, fake, services


def test_config_round_trip(api):
    client, _, _ = api
    assert client.get("/api/practice-config").status_code == 404

    saved = client.put("/api/practice-config", json=CONFIG)
    assert saved.status_code == 200
    assert saved.json()["jobRole"] == "Frontend Engineer"
    assert client.get("/api/practice-config").json()["difficultyLevel"] == "beginner"

    bad = client.put("/api/practice-config", json={"jobRole": "", "difficultyLevel": "beginner"})
    assert bad.status_code == 422


def test_start_without_config_is_rejected(api):
    client, fake, services = api
    resp = client.post("/api/practice-sessions/start", json={})
    assert resp.status_code == 400
    assert fake.calls == []
    assert services.registry.ids() == []


def test_full_session_flow(api):
    client, fake, _ = api
    client.put("/api/practice-config", json=CONFIG)
    fake.queue(
        completion("What does the virtual DOM do?"),
        completion("How would you memoise a component?"),
        completion("Walk me through the complexity."),
        completion("## Summary\nFinal score: 35"),
    )

    started = client.post("/api/practice-sessions/start", json={})
    assert started.status_code == 200
    session = started.json()["session"]
    session_id = session["session_id"]
    assert session["state"] == "active"
    assert session["transcript"][0]["kind"] == "question"

    answered = client.post(f"/api/practice-sessions/{session_id}/answer", json={"text": "not sure"})
    assert answered.status_code == 200
    result = answered.json()["result"]
    assert result["non_answer"] is True
    assert result["reply"]["content"] == "How would you memoise a component?"

    coded = client.post(
        f"/api/practice-sessions/{session_id}/code",
        json={"content": "const Memo = React.memo(Row)", "language": "javascript"},
    )
    assert coded.json()["result"]["submitted"]["language"] == "javascript"

    stopped = client.post(f"/api/practice-sessions/{session_id}/stop")
    assert stopped.json()["state"] == "ended"

    report = client.post(f"/api/practice-sessions/{session_id}/report")
    assert report.status_code == 200
    body = report.json()
    assert body["synthesis_failed"] is False
    assert body["qa_table"].splitlines()[0] == "| Question | Answer | Kind |"
    assert [pair["kind"] for pair in body["qa_pairs"]] == ["answer", "code"]

    pdf = client.get(f"/api/practice-sessions/{session_id}/report.pdf")
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    history = client.get("/api/history").json()
    assert len(history) == 1
    assert history[0]["config"]["jobRole"] == "Frontend Engineer"
    assert len(history[0]["qaPairs"]) == 2

    state = client.get(f"/api/practice-sessions/{session_id}").json()
    assert state["state"] == "reported"
    assert state["has_report"] is True

    reset = client.post(f"/api/practice-sessions/{session_id}/reset")
    assert reset.json()["state"] == "idle"
    assert reset.json()["transcript"] == []


def test_invalid_transitions_and_unknown_ids(api):
    client, fake, _ = api
    fake.queue(completion("Q1"))
    session_id = client.post("/api/practice-sessions/start", json={"config": CONFIG}).json()["session"]["session_id"]

    assert client.post(f"/api/practice-sessions/{session_id}/report").status_code == 409
    assert client.post(f"/api/practice-sessions/{session_id}/reset").status_code == 409
    assert client.get(f"/api/practice-sessions/{session_id}/report.pdf").status_code == 404
    assert client.post(f"/api/practice-sessions/{session_id}/stop").status_code == 200
    assert client.post(f"/api/practice-sessions/{session_id}/stop").status_code == 409
    assert client.post(f"/api/practice-sessions/{session_id}/answer", json={"text": "late"}).status_code == 409
    assert client.get("/api/practice-sessions/nope").status_code == 404
    assert client.post("/api/practice-sessions/nope/question").status_code == 404


def test_restart_keeps_session_id(api):
    client, fake, _ = api
    fake.queue(completion("Q1"), completion("Q1 again"))
    session_id = client.post("/api/practice-sessions/start", json={"config": CONFIG}).json()["session"]["session_id"]
    client.post(f"/api/practice-sessions/{session_id}/stop")

    restarted = client.post("/api/practice-sessions/start", json={"session_id": session_id, "config": CONFIG})
    assert restarted.status_code == 200
    session = restarted.json()["session"]
    assert session["session_id"] == session_id
    assert [e["content"] for e in session["transcript"]] == ["Q1 again"]


def test_upstream_failure_surfaces_last_error(api):
    client, fake, _ = api
    fake.queue(FakeResponse(403))
    session = client.post("/api/practice-sessions/start", json={"config": CONFIG}).json()["session"]
    assert session["transcript"][0]["content"].startswith("Tell me about a challenging project")
    assert session["last_error"]["kind"] == "INSUFFICIENT_PERMISSIONS"
    assert session["last_error"]["status"] == 403


def test_credential_endpoints(api):
    client, fake, _ = api
    assert client.put("/api/credential", json={"api_key": "sk-not-groq"}).status_code == 400

    saved = client.put("/api/credential", json={"api_key": "gsk_new_key_0001"})
    assert saved.status_code == 200
    assert saved.json() == {"has_key": True, "key_length": 16, "key_prefix": "gsk_"}

    fake.queue(completion("Hello"))
    validated = client.post("/api/credential/validate", json={})
    assert validated.json()["is_valid"] is True
    assert fake.calls[-1]["headers"]["Authorization"] == "Bearer gsk_new_key_0001"

    invalid = client.post("/api/credential/validate", json={"api_key": "bogus"})
    assert invalid.json()["error_kind"] == "INVALID_FORMAT"

    cleared = client.delete("/api/credential")
    assert cleared.json()["has_key"] is False
    assert client.get("/api/credential/status").json()["key_length"] == 0
