from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from conftest import ScriptedInitiator
from skyiq.main import app
from skyiq.services.batch_dispatcher import BatchDispatcher


@pytest.fixture
def client(db_path, offline_settings):
    with TestClient(app) as test_client:
        yield test_client


def _wait_for_status(client: TestClient, batch_id: str, statuses: set[str], timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        detail = client.get(f"/api/batches/{batch_id}").json()
        if detail["batch"]["status"] in statuses or time.monotonic() > deadline:
            return detail
        time.sleep(0.02)


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["call_count"] == 0


def test_batch_lifecycle_over_http(client) -> None:
    initiator = ScriptedInitiator(failures={"+15550000002": "ElevenLabs API error: 422 - invalid number"})
    app.state.dispatcher = BatchDispatcher(app.state.broadcaster, initiate_call=initiator, call_interval=0)

    response = client.post(
        "/api/batches",
        json={
            "name": "Demo",
            "calls": [
                {"phone_number": "5550000001", "first_name": "Ann"},
                {"phone_number": "5550000002"},
            ],
        },
    )

    assert response.status_code == 200
    created = response.json()
    assert created["success"] is True
    assert created["total_calls"] == 2
    assert created["queue_position"] == 0

    detail = _wait_for_status(client, created["batch_id"], {"completed", "partially_completed", "failed"})

    assert detail["batch"]["status"] == "partially_completed"
    assert detail["batch"]["successful_calls"] == 1
    assert detail["batch"]["failed_calls"] == 1
    assert [c["status"] for c in detail["calls"]] == ["completed", "failed"]
    assert "422" in detail["calls"][1]["error_message"]

    listed = client.get("/api/batches").json()["batches"]
    assert [b["id"] for b in listed] == [created["batch_id"]]

    calls = client.get("/api/calls").json()["calls"]
    assert [c["caller_number"] for c in calls] == ["+15550000001"]
    assert calls[0]["call_type"] == "outbound"

    deadline = time.monotonic() + 5.0
    queue = client.get("/api/batches/queue").json()
    while queue["current_batch_id"] is not None and time.monotonic() < deadline:
        time.sleep(0.02)
        queue = client.get("/api/batches/queue").json()
    assert queue == {"current_batch_id": None, "queued_batch_ids": []}

    cancelled = client.post(f"/api/batches/{created['batch_id']}/cancel")
    assert cancelled.status_code == 409


def test_batch_validation_errors(client) -> None:
    assert client.post("/api/batches", json={"name": "Empty", "calls": []}).status_code == 400
    assert client.get("/api/batches/not-a-batch").status_code == 404
    assert client.post("/api/batches/not-a-batch/cancel").status_code == 404


def test_csv_upload_without_numbers_is_rejected(client) -> None:
    response = client.post(
        "/api/batches/upload",
        data={"name": "Bad file"},
        files={"file": ("contacts.csv", b"phone,first_name\n123,Bob\n", "text/csv")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "No valid phone numbers found in file"


@pytest.mark.parametrize(
    "payload, detail",
    [
        ({}, "Phone number is required"),
        ({"phone_number": "call me"}, "Invalid phone number format"),
        ({"phone_number": "2345678901234"}, "Please include country code (e.g., +1 for US numbers)"),
    ],
)
def test_manual_call_rejects_bad_numbers(client, payload, detail) -> None:
    response = client.post("/api/calls/initiate", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == detail


def test_manual_call_without_credentials_is_500(client) -> None:
    response = client.post("/api/calls/initiate", json={"phone_number": "5551234567"})

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "Failed to initiate call"


def test_inbound_call_webhook_flow(client) -> None:
    started = client.post(
        "/webhook",
        json={
            "event": "call_started",
            "conversation_id": "conv-in-1",
            "from_number": "+15559998888",
            "to_number": "+15550001111",
        },
    )
    assert started.status_code == 200
    assert started.text == "Webhook processed successfully"

    client.post("/webhook", json={"event": "transcript", "conversation_id": "conv-in-1", "transcript": "Hi there"})
    client.post("/webhook", json={"event": "call_ended", "conversation_id": "conv-in-1", "duration_seconds": 42})

    calls = client.get("/api/calls").json()["calls"]
    assert len(calls) == 1
    call = calls[0]
    assert call["call_type"] == "inbound"
    assert call["caller_number"] == "+15559998888"
    assert call["status"] == "completed"
    assert call["duration"] == 42
    assert call["transcript"] == "Hi there "

    assert client.get(f"/api/calls/{call['id']}").json()["call"]["conversation_id"] == "conv-in-1"
    assert client.get("/api/calls/nope").status_code == 404
    assert client.get("/health").json()["call_count"] == 1


def test_webhook_rejects_malformed_body(client) -> None:
    response = client.post("/webhook", content=b"not json", headers={"content-type": "application/json"})

    assert response.status_code == 500
    assert response.text == "Error processing webhook"


def test_unknown_webhook_event_is_acknowledged(client) -> None:
    response = client.post("/webhook", json={"event": "agent_thinking"})
    assert response.status_code == 200


def test_prompt_roundtrip(client, monkeypatch) -> None:
    from skyiq.services import prompt_service

    monkeypatch.setattr(prompt_service, "update_agent_prompt", lambda prompt, greeting: {})

    assert client.get("/api/prompts").status_code == 404
    assert client.put("/api/prompts", json={}).status_code == 400

    updated = client.put("/api/prompts", json={"system_prompt": "You are Leo."}).json()
    assert updated["extracted_first_message"] == "Hello! This is Leo. How can I help you today?"
    assert client.get("/api/prompts").json()["prompt"]["system_prompt"] == "You are Leo."


def test_email_check_when_disabled(client) -> None:
    response = client.post("/api/tests/email", json={})
    assert response.json() == {"success": False, "message": "Email notifications are disabled"}


def test_elevenlabs_check_without_key(client) -> None:
    assert client.get("/api/tests/elevenlabs").status_code == 400


def _wait_for_viewers(count: int) -> None:
    deadline = time.monotonic() + 5.0
    while app.state.broadcaster.connection_count < count and time.monotonic() < deadline:
        time.sleep(0.01)


def test_new_viewer_gets_call_history_first(client) -> None:
    client.post(
        "/webhook",
        json={"event": "call_started", "conversation_id": "conv-old", "from_number": "+15550001111"},
    )

    with client.websocket_connect("/ws") as websocket:
        history = websocket.receive_json()

    assert history["event"] == "call_history"
    assert [c["conversation_id"] for c in history["data"]["calls"]] == ["conv-old"]


def test_dashboard_socket_receives_new_calls(client) -> None:
    with client.websocket_connect("/ws") as websocket:
        assert websocket.receive_json()["event"] == "call_history"
        _wait_for_viewers(1)

        client.post(
            "/webhook",
            json={"event": "call_started", "conversation_id": "conv-ws", "from_number": "+15551112222"},
        )
        client.post("/webhook", json={"event": "transcript", "conversation_id": "conv-ws", "transcript": "Hello"})
        client.post("/webhook", json={"event": "call_ended", "conversation_id": "conv-ws", "duration_seconds": 5})

        messages = [websocket.receive_json() for _ in range(3)]

    assert [m["event"] for m in messages] == ["new_call", "transcript_update", "call_ended"]
    assert messages[0]["data"]["conversation_id"] == "conv-ws"
    assert messages[0]["data"]["call_type"] == "inbound"


def test_socket_check_reaches_viewers(client) -> None:
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        _wait_for_viewers(1)

        response = client.get("/api/tests/socket")
        message = websocket.receive_json()

    assert response.json()["success"] is True
    assert response.json()["viewers"] == 1
    assert message["event"] == "test_event"
    assert message["data"]["message"] == "Test event from API"


def test_database_check_reports_counts(client, monkeypatch) -> None:
    from skyiq.services import prompt_service

    monkeypatch.setattr(prompt_service, "update_agent_prompt", lambda prompt, greeting: {})
    client.post("/webhook", json={"event": "call_started", "conversation_id": "conv-db"})
    client.put("/api/prompts", json={"system_prompt": "You are Leo."})

    body = client.get("/api/tests/database").json()

    assert body["success"] is True
    assert body["stats"] == {"calls": 1, "batches": 0, "prompts": 1}
