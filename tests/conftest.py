from __future__ import annotations

import threading
from typing import Any

import pytest

from skyiq.config import settings
from skyiq.db.init_db import init_db


class RecordingBroadcaster:
    """Stands in for the WebSocket fan-out; keeps every published event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def publish(self, event: str, data: dict[str, Any]) -> None:
        self.events.append((event, dict(data)))

    def named(self, event: str) -> list[dict[str, Any]]:
        return [data for name, data in self.events if name == event]


class ScriptedInitiator:
    """
    Fake call initiator. ``failures`` maps an E.164 number to the error
    message raised when it is dialed; every other number succeeds.
    """

    def __init__(self, failures: dict[str, str] | None = None, on_dial=None) -> None:
        self.failures = dict(failures or {})
        self.on_dial = on_dial
        self.dialed: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, phone_number: str) -> dict[str, Any]:
        with self._lock:
            self.dialed.append(phone_number)
            attempt = len(self.dialed)
        if self.on_dial is not None:
            self.on_dial(phone_number)
        if phone_number in self.failures:
            raise RuntimeError(self.failures[phone_number])
        return {"conversation_id": f"conv-{attempt}", "status": "initiated"}


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = str(tmp_path / "skyiq-test.db")
    monkeypatch.setattr(settings, "DATABASE_PATH", path)
    init_db()
    return path


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def offline_settings(monkeypatch):
    """No provider credentials, no email, no pause between batch calls."""
    monkeypatch.setattr(settings, "ELEVENLABS_API_KEY", None)
    monkeypatch.setattr(settings, "ELEVENLABS_AGENT_ID", None)
    monkeypatch.setattr(settings, "ELEVENLABS_PHONE_NUMBER_ID", None)
    monkeypatch.setattr(settings, "EMAIL_ENABLED", False)
    monkeypatch.setattr(settings, "BATCH_CALL_INTERVAL_SECONDS", 0)
    return settings
