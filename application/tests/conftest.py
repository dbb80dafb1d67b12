"""Shared fixtures: an in-memory studio and a TestClient wired to it."""

from __future__ import annotations

from datetime import datetime
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from src.braids_studio.llm import TemplateDrafter
from src.braids_studio.main import app, get_drafter, get_state
from src.braids_studio.state import StudioState
from src.braids_studio.store import MemoryStore

SAO_PAULO = ZoneInfo("America/Sao_Paulo")


def sp_time(year, month, day, hour=10, minute=0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=SAO_PAULO)


@pytest.fixture
def now() -> datetime:
    return sp_time(2024, 6, 1, 10, 0)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def state(store, now) -> StudioState:
    return StudioState(store).load(now)


@pytest.fixture
def client(state):
    app.dependency_overrides[get_state] = lambda: state
    app.dependency_overrides[get_drafter] = lambda: TemplateDrafter()
    with patch("src.braids_studio.twilio_handler.send_sms", return_value=None), patch(
        "src.braids_studio.twilio_handler.send_whatsapp", return_value=None
    ):
        yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    resp = client.post("/login", json={"username": "admin", "password": "admin"})
    assert resp.status_code == 200
    return client
