from __future__ import annotations

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from barberai.core.config import Settings
from barberai.main import app
from barberai.wiring.dependencies import build_container, get_container


@pytest.fixture
def client():
    container = build_container(
        Settings(STORE_PROVIDER="memory", REMINDERS_ENABLED=False, BUSINESS_NAME="Test Barber")
    )
    app.dependency_overrides[get_container] = lambda: container
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _future_day(open_day: bool) -> date:
    day = date.today() + timedelta(days=2)
    while (day.weekday() == 4) == open_day:
        day += timedelta(days=1)
    return day


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_start_and_continue_conversation(client):
    response = client.post("/api/v1/conversations", json={"channel": "website"})
    assert response.status_code == 201
    data = response.json()
    assert data["phase"] == "collecting_service"
    assert len(data["messages"]) == 2
    assert "Test Barber" in data["messages"][0]["text"]
    conversation_id = data["conversation_id"]

    response = client.post(f"/api/v1/conversations/{conversation_id}/messages", json={"text": "haircut"})
    assert response.status_code == 200
    data = response.json()
    assert data["phase"] == "collecting_date"
    assert data["language"] == "en"
    assert data["appointment"] is None

    response = client.get(f"/api/v1/conversations/{conversation_id}/messages")
    assert response.status_code == 200
    history = response.json()
    assert history["phase"] == "collecting_date"
    assert [m["role"] for m in history["messages"]][:3] == ["assistant", "assistant", "user"]


def test_whatsapp_conversation_carries_contact(client):
    response = client.post(
        "/api/v1/conversations",
        json={"channel": "whatsapp", "customer_contact": "+966500000000"},
    )
    assert response.status_code == 201
    assert response.json()["phase"] == "collecting_service"


def test_unknown_conversation_is_404(client):
    response = client.post("/api/v1/conversations/missing/messages", json={"text": "hi"})
    assert response.status_code == 404
    assert client.get("/api/v1/conversations/missing/messages").status_code == 404


def test_message_too_long_is_rejected(client):
    conversation_id = client.post("/api/v1/conversations", json={}).json()["conversation_id"]
    response = client.post(f"/api/v1/conversations/{conversation_id}/messages", json={"text": "a" * 2001})
    assert response.status_code == 422


def test_availability_open_day(client):
    day = _future_day(open_day=True)
    response = client.get("/api/v1/availability", params={"date": day.isoformat()})
    assert response.status_code == 200
    data = response.json()
    assert data["open"] is True
    assert data["times"][0] == "10:00"
    assert len(data["times"]) == 11


def test_availability_closed_day(client):
    day = _future_day(open_day=False)
    data = client.get("/api/v1/availability", params={"date": day.isoformat()}).json()
    assert data == {"date": day.isoformat(), "open": False, "times": []}


def test_availability_invalid_date(client):
    assert client.get("/api/v1/availability", params={"date": "not-a-date"}).status_code == 422
