"""
Tests for the booking web chat HTTP endpoint.
"""

from __future__ import annotations

from datetime import datetime

from fastapi.testclient import TestClient

from booking_chat.application.use_cases.reply_composer import ASK_IDENTITY, GENERIC_ERROR
from booking_chat.application.utils.clock import BusinessClock, fixed_offset
from booking_chat.domain.entities.booking_session import BookingState
from booking_chat.domain.entities.dialogue_reply import DialogueReply
from booking_chat.domain.entities.member import Patient
from booking_chat.infrastructure.clinic.memory_directory import InMemoryClinicDirectory
from booking_chat.infrastructure.store.memory_store import MemorySessionStore
from booking_chat.main import app
from booking_chat.wiring.dependencies import ClinicDirectories, build_booking_dialogue, get_booking_dialogue

TZ = fixed_offset(-3)


def _dialogue():
    now = datetime(2025, 3, 10, 9, 0, tzinfo=TZ)
    directory = InMemoryClinicDirectory(now=lambda: now)
    directory.add_patient("clinic-1", Patient(id="pat-ana", name="Ana Souza"), cpf="52998224725")
    return build_booking_dialogue(
        sessions=MemorySessionStore(),
        directories=ClinicDirectories(
            members=directory,
            professionals=directory,
            holidays=directory,
            appointments=directory,
        ),
        clock=BusinessClock(TZ, now=lambda: now),
    )


class ExplodingDialogue:
    def handle(self, clinic_id: str, phone: str, text: str | None) -> DialogueReply:
        raise RuntimeError("database unavailable")


class FinishedDialogue:
    def handle(self, clinic_id: str, phone: str, text: str | None) -> DialogueReply:
        return DialogueReply(text="✅ Agendamento confirmado!", state=BookingState.FINISHED, booking_complete=True)


def _client(dialogue) -> TestClient:
    app.dependency_overrides[get_booking_dialogue] = lambda: dialogue
    return TestClient(app)


def teardown_function():
    app.dependency_overrides.clear()


def test_conversation_over_http():
    """The same dialogue answers consecutive requests for one phone."""
    client = _client(_dialogue())

    first = client.post("/booking-web-chat", json={"clinic_id": "clinic-1", "phone": "5511999990000"})
    assert first.status_code == 200
    assert first.json() == {"response": ASK_IDENTITY, "state": "WAITING_CPF"}

    second = client.post(
        "/booking-web-chat",
        json={"clinic_id": "clinic-1", "phone": "5511999990000", "message": "529.982.247-25"},
    )
    body = second.json()
    assert body["state"] == "CONFIRM_IDENTITY"
    assert "*Ana Souza*" in body["response"]
    assert "booking_complete" not in body


def test_booking_complete_flag_on_success():
    client = _client(FinishedDialogue())

    resp = client.post("/booking-web-chat", json={"clinic_id": "clinic-1", "phone": "1", "message": "1"})

    assert resp.json() == {
        "response": "✅ Agendamento confirmado!",
        "state": "FINISHED",
        "booking_complete": True,
    }


def test_missing_fields_return_400():
    client = _client(_dialogue())

    resp = client.post("/booking-web-chat", json={"clinic_id": "clinic-1"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "clinic_id and phone are required"}

    resp = client.post("/booking-web-chat", json={"phone": "5511999990000", "message": "oi"})
    assert resp.status_code == 400


def test_malformed_body_returns_400():
    client = _client(_dialogue())

    resp = client.post(
        "/booking-web-chat",
        content="not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert "error" in resp.json()


def test_unhandled_error_returns_500_with_fallback_text():
    client = _client(ExplodingDialogue())

    resp = client.post("/booking-web-chat", json={"clinic_id": "clinic-1", "phone": "5511999990000"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "database unavailable", "response": GENERIC_ERROR}


def test_options_preflight_and_cors_header():
    client = _client(_dialogue())

    preflight = client.options("/booking-web-chat")
    assert preflight.status_code == 200
    assert preflight.content == b""

    resp = client.post(
        "/booking-web-chat",
        json={"clinic_id": "clinic-1", "phone": "5511999990000"},
        headers={"Origin": "https://clinic.example.com"},
    )
    assert resp.headers["access-control-allow-origin"] == "*"


def test_browser_preflight_accepts_any_requested_header():
    """A cross-origin preflight asking for a non-standard header is still allowed."""
    client = _client(_dialogue())

    resp = client.options(
        "/booking-web-chat",
        headers={
            "Origin": "https://clinic.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type,x-requested-with",
        },
    )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"


def test_health():
    client = TestClient(app)
    assert client.get("/health").json() == {"status": "ok"}
