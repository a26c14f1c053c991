"""
Tests for the Supabase adapters against a mocked PostgREST transport.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from booking_chat.application.exceptions import AppointmentRejectedError, StoreError
from booking_chat.domain.entities.appointment import BookingRuleCode, NewAppointment
from booking_chat.domain.entities.booking_session import BookingSession, BookingState
from booking_chat.infrastructure.supabase.clinic_directory import (
    SupabaseAppointmentStore,
    SupabaseHolidayCalendar,
    SupabaseMemberDirectory,
    SupabaseProfessionalDirectory,
)
from booking_chat.infrastructure.supabase.postgrest_client import PostgrestClient
from booking_chat.infrastructure.supabase.session_store import SupabaseSessionStore

APPOINTMENT = NewAppointment(
    clinic_id="clinic-1",
    patient_id="pat-ana",
    professional_id="prof-carla",
    appointment_date="2025-03-11",
    start_time="08:00:00",
    end_time="08:30:00",
    duration_minutes=30,
)


def _client(handler) -> PostgrestClient:
    return PostgrestClient(
        base_url="https://example.supabase.co/",
        service_key="service-key",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_requests_carry_service_key_headers():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    SupabaseProfessionalDirectory(_client(handler)).list_active_professionals("clinic-1")

    [request] = seen
    assert request.url.path == "/rest/v1/professionals"
    assert request.headers["apikey"] == "service-key"
    assert request.headers["Authorization"] == "Bearer service-key"
    assert request.url.params["clinic_id"] == "eq.clinic-1"
    assert request.url.params["is_active"] == "eq.true"


def test_client_requires_credentials():
    with pytest.raises(ValueError):
        PostgrestClient(base_url="", service_key="")


def test_professional_rows_are_mapped():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {
                    "id": "prof-carla",
                    "name": "Dra. Carla",
                    "specialty": "Clínica",
                    "appointment_duration": 30,
                    "schedule": {"monday": {"enabled": True, "slots": []}},
                    "is_active": True,
                }
            ],
        )

    [professional] = SupabaseProfessionalDirectory(_client(handler)).list_active_professionals("clinic-1")

    assert professional.id == "prof-carla"
    assert professional.appointment_duration == 30
    assert professional.schedule == {"monday": {"enabled": True, "slots": []}}


def test_card_lookup_matches_suffix_and_rejects_ambiguity():
    responses = [
        [{"patient_id": "pat-ana", "card_number": "SIND-000123", "expires_at": None, "is_active": True}],
        [
            {"patient_id": "pat-ana", "card_number": "SIND-000123", "is_active": True},
            {"patient_id": "pat-bia", "card_number": "OUTRO-000123", "is_active": True},
        ],
    ]
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=responses.pop(0))

    members = SupabaseMemberDirectory(_client(handler))

    card = members.find_member_card("clinic-1", "000123")
    assert card.patient_id == "pat-ana"
    assert seen[0].url.params["or"] == "(card_number.ilike.*000123,card_number.ilike.*-000123)"

    assert members.find_member_card("clinic-1", "000123") is None


def test_card_validity_rpc():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/rest/v1/rpc/is_patient_card_valid"
        assert json.loads(request.content) == {"p_patient_id": "pat-ana", "p_clinic_id": "clinic-1"}
        return httpx.Response(
            200, json=[{"card_number": "SIND-000123", "is_valid": False, "expires_at": "2025-01-31T00:00:00Z"}]
        )

    validity = SupabaseMemberDirectory(_client(handler)).check_card_validity("clinic-1", "pat-ana")

    assert validity.is_valid is False
    assert validity.expires_at == datetime(2025, 1, 31, tzinfo=timezone.utc)


def test_card_validity_with_null_flag_is_not_a_rejection():
    """Only an explicit false from the RPC marks the card invalid."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"card_number": "SIND-000123", "is_valid": None, "expires_at": None}])

    validity = SupabaseMemberDirectory(_client(handler)).check_card_validity("clinic-1", "pat-ana")

    assert validity.is_valid is True
    assert validity.expires_at is None


def test_holiday_check_failure_counts_as_working_day():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"message": "function is_holiday does not exist"})

    assert SupabaseHolidayCalendar(_client(handler)).is_holiday("clinic-1", "2025-03-11") is False


def test_holiday_check_reads_flag():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"is_holiday": True, "holiday_name": "Carnaval"}])

    assert SupabaseHolidayCalendar(_client(handler)).is_holiday("clinic-1", "2025-03-04") is True


def test_booked_start_times_are_trimmed_to_minutes():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["status"] == "in.(scheduled,confirmed)"
        return httpx.Response(200, json=[{"start_time": "08:00:00"}, {"start_time": "09:30:00"}])

    booked = SupabaseAppointmentStore(_client(handler)).booked_start_times("clinic-1", "prof-carla", "2025-03-11")

    assert booked == {"08:00", "09:30"}


def test_appointment_insert_returns_id():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["start_time"] == "08:00:00"
        assert body["status"] == "scheduled"
        assert "dependent_id" not in body
        assert request.headers["Prefer"] == "return=representation"
        return httpx.Response(201, json=[{"id": "appt-1"}])

    assert SupabaseAppointmentStore(_client(handler)).create_appointment(APPOINTMENT) == "appt-1"


def test_trigger_error_maps_to_rule_code():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"code": "P0001", "message": "FERIADO: Não é possível agendar em feriado"}
        )

    with pytest.raises(AppointmentRejectedError) as excinfo:
        SupabaseAppointmentStore(_client(handler)).create_appointment(APPOINTMENT)

    assert excinfo.value.code is BookingRuleCode.HOLIDAY


def test_other_insert_errors_stay_store_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(StoreError) as excinfo:
        SupabaseAppointmentStore(_client(handler)).create_appointment(APPOINTMENT)

    assert not isinstance(excinfo.value, AppointmentRejectedError)


def test_session_store_upserts_on_clinic_and_phone():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "GET":
            return httpx.Response(
                200,
                json=[
                    {
                        "clinic_id": "clinic-1",
                        "phone": "5511999990000",
                        "state": "SELECT_PROFESSIONAL",
                        "patient_id": "pat-ana",
                        "expires_at": "2025-03-10T12:10:00+00:00",
                        "available_professionals": [{"id": "prof-carla", "name": "Dra. Carla", "specialty": None}],
                    }
                ],
            )
        return httpx.Response(204)

    store = SupabaseSessionStore(_client(handler))
    session = BookingSession(
        clinic_id="clinic-1",
        phone="5511999990000",
        expires_at=datetime(2025, 3, 10, 12, 10, tzinfo=timezone.utc),
    )

    store.upsert(session)
    loaded = store.get("clinic-1", "5511999990000")
    store.delete("clinic-1", "5511999990000")

    upsert, select, delete = seen
    assert upsert.method == "POST"
    assert upsert.url.path == "/rest/v1/whatsapp_booking_sessions"
    assert upsert.url.params["on_conflict"] == "clinic_id,phone"
    assert "merge-duplicates" in upsert.headers["Prefer"]
    assert json.loads(upsert.content)["state"] == "WAITING_CPF"

    assert select.url.params["phone"] == "eq.5511999990000"
    assert loaded.state is BookingState.SELECT_PROFESSIONAL
    assert loaded.available_professionals[0].specialty == ""

    assert delete.method == "DELETE"
    assert delete.url.params["clinic_id"] == "eq.clinic-1"
