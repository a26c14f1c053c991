from __future__ import annotations

import logging
from typing import Any

from booking_chat.application.exceptions import AppointmentRejectedError, StoreError
from booking_chat.application.ports.appointment_store import AppointmentStorePort
from booking_chat.application.ports.holiday_calendar import HolidayCalendarPort
from booking_chat.application.ports.member_directory import MemberDirectoryPort
from booking_chat.application.ports.professional_directory import ProfessionalDirectoryPort
from booking_chat.application.utils.documents import format_cpf
from booking_chat.domain.entities.appointment import BookingRuleCode, NewAppointment
from booking_chat.domain.entities.member import CardValidity, Dependent, DependentCard, MemberCard, Patient
from booking_chat.domain.entities.professional import Professional
from booking_chat.domain.entities.schedule import ScheduleException
from booking_chat.infrastructure.records import (
    card_validity_from_row,
    dependent_card_from_row,
    dependent_from_row,
    exception_from_row,
    member_card_from_row,
    patient_from_row,
    professional_from_row,
)
from booking_chat.infrastructure.supabase.postgrest_client import PostgrestClient, PostgrestError

PATIENT_COLUMNS = "id,name,is_active,no_show_blocked_until,no_show_unblocked_at"
PROFESSIONAL_COLUMNS = "id,name,specialty,appointment_duration,schedule,is_active"


def _card_suffix_filter(digits: str) -> str:
    return f"(card_number.ilike.*{digits},card_number.ilike.*-{digits})"


def _first_row(data: Any) -> dict[str, Any] | None:
    if isinstance(data, list):
        return data[0] if data else None
    if isinstance(data, dict):
        return data
    return None


class SupabaseMemberDirectory(MemberDirectoryPort):
    def __init__(self, client: PostgrestClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def get_patient(self, clinic_id: str, patient_id: str) -> Patient | None:
        row = self._client.select_one(
            "patients",
            {"select": PATIENT_COLUMNS, "id": f"eq.{patient_id}", "clinic_id": f"eq.{clinic_id}"},
        )
        return patient_from_row(row) if row else None

    def find_patient_by_cpf(self, clinic_id: str, cpf: str) -> Patient | None:
        row = self._client.select_one(
            "patients",
            {
                "select": PATIENT_COLUMNS,
                "clinic_id": f"eq.{clinic_id}",
                "or": f"(cpf.eq.{cpf},cpf.eq.{format_cpf(cpf)})",
            },
        )
        return patient_from_row(row) if row else None

    def find_member_card(self, clinic_id: str, digits: str) -> MemberCard | None:
        rows = self._client.select(
            "patient_cards",
            {
                "select": "patient_id,expires_at,is_active,card_number",
                "clinic_id": f"eq.{clinic_id}",
                "is_active": "eq.true",
                "or": _card_suffix_filter(digits),
                "limit": "2",
            },
        )
        row = self._single(rows, "member card")
        return member_card_from_row(row) if row else None

    def find_dependent_card(self, clinic_id: str, digits: str) -> DependentCard | None:
        rows = self._client.select(
            "patient_dependents",
            {
                "select": "id,name,patient_id,card_number,card_expires_at",
                "clinic_id": f"eq.{clinic_id}",
                "is_active": "eq.true",
                "or": _card_suffix_filter(digits),
                "limit": "2",
            },
        )
        row = self._single(rows, "dependent card")
        return dependent_card_from_row(row) if row else None

    def check_card_validity(self, clinic_id: str, patient_id: str) -> CardValidity | None:
        data = self._client.rpc("is_patient_card_valid", {"p_patient_id": patient_id, "p_clinic_id": clinic_id})
        row = _first_row(data)
        if not row or not row.get("card_number"):
            return None
        return card_validity_from_row(row)

    def list_active_dependents(self, clinic_id: str, patient_id: str) -> list[Dependent]:
        rows = self._client.select(
            "patient_dependents",
            {
                "select": "id,name,cpf",
                "patient_id": f"eq.{patient_id}",
                "is_active": "eq.true",
                "order": "name.asc",
            },
        )
        return [dependent_from_row(row) for row in rows]

    def _single(self, rows: list[dict[str, Any]], label: str) -> dict[str, Any] | None:
        if len(rows) > 1:
            self._logger.warning("Ambiguous %s lookup", label, extra={"count": len(rows)})
            return None
        return rows[0] if rows else None


class SupabaseProfessionalDirectory(ProfessionalDirectoryPort):
    def __init__(self, client: PostgrestClient) -> None:
        self._client = client

    def list_active_professionals(self, clinic_id: str) -> list[Professional]:
        rows = self._client.select(
            "professionals",
            {
                "select": PROFESSIONAL_COLUMNS,
                "clinic_id": f"eq.{clinic_id}",
                "is_active": "eq.true",
                "order": "name.asc",
            },
        )
        return [professional_from_row(row) for row in rows]

    def get_professional(self, clinic_id: str, professional_id: str) -> Professional | None:
        row = self._client.select_one(
            "professionals",
            {"select": PROFESSIONAL_COLUMNS, "id": f"eq.{professional_id}", "clinic_id": f"eq.{clinic_id}"},
        )
        return professional_from_row(row) if row else None

    def get_schedule_exception(self, clinic_id: str, professional_id: str, day: str) -> ScheduleException | None:
        row = self._client.select_one(
            "professional_schedule_exceptions",
            {
                "select": "is_day_off,start_time,end_time",
                "clinic_id": f"eq.{clinic_id}",
                "professional_id": f"eq.{professional_id}",
                "exception_date": f"eq.{day}",
            },
        )
        return exception_from_row(row) if row else None


class SupabaseHolidayCalendar(HolidayCalendarPort):
    def __init__(self, client: PostgrestClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def is_holiday(self, clinic_id: str, day: str) -> bool:
        try:
            data = self._client.rpc("is_holiday", {"p_clinic_id": clinic_id, "p_date": day})
        except StoreError as e:
            self._logger.error("Error checking holiday", extra={"clinic_id": clinic_id, "error": str(e)})
            return False
        row = _first_row(data)
        return bool(row and row.get("is_holiday"))


class SupabaseAppointmentStore(AppointmentStorePort):
    def __init__(self, client: PostgrestClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def booked_start_times(self, clinic_id: str, professional_id: str, day: str) -> set[str]:
        rows = self._client.select(
            "appointments",
            {
                "select": "start_time",
                "clinic_id": f"eq.{clinic_id}",
                "professional_id": f"eq.{professional_id}",
                "appointment_date": f"eq.{day}",
                "status": "in.(scheduled,confirmed)",
            },
        )
        return {str(row.get("start_time"))[:5] for row in rows if row.get("start_time")}

    def create_appointment(self, appointment: NewAppointment) -> str:
        try:
            rows = self._client.insert("appointments", appointment.to_record(), select="id")
        except PostgrestError as e:
            code = BookingRuleCode.from_store_message(str(e)) or BookingRuleCode.from_store_message(e.details)
            if code is not None:
                raise AppointmentRejectedError(code, str(e)) from e
            raise

        if not rows or not rows[0].get("id"):
            raise StoreError("No appointment id returned from Supabase")
        appointment_id = str(rows[0]["id"])
        self._logger.info(
            "Appointment inserted",
            extra={"clinic_id": appointment.clinic_id, "reason": appointment_id},
        )
        return appointment_id
