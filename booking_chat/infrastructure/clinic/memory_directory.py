from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

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
    dependent_from_row,
    exception_from_row,
    member_card_from_row,
    parse_timestamp,
    patient_from_row,
    professional_from_row,
)

ACTIVE_APPOINTMENT_STATUSES = ("scheduled", "confirmed")


@dataclass(frozen=True)
class _DependentRecord:
    clinic_id: str
    patient_id: str
    dependent: Dependent
    card_number: str | None = None
    card_expires_at: datetime | None = None
    is_active: bool = True


class InMemoryClinicDirectory(
    MemberDirectoryPort,
    ProfessionalDirectoryPort,
    HolidayCalendarPort,
    AppointmentStorePort,
):
    """Clinic data held in process, for local runs and tests.

    Inserts emulate the store triggers for double booking and holidays;
    ``reject_next_insert`` queues any other trigger message.
    """

    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._patients: dict[str, tuple[str, Patient, str | None]] = {}
        self._member_cards: list[tuple[str, MemberCard]] = []
        self._dependents: list[_DependentRecord] = []
        self._professionals: list[tuple[str, Professional]] = []
        self._exceptions: dict[tuple[str, str, str], ScheduleException] = {}
        self._holidays: set[tuple[str, str]] = set()
        self._appointments: list[dict[str, Any]] = []
        self._pending_rejections: list[str] = []
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    # Seeding

    def add_patient(self, clinic_id: str, patient: Patient, cpf: str | None = None) -> None:
        self._patients[patient.id] = (clinic_id, patient, cpf)

    def add_member_card(self, clinic_id: str, card: MemberCard) -> None:
        self._member_cards.append((clinic_id, card))

    def add_dependent(
        self,
        clinic_id: str,
        patient_id: str,
        dependent: Dependent,
        card_number: str | None = None,
        card_expires_at: datetime | None = None,
        is_active: bool = True,
    ) -> None:
        self._dependents.append(
            _DependentRecord(
                clinic_id=clinic_id,
                patient_id=patient_id,
                dependent=dependent,
                card_number=card_number,
                card_expires_at=card_expires_at,
                is_active=is_active,
            )
        )

    def add_professional(self, clinic_id: str, professional: Professional) -> None:
        self._professionals.append((clinic_id, professional))

    def add_exception(self, clinic_id: str, professional_id: str, day: str, exception: ScheduleException) -> None:
        self._exceptions[(clinic_id, professional_id, day)] = exception

    def add_holiday(self, clinic_id: str, day: str) -> None:
        self._holidays.add((clinic_id, day))

    def add_appointment(
        self,
        clinic_id: str,
        professional_id: str,
        day: str,
        start_time: str,
        status: str = "scheduled",
    ) -> None:
        self._appointments.append(
            {
                "id": str(uuid.uuid4()),
                "clinic_id": clinic_id,
                "professional_id": professional_id,
                "appointment_date": day,
                "start_time": start_time if len(start_time) > 5 else f"{start_time}:00",
                "status": status,
            }
        )

    def reject_next_insert(self, message: str) -> None:
        """Queue a trigger error message for the next appointment insert."""
        self._pending_rejections.append(message)

    @property
    def appointments(self) -> list[dict[str, Any]]:
        return list(self._appointments)

    @classmethod
    def from_seed(cls, seed: dict[str, Any], now: Callable[[], datetime] | None = None) -> "InMemoryClinicDirectory":
        directory = cls(now=now)
        clinic_id = str(seed["clinic_id"])
        for row in seed.get("patients", []):
            directory.add_patient(clinic_id, patient_from_row(row), cpf=row.get("cpf"))
        for row in seed.get("member_cards", []):
            directory.add_member_card(clinic_id, member_card_from_row(row))
        for row in seed.get("dependents", []):
            directory.add_dependent(
                clinic_id,
                str(row["patient_id"]),
                dependent_from_row(row),
                card_number=row.get("card_number"),
                card_expires_at=parse_timestamp(row.get("card_expires_at")),
                is_active=row.get("is_active") is not False,
            )
        for row in seed.get("professionals", []):
            directory.add_professional(clinic_id, professional_from_row(row))
        for row in seed.get("exceptions", []):
            directory.add_exception(clinic_id, str(row["professional_id"]), row["date"], exception_from_row(row))
        for day in seed.get("holidays", []):
            directory.add_holiday(clinic_id, day)
        return directory

    @classmethod
    def from_seed_file(cls, path: str) -> "InMemoryClinicDirectory":
        with open(Path(path), "r", encoding="utf-8") as f:
            return cls.from_seed(json.load(f))

    # MemberDirectoryPort

    def get_patient(self, clinic_id: str, patient_id: str) -> Patient | None:
        record = self._patients.get(patient_id)
        if not record or record[0] != clinic_id:
            return None
        return record[1]

    def find_patient_by_cpf(self, clinic_id: str, cpf: str) -> Patient | None:
        accepted = {cpf, format_cpf(cpf)}
        for owner, patient, stored_cpf in self._patients.values():
            if owner == clinic_id and stored_cpf in accepted:
                return patient
        return None

    def find_member_card(self, clinic_id: str, digits: str) -> MemberCard | None:
        matches = [
            card
            for owner, card in self._member_cards
            if owner == clinic_id and card.is_active and card.card_number.upper().endswith(digits)
        ]
        return self._single(matches, "member card")

    def find_dependent_card(self, clinic_id: str, digits: str) -> DependentCard | None:
        matches = [
            DependentCard(
                dependent_id=r.dependent.id,
                name=r.dependent.name,
                patient_id=r.patient_id,
                card_number=r.card_number,
                card_expires_at=r.card_expires_at,
            )
            for r in self._dependents
            if r.clinic_id == clinic_id and r.is_active and r.card_number and r.card_number.upper().endswith(digits)
        ]
        return self._single(matches, "dependent card")

    def check_card_validity(self, clinic_id: str, patient_id: str) -> CardValidity | None:
        cards = [
            card
            for owner, card in self._member_cards
            if owner == clinic_id and card.patient_id == patient_id and card.is_active
        ]
        if not cards:
            return None
        far_future = datetime.max.replace(tzinfo=timezone.utc)
        card = max(cards, key=lambda c: c.expires_at or far_future)
        is_valid = card.expires_at is None or card.expires_at >= self._now()
        return CardValidity(card_number=card.card_number, is_valid=is_valid, expires_at=card.expires_at)

    def list_active_dependents(self, clinic_id: str, patient_id: str) -> list[Dependent]:
        dependents = [
            r.dependent
            for r in self._dependents
            if r.clinic_id == clinic_id and r.patient_id == patient_id and r.is_active
        ]
        return sorted(dependents, key=lambda d: d.name)

    # ProfessionalDirectoryPort

    def list_active_professionals(self, clinic_id: str) -> list[Professional]:
        professionals = [p for owner, p in self._professionals if owner == clinic_id and p.is_active]
        return sorted(professionals, key=lambda p: p.name)

    def get_professional(self, clinic_id: str, professional_id: str) -> Professional | None:
        for owner, professional in self._professionals:
            if owner == clinic_id and professional.id == professional_id:
                return professional
        return None

    def get_schedule_exception(self, clinic_id: str, professional_id: str, day: str) -> ScheduleException | None:
        return self._exceptions.get((clinic_id, professional_id, day))

    # HolidayCalendarPort

    def is_holiday(self, clinic_id: str, day: str) -> bool:
        return (clinic_id, day) in self._holidays

    # AppointmentStorePort

    def booked_start_times(self, clinic_id: str, professional_id: str, day: str) -> set[str]:
        return {
            str(a["start_time"])[:5]
            for a in self._appointments
            if a["clinic_id"] == clinic_id
            and a["professional_id"] == professional_id
            and a["appointment_date"] == day
            and a["status"] in ACTIVE_APPOINTMENT_STATUSES
        }

    def create_appointment(self, appointment: NewAppointment) -> str:
        with self._lock:
            if self._pending_rejections:
                message = self._pending_rejections.pop(0)
                code = BookingRuleCode.from_store_message(message)
                if code is None:
                    raise StoreError(message)
                raise AppointmentRejectedError(code, message)

            if self.is_holiday(appointment.clinic_id, appointment.appointment_date):
                raise AppointmentRejectedError(BookingRuleCode.HOLIDAY)
            booked = self.booked_start_times(
                appointment.clinic_id, appointment.professional_id, appointment.appointment_date
            )
            if appointment.start_time[:5] in booked:
                raise AppointmentRejectedError(BookingRuleCode.SLOT_UNAVAILABLE)

            record = {"id": str(uuid.uuid4()), **appointment.to_record()}
            self._appointments.append(record)
            return record["id"]

    def _single(self, matches: list, label: str):
        if len(matches) > 1:
            self._logger.warning("Ambiguous %s lookup", label, extra={"count": len(matches)})
            return None
        return matches[0] if matches else None
