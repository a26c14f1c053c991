from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum


class BookingState(str, Enum):
    WAITING_CPF = "WAITING_CPF"
    CONFIRM_IDENTITY = "CONFIRM_IDENTITY"
    SELECT_BOOKING_FOR = "SELECT_BOOKING_FOR"
    SELECT_DEPENDENT = "SELECT_DEPENDENT"
    SELECT_PROFESSIONAL = "SELECT_PROFESSIONAL"
    SELECT_DATE = "SELECT_DATE"
    SELECT_TIME = "SELECT_TIME"
    CONFIRM_APPOINTMENT = "CONFIRM_APPOINTMENT"
    FINISHED = "FINISHED"


class BookingFor(str, Enum):
    SELF = "titular"
    DEPENDENT = "dependent"


@dataclass(frozen=True)
class DependentOption:
    id: str
    name: str
    cpf: str | None = None


@dataclass(frozen=True)
class ProfessionalOption:
    id: str
    name: str
    specialty: str


@dataclass(frozen=True)
class DateOption:
    date: str  # YYYY-MM-DD
    formatted: str  # DD/MM/YYYY
    weekday: str


@dataclass(frozen=True)
class TimeOption:
    time: str  # HH:MM
    formatted: str


@dataclass(frozen=True)
class BookingSession:
    """Conversation state for one (clinic, phone) pair.

    The ``available_*`` tuples are snapshots of the lists last shown to the
    caller; a numbered reply always resolves against them.
    """

    clinic_id: str
    phone: str
    expires_at: datetime
    state: BookingState = BookingState.WAITING_CPF
    patient_id: str | None = None
    patient_name: str | None = None
    booking_for: BookingFor | None = None
    selected_dependent_id: str | None = None
    selected_dependent_name: str | None = None
    selected_professional_id: str | None = None
    selected_professional_name: str | None = None
    selected_date: str | None = None
    selected_time: str | None = None
    available_dependents: tuple[DependentOption, ...] = field(default_factory=tuple)
    available_professionals: tuple[ProfessionalOption, ...] = field(default_factory=tuple)
    available_dates: tuple[DateOption, ...] = field(default_factory=tuple)
    available_times: tuple[TimeOption, ...] = field(default_factory=tuple)

    @classmethod
    def start(cls, clinic_id: str, phone: str, now: datetime, ttl: timedelta) -> "BookingSession":
        return cls(clinic_id=clinic_id, phone=phone, expires_at=now + ttl)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now

    def is_open(self, now: datetime) -> bool:
        return self.state is not BookingState.FINISHED and not self.is_expired(now)

    def touched(self, now: datetime, ttl: timedelta) -> "BookingSession":
        return replace(self, expires_at=now + ttl)

    def evolve(self, **changes) -> "BookingSession":
        return replace(self, **changes)

    @property
    def attendee_name(self) -> str | None:
        """Name of the person the appointment is for."""
        if self.booking_for is BookingFor.DEPENDENT and self.selected_dependent_name:
            return self.selected_dependent_name
        return self.patient_name
