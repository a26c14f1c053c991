from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class Patient:
    id: str
    name: str
    is_active: bool = True
    no_show_blocked_until: date | None = None
    no_show_unblocked_at: datetime | None = None

    def is_blocked_on(self, today: date) -> bool:
        """A no-show block holds until its date unless it was lifted."""
        if self.no_show_blocked_until is None or self.no_show_unblocked_at is not None:
            return False
        return self.no_show_blocked_until >= today


@dataclass(frozen=True)
class MemberCard:
    patient_id: str
    card_number: str
    expires_at: datetime | None = None
    is_active: bool = True


@dataclass(frozen=True)
class DependentCard:
    dependent_id: str
    name: str
    patient_id: str
    card_number: str
    card_expires_at: datetime | None = None


@dataclass(frozen=True)
class CardValidity:
    card_number: str | None
    is_valid: bool
    expires_at: datetime | None = None


@dataclass(frozen=True)
class Dependent:
    id: str
    name: str
    cpf: str | None = None
