from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from booking_chat.application.ports.member_directory import MemberDirectoryPort
from booking_chat.application.utils.clock import BusinessClock
from booking_chat.application.utils.documents import classify_identity_token, validate_cpf
from booking_chat.domain.entities.member import DependentCard, Patient


@dataclass(frozen=True)
class IdentityResult:
    # "resolved", "invalid_input", "card_not_found", "card_expired",
    # "dependent_card_expired", "not_found", "inactive", "titular_inactive", "blocked"
    action: str
    patient: Patient | None = None
    dependent: DependentCard | None = None
    card_number: str | None = None
    expires_at: datetime | None = None
    blocked_until: date | None = None
    via: str | None = None  # "card" | "cpf"

    @property
    def resolved(self) -> bool:
        return self.action == "resolved"


class IdentityResolver:
    """Resolve a CPF or card number typed by the caller to a member."""

    def __init__(self, members: MemberDirectoryPort, clock: BusinessClock) -> None:
        self._members = members
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def resolve(self, clinic_id: str, text: str) -> IdentityResult:
        token = classify_identity_token(text)
        if token is None:
            return IdentityResult(action="invalid_input")

        if token.kind == "card":
            return self._resolve_card(clinic_id, token.digits)

        if not validate_cpf(token.digits):
            return IdentityResult(action="invalid_input")
        return self._resolve_cpf(clinic_id, token.digits)

    def _resolve_card(self, clinic_id: str, digits: str) -> IdentityResult:
        now = self._clock.now()

        card = self._members.find_member_card(clinic_id, digits)
        if card:
            if card.expires_at and card.expires_at < now:
                self._logger.info("Member card expired", extra={"clinic_id": clinic_id, "reason": "card_expired"})
                return IdentityResult(
                    action="card_expired",
                    card_number=card.card_number,
                    expires_at=card.expires_at,
                    via="card",
                )

            patient = self._members.get_patient(clinic_id, card.patient_id)
            if not patient or not patient.is_active:
                return IdentityResult(action="inactive", via="card")
            if patient.is_blocked_on(self._clock.today()):
                return IdentityResult(action="blocked", blocked_until=patient.no_show_blocked_until, via="card")
            return IdentityResult(action="resolved", patient=patient, via="card")

        dependent = self._members.find_dependent_card(clinic_id, digits)
        if dependent:
            if dependent.card_expires_at and dependent.card_expires_at < now:
                self._logger.info(
                    "Dependent card expired", extra={"clinic_id": clinic_id, "reason": "dependent_card_expired"}
                )
                return IdentityResult(
                    action="dependent_card_expired",
                    card_number=dependent.card_number,
                    expires_at=dependent.card_expires_at,
                    via="card",
                )

            titular = self._members.get_patient(clinic_id, dependent.patient_id)
            if not titular or not titular.is_active:
                return IdentityResult(action="titular_inactive", via="card")
            if titular.is_blocked_on(self._clock.today()):
                return IdentityResult(action="blocked", blocked_until=titular.no_show_blocked_until, via="card")
            return IdentityResult(action="resolved", patient=titular, dependent=dependent, via="card")

        return IdentityResult(action="card_not_found", via="card")

    def _resolve_cpf(self, clinic_id: str, cpf: str) -> IdentityResult:
        patient = self._members.find_patient_by_cpf(clinic_id, cpf)
        if not patient:
            return IdentityResult(action="not_found", via="cpf")
        if not patient.is_active:
            return IdentityResult(action="inactive", via="cpf")
        if patient.is_blocked_on(self._clock.today()):
            return IdentityResult(action="blocked", blocked_until=patient.no_show_blocked_until, via="cpf")

        # A member without a card may still book; only an existing, invalid card blocks entry.
        validity = self._members.check_card_validity(clinic_id, patient.id)
        if validity and validity.card_number and not validity.is_valid:
            return IdentityResult(
                action="card_expired",
                card_number=validity.card_number,
                expires_at=validity.expires_at,
                via="cpf",
            )

        return IdentityResult(action="resolved", patient=patient, via="cpf")
