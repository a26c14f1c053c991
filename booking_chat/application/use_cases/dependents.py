from __future__ import annotations

from booking_chat.application.ports.member_directory import MemberDirectoryPort
from booking_chat.application.utils.message_rules import parse_choice
from booking_chat.domain.entities.booking_session import BookingFor, DependentOption

BOOKING_FOR_OPTIONS = (BookingFor.SELF, BookingFor.DEPENDENT)


class DependentSelector:
    """List a member's active dependents and resolve the caller's pick."""

    def __init__(self, members: MemberDirectoryPort) -> None:
        self._members = members

    def snapshot(self, clinic_id: str, patient_id: str) -> tuple[DependentOption, ...]:
        return tuple(
            DependentOption(id=d.id, name=d.name, cpf=d.cpf)
            for d in self._members.list_active_dependents(clinic_id, patient_id)
        )

    @staticmethod
    def choose_booking_for(text: str) -> BookingFor | None:
        choice = parse_choice(text, len(BOOKING_FOR_OPTIONS))
        if choice is None:
            return None
        return BOOKING_FOR_OPTIONS[choice - 1]

    @staticmethod
    def choose_dependent(options: tuple[DependentOption, ...], text: str) -> DependentOption | None:
        choice = parse_choice(text, len(options))
        if choice is None:
            return None
        return options[choice - 1]
