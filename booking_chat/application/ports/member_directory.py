from __future__ import annotations

from abc import ABC, abstractmethod

from booking_chat.domain.entities.member import CardValidity, Dependent, DependentCard, MemberCard, Patient


class MemberDirectoryPort(ABC):
    @abstractmethod
    def get_patient(self, clinic_id: str, patient_id: str) -> Patient | None:
        raise NotImplementedError

    @abstractmethod
    def find_patient_by_cpf(self, clinic_id: str, cpf: str) -> Patient | None:
        """Exact match on the CPF, stored either as raw digits or punctuated."""
        raise NotImplementedError

    @abstractmethod
    def find_member_card(self, clinic_id: str, digits: str) -> MemberCard | None:
        """Active member card whose number ends with the digits (bare or prefixed)."""
        raise NotImplementedError

    @abstractmethod
    def find_dependent_card(self, clinic_id: str, digits: str) -> DependentCard | None:
        """Active dependent whose card number ends with the digits."""
        raise NotImplementedError

    @abstractmethod
    def check_card_validity(self, clinic_id: str, patient_id: str) -> CardValidity | None:
        """Current card of a patient, or None if the patient has no card."""
        raise NotImplementedError

    @abstractmethod
    def list_active_dependents(self, clinic_id: str, patient_id: str) -> list[Dependent]:
        """Active dependents ordered by name."""
        raise NotImplementedError
