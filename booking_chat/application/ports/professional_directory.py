from __future__ import annotations

from abc import ABC, abstractmethod

from booking_chat.domain.entities.professional import Professional
from booking_chat.domain.entities.schedule import ScheduleException


class ProfessionalDirectoryPort(ABC):
    @abstractmethod
    def list_active_professionals(self, clinic_id: str) -> list[Professional]:
        """Active professionals ordered by name."""
        raise NotImplementedError

    @abstractmethod
    def get_professional(self, clinic_id: str, professional_id: str) -> Professional | None:
        raise NotImplementedError

    @abstractmethod
    def get_schedule_exception(
        self, clinic_id: str, professional_id: str, day: str
    ) -> ScheduleException | None:
        raise NotImplementedError
