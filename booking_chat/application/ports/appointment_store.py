from __future__ import annotations

from abc import ABC, abstractmethod

from booking_chat.domain.entities.appointment import NewAppointment


class AppointmentStorePort(ABC):
    @abstractmethod
    def booked_start_times(self, clinic_id: str, professional_id: str, day: str) -> set[str]:
        """Start times (HH:MM) of scheduled or confirmed appointments on a date."""
        raise NotImplementedError

    @abstractmethod
    def create_appointment(self, appointment: NewAppointment) -> str:
        """Insert the appointment. Returns appointment id.

        Raises AppointmentRejectedError when a business rule refuses the insert
        and StoreError on any other failure.
        """
        raise NotImplementedError
