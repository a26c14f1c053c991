from abc import ABC, abstractmethod

from booking_chat.domain.entities.booking_session import BookingSession


class SessionStorePort(ABC):
    @abstractmethod
    def get(self, clinic_id: str, phone: str) -> BookingSession | None:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, session: BookingSession) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, clinic_id: str, phone: str) -> None:
        raise NotImplementedError
