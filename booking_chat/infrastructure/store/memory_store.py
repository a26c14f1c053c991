from __future__ import annotations

import threading

from booking_chat.application.ports.session_store import SessionStorePort
from booking_chat.domain.entities.booking_session import BookingSession


class MemorySessionStore(SessionStorePort):
    def __init__(self) -> None:
        self._sessions: dict[tuple[str, str], BookingSession] = {}
        self._lock = threading.Lock()

    def get(self, clinic_id: str, phone: str) -> BookingSession | None:
        with self._lock:
            return self._sessions.get((clinic_id, phone))

    def upsert(self, session: BookingSession) -> None:
        with self._lock:
            self._sessions[(session.clinic_id, session.phone)] = session

    def delete(self, clinic_id: str, phone: str) -> None:
        with self._lock:
            self._sessions.pop((clinic_id, phone), None)
