from __future__ import annotations

from booking_chat.application.ports.session_store import SessionStorePort
from booking_chat.domain.entities.booking_session import BookingSession
from booking_chat.infrastructure.store.session_codec import session_from_record, session_to_record
from booking_chat.infrastructure.supabase.postgrest_client import PostgrestClient

SESSIONS_TABLE = "whatsapp_booking_sessions"


class SupabaseSessionStore(SessionStorePort):
    """Sessions kept in the shared sessions table, one row per (clinic_id, phone)."""

    def __init__(self, client: PostgrestClient, table: str = SESSIONS_TABLE) -> None:
        self._client = client
        self._table = table

    def get(self, clinic_id: str, phone: str) -> BookingSession | None:
        row = self._client.select_one(
            self._table,
            {"select": "*", "clinic_id": f"eq.{clinic_id}", "phone": f"eq.{phone}"},
        )
        return session_from_record(row) if row else None

    def upsert(self, session: BookingSession) -> None:
        self._client.upsert(self._table, session_to_record(session), on_conflict="clinic_id,phone")

    def delete(self, clinic_id: str, phone: str) -> None:
        self._client.delete(self._table, {"clinic_id": f"eq.{clinic_id}", "phone": f"eq.{phone}"})
