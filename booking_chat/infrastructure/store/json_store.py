from __future__ import annotations

import hashlib
import json
import logging
import threading
from pathlib import Path
from typing import Any

from booking_chat.application.ports.session_store import SessionStorePort
from booking_chat.domain.entities.booking_session import BookingSession
from booking_chat.infrastructure.store.session_codec import session_from_record, session_to_record


class JsonSessionStore(SessionStorePort):
    """One JSON file per (clinic, phone), written atomically."""

    def __init__(self, data_dir: str = "./data/booking_sessions") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def get(self, clinic_id: str, phone: str) -> BookingSession | None:
        key = _file_key(clinic_id, phone)
        with self._get_lock(key):
            data = self._load(key)
        if data is None:
            return None
        return session_from_record(data)

    def upsert(self, session: BookingSession) -> None:
        key = _file_key(session.clinic_id, session.phone)
        with self._get_lock(key):
            self._save(key, session_to_record(session))

    def delete(self, clinic_id: str, phone: str) -> None:
        key = _file_key(clinic_id, phone)
        with self._get_lock(key):
            self._get_file_path(key).unlink(missing_ok=True)

    def _get_lock(self, key: str) -> threading.Lock:
        """Get or create a lock for a session file."""
        with self._lock_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def _get_file_path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def _load(self, key: str) -> dict[str, Any] | None:
        file_path = self._get_file_path(key)
        if not file_path.exists():
            return None
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            # A corrupted file behaves like a missing session.
            self._logger.warning("Discarding unreadable session file", extra={"error": str(e)})
            return None

    def _save(self, key: str, data: dict[str, Any]) -> None:
        """Save session data to JSON file atomically."""
        file_path = self._get_file_path(key)
        temp_path = file_path.with_suffix(".json.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise


def _file_key(clinic_id: str, phone: str) -> str:
    return hashlib.sha256(f"{clinic_id}:{phone}".encode("utf-8")).hexdigest()[:32]
