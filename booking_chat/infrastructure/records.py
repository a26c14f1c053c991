"""Row mappers shared by the Supabase adapters and the in-memory seed loader.

Rows follow the clinic database column names.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from booking_chat.domain.entities.member import CardValidity, Dependent, DependentCard, MemberCard, Patient
from booking_chat.domain.entities.professional import Professional
from booking_chat.domain.entities.schedule import ScheduleException, TimeWindow


def parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).replace("Z", "+00:00")
        if len(text) == 10:
            text = f"{text}T00:00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_day(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def patient_from_row(row: dict[str, Any]) -> Patient:
    return Patient(
        id=str(row["id"]),
        name=row.get("name") or "",
        is_active=row.get("is_active") is not False,
        no_show_blocked_until=parse_day(row.get("no_show_blocked_until")),
        no_show_unblocked_at=parse_timestamp(row.get("no_show_unblocked_at")),
    )


def member_card_from_row(row: dict[str, Any]) -> MemberCard:
    return MemberCard(
        patient_id=str(row["patient_id"]),
        card_number=row.get("card_number") or "",
        expires_at=parse_timestamp(row.get("expires_at")),
        is_active=row.get("is_active") is not False,
    )


def dependent_card_from_row(row: dict[str, Any]) -> DependentCard:
    return DependentCard(
        dependent_id=str(row["id"]),
        name=row.get("name") or "",
        patient_id=str(row["patient_id"]),
        card_number=row.get("card_number") or "",
        card_expires_at=parse_timestamp(row.get("card_expires_at")),
    )


def dependent_from_row(row: dict[str, Any]) -> Dependent:
    return Dependent(id=str(row["id"]), name=row.get("name") or "", cpf=row.get("cpf"))


def card_validity_from_row(row: dict[str, Any]) -> CardValidity:
    return CardValidity(
        card_number=row.get("card_number"),
        is_valid=row.get("is_valid") is not False,
        expires_at=parse_timestamp(row.get("expires_at")),
    )


def professional_from_row(row: dict[str, Any]) -> Professional:
    duration = row.get("appointment_duration")
    return Professional(
        id=str(row["id"]),
        name=row.get("name") or "",
        specialty=row.get("specialty"),
        appointment_duration=int(duration) if duration else None,
        schedule=row.get("schedule") if isinstance(row.get("schedule"), dict) else None,
        is_active=row.get("is_active") is not False,
    )


def exception_from_row(row: dict[str, Any]) -> ScheduleException:
    window = None
    if row.get("start_time") and row.get("end_time"):
        window = TimeWindow.from_strings(row["start_time"], row["end_time"])
    return ScheduleException(is_day_off=bool(row.get("is_day_off")), window=window)
