from __future__ import annotations

from datetime import date, datetime, timezone

WEEKDAYS_PT = ("Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado", "Domingo")


def format_date_br(value: date | str) -> str:
    """YYYY-MM-DD (or a date) -> DD/MM/YYYY."""
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return value.strftime("%d/%m/%Y")


def weekday_pt(value: date | str) -> str:
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return WEEKDAYS_PT[value.weekday()]


def format_time(value: str) -> str:
    return value[:5]


def format_expiry_date_br(value: datetime) -> str:
    """Expiry timestamps are stored as UTC dates; show that calendar day as is."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%d/%m/%Y")


def numbered_list(items: list[str]) -> str:
    return "\n".join(f"{index} - {item}" for index, item in enumerate(items, start=1))
