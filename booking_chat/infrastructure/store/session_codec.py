from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from booking_chat.domain.entities.booking_session import (
    BookingFor,
    BookingSession,
    BookingState,
    DateOption,
    DependentOption,
    ProfessionalOption,
    TimeOption,
)


def session_to_record(session: BookingSession) -> dict[str, Any]:
    """Serialize BookingSession to a JSON-compatible dict (row shape of the sessions table)."""
    return {
        "clinic_id": session.clinic_id,
        "phone": session.phone,
        "state": session.state.value,
        "patient_id": session.patient_id,
        "patient_name": session.patient_name,
        "booking_for": session.booking_for.value if session.booking_for else None,
        "selected_dependent_id": session.selected_dependent_id,
        "selected_dependent_name": session.selected_dependent_name,
        "selected_professional_id": session.selected_professional_id,
        "selected_professional_name": session.selected_professional_name,
        "selected_date": session.selected_date,
        "selected_time": session.selected_time,
        "available_dependents": [
            {"id": d.id, "name": d.name, "cpf": d.cpf} for d in session.available_dependents
        ],
        "available_professionals": [
            {"id": p.id, "name": p.name, "specialty": p.specialty} for p in session.available_professionals
        ],
        "available_dates": [
            {"date": d.date, "formatted": d.formatted, "weekday": d.weekday} for d in session.available_dates
        ],
        "available_times": [{"time": t.time, "formatted": t.formatted} for t in session.available_times],
        "expires_at": session.expires_at.isoformat(),
    }


def session_from_record(data: dict[str, Any]) -> BookingSession:
    """Deserialize a stored row; unknown states fall back to WAITING_CPF."""
    try:
        state = BookingState(data.get("state") or BookingState.WAITING_CPF.value)
    except ValueError:
        state = BookingState.WAITING_CPF

    booking_for = None
    if data.get("booking_for"):
        try:
            booking_for = BookingFor(data["booking_for"])
        except ValueError:
            booking_for = None

    return BookingSession(
        clinic_id=str(data["clinic_id"]),
        phone=str(data["phone"]),
        expires_at=_parse_timestamp(data.get("expires_at")),
        state=state,
        patient_id=data.get("patient_id"),
        patient_name=data.get("patient_name"),
        booking_for=booking_for,
        selected_dependent_id=data.get("selected_dependent_id"),
        selected_dependent_name=data.get("selected_dependent_name"),
        selected_professional_id=data.get("selected_professional_id"),
        selected_professional_name=data.get("selected_professional_name"),
        selected_date=data.get("selected_date"),
        selected_time=data.get("selected_time"),
        available_dependents=tuple(
            DependentOption(id=str(d["id"]), name=d["name"], cpf=d.get("cpf"))
            for d in data.get("available_dependents") or []
        ),
        available_professionals=tuple(
            ProfessionalOption(id=str(p["id"]), name=p["name"], specialty=p.get("specialty") or "")
            for p in data.get("available_professionals") or []
        ),
        available_dates=tuple(
            DateOption(date=d["date"], formatted=d["formatted"], weekday=d["weekday"])
            for d in data.get("available_dates") or []
        ),
        available_times=tuple(
            TimeOption(time=t["time"], formatted=t["formatted"]) for t in data.get("available_times") or []
        ),
    )


def _parse_timestamp(value: Any) -> datetime:
    if not value:
        # A row without expiry is treated as already expired.
        return datetime.min.replace(tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
