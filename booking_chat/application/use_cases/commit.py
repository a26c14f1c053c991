from __future__ import annotations

import logging
from dataclasses import dataclass

from booking_chat.application.exceptions import AppointmentRejectedError, StoreError
from booking_chat.application.ports.appointment_store import AppointmentStorePort
from booking_chat.domain.entities.appointment import BookingRuleCode, NewAppointment
from booking_chat.domain.entities.booking_session import BookingFor, BookingSession
from booking_chat.domain.entities.schedule import format_clock, parse_clock


@dataclass(frozen=True)
class CommitResult:
    action: str  # "booked", "rejected", "failed"
    appointment_id: str | None = None
    code: BookingRuleCode | None = None


class AppointmentCommitUseCase:
    def __init__(self, appointments: AppointmentStorePort) -> None:
        self._appointments = appointments
        self._logger = logging.getLogger(__name__)

    def commit(self, session: BookingSession, duration_minutes: int) -> CommitResult:
        """Insert the appointment described by a fully-populated session.

        The store's triggers are the final gate for limits, card validity,
        holidays, blocks and double booking.
        """
        appointment = build_appointment(session, duration_minutes)
        try:
            appointment_id = self._appointments.create_appointment(appointment)
        except AppointmentRejectedError as e:
            self._logger.info(
                "Appointment rejected by store",
                extra={"clinic_id": session.clinic_id, "code": e.code.value},
            )
            return CommitResult(action="rejected", code=e.code)
        except StoreError as e:
            self._logger.error(
                "Error creating appointment",
                extra={"clinic_id": session.clinic_id, "error": str(e)},
            )
            return CommitResult(action="failed")

        self._logger.info("Appointment created", extra={"clinic_id": session.clinic_id, "state": "FINISHED"})
        return CommitResult(action="booked", appointment_id=appointment_id)


def build_appointment(session: BookingSession, duration_minutes: int) -> NewAppointment:
    start = parse_clock(session.selected_time)
    if start is None:
        raise ValueError(f"Invalid selected time: {session.selected_time!r}")
    dependent_id = session.selected_dependent_id if session.booking_for is BookingFor.DEPENDENT else None
    return NewAppointment(
        clinic_id=session.clinic_id,
        patient_id=session.patient_id or "",
        professional_id=session.selected_professional_id or "",
        appointment_date=session.selected_date or "",
        start_time=f"{format_clock(start)}:00",
        end_time=f"{format_clock(start + duration_minutes)}:00",
        duration_minutes=duration_minutes,
        dependent_id=dependent_id,
    )
