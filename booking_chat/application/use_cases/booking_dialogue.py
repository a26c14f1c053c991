from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from booking_chat.application.ports.professional_directory import ProfessionalDirectoryPort
from booking_chat.application.ports.session_store import SessionStorePort
from booking_chat.application.use_cases import reply_composer as replies
from booking_chat.application.use_cases.availability import AvailabilityCalculator
from booking_chat.application.use_cases.commit import AppointmentCommitUseCase
from booking_chat.application.use_cases.dependents import DependentSelector
from booking_chat.application.use_cases.identity import IdentityResolver
from booking_chat.application.utils.clock import BusinessClock
from booking_chat.application.utils.message_rules import is_affirmative, parse_choice
from booking_chat.domain.entities.booking_session import (
    BookingFor,
    BookingSession,
    BookingState,
    ProfessionalOption,
)
from booking_chat.domain.entities.dialogue_reply import DialogueReply

UNKNOWN_SPECIALTY = "Não informada"


@dataclass(frozen=True)
class StepResult:
    session: BookingSession
    reply: DialogueReply
    reset: bool = False


class HandleBookingMessageUseCase:
    """Drive one caller turn of the booking conversation.

    Each call loads the session for (clinic, phone), dispatches the message to
    the handler of the current state and writes the resulting session back.
    """

    def __init__(
        self,
        sessions: SessionStorePort,
        professionals: ProfessionalDirectoryPort,
        identity: IdentityResolver,
        dependents: DependentSelector,
        availability: AvailabilityCalculator,
        commit: AppointmentCommitUseCase,
        clock: BusinessClock,
        session_ttl: timedelta = timedelta(minutes=10),
    ) -> None:
        self._sessions = sessions
        self._professionals = professionals
        self._identity = identity
        self._dependents = dependents
        self._availability = availability
        self._commit = commit
        self._clock = clock
        self._session_ttl = session_ttl
        self._logger = logging.getLogger(__name__)
        self._handlers: dict[BookingState, Callable[[BookingSession, str], StepResult]] = {
            BookingState.WAITING_CPF: self._on_waiting_cpf,
            BookingState.CONFIRM_IDENTITY: self._on_confirm_identity,
            BookingState.SELECT_BOOKING_FOR: self._on_select_booking_for,
            BookingState.SELECT_DEPENDENT: self._on_select_dependent,
            BookingState.SELECT_PROFESSIONAL: self._on_select_professional,
            BookingState.SELECT_DATE: self._on_select_date,
            BookingState.SELECT_TIME: self._on_select_time,
            BookingState.CONFIRM_APPOINTMENT: self._on_confirm_appointment,
        }

    def handle(self, clinic_id: str, phone: str, text: str | None) -> DialogueReply:
        now = self._clock.now()
        session = self._load_session(clinic_id, phone, now)
        message = (text or "").strip()

        self._logger.info(
            "Booking message received",
            extra={"clinic_id": clinic_id, "state": session.state.value},
        )

        if not message:
            self._sessions.upsert(session.touched(now, self._session_ttl))
            return DialogueReply(text=replies.prompt_for(session), state=session.state)

        handler = self._handlers.get(session.state)
        if handler is None:
            step = self._reset(session, replies.RESTART, reason="unknown_state")
        else:
            step = handler(session, message)

        if step.reset:
            self._sessions.delete(clinic_id, phone)
        self._sessions.upsert(step.session.touched(now, self._session_ttl))
        return step.reply

    def _load_session(self, clinic_id: str, phone: str, now: datetime) -> BookingSession:
        existing = self._sessions.get(clinic_id, phone)
        if existing is not None and existing.is_open(now):
            return existing

        if existing is not None:
            reason = "expired" if existing.is_expired(now) else "finished"
            self._logger.info("Discarding booking session", extra={"clinic_id": clinic_id, "reason": reason})
            self._sessions.delete(clinic_id, phone)

        session = BookingSession.start(clinic_id, phone, now, self._session_ttl)
        self._sessions.upsert(session)
        return session

    def _reset(self, session: BookingSession, text: str, reason: str) -> StepResult:
        self._logger.info(
            "Booking session reset",
            extra={"clinic_id": session.clinic_id, "state": session.state.value, "reason": reason},
        )
        fresh = BookingSession.start(session.clinic_id, session.phone, self._clock.now(), self._session_ttl)
        return StepResult(
            session=fresh,
            reply=DialogueReply(text=text, state=BookingState.WAITING_CPF),
            reset=True,
        )

    def _lost_context(self, session: BookingSession) -> StepResult:
        return self._reset(session, replies.LOST_CONTEXT, reason="lost_context")

    def _respond(self, session: BookingSession, text: str) -> StepResult:
        return StepResult(session=session, reply=DialogueReply(text=text, state=session.state))

    def _on_waiting_cpf(self, session: BookingSession, message: str) -> StepResult:
        result = self._identity.resolve(session.clinic_id, message)
        if not result.resolved:
            self._logger.info(
                "Identity not resolved",
                extra={"clinic_id": session.clinic_id, "reason": result.action},
            )
            return self._respond(session, replies.identity_rejection(result))

        patient = result.patient
        dependent = result.dependent
        if dependent is not None:
            updated = session.evolve(
                state=BookingState.CONFIRM_IDENTITY,
                patient_id=patient.id,
                patient_name=patient.name,
                booking_for=BookingFor.DEPENDENT,
                selected_dependent_id=dependent.dependent_id,
                selected_dependent_name=dependent.name,
            )
            return self._respond(updated, replies.confirm_identity(dependent.name, is_dependent=True))

        updated = session.evolve(
            state=BookingState.CONFIRM_IDENTITY,
            patient_id=patient.id,
            patient_name=patient.name,
        )
        return self._respond(updated, replies.confirm_identity(patient.name, is_dependent=False))

    def _on_confirm_identity(self, session: BookingSession, message: str) -> StepResult:
        if not is_affirmative(message):
            return self._reset(session, replies.IDENTITY_DENIED, reason="identity_denied")
        if not session.patient_id:
            return self._lost_context(session)

        # Card lookup on a dependent card already picked who the appointment is for.
        if session.booking_for is BookingFor.DEPENDENT and session.selected_dependent_id:
            return self._offer_professionals(session, attendee_name=session.selected_dependent_name)

        dependents = self._dependents.snapshot(session.clinic_id, session.patient_id)
        if dependents:
            updated = session.evolve(state=BookingState.SELECT_BOOKING_FOR, available_dependents=dependents)
            return self._respond(updated, replies.ask_booking_for(session.patient_name))

        return self._offer_professionals(
            session,
            attendee_name=None,
            booking_for=BookingFor.SELF,
            selected_dependent_id=None,
            selected_dependent_name=None,
        )

    def _on_select_booking_for(self, session: BookingSession, message: str) -> StepResult:
        booking_for = self._dependents.choose_booking_for(message)
        if booking_for is None:
            return self._respond(session, replies.invalid_choice(2))

        if booking_for is BookingFor.SELF:
            return self._offer_professionals(
                session,
                attendee_name=session.patient_name,
                booking_for=BookingFor.SELF,
                selected_dependent_id=None,
                selected_dependent_name=None,
            )

        if not session.available_dependents:
            return self._respond(session, replies.NO_DEPENDENTS)
        updated = session.evolve(state=BookingState.SELECT_DEPENDENT)
        return self._respond(updated, replies.ask_dependent(session.available_dependents))

    def _on_select_dependent(self, session: BookingSession, message: str) -> StepResult:
        options = session.available_dependents
        if not options:
            return self._lost_context(session)
        chosen = self._dependents.choose_dependent(options, message)
        if chosen is None:
            return self._respond(session, replies.invalid_choice(len(options)))

        return self._offer_professionals(
            session,
            attendee_name=chosen.name,
            booking_for=BookingFor.DEPENDENT,
            selected_dependent_id=chosen.id,
            selected_dependent_name=chosen.name,
        )

    def _offer_professionals(self, session: BookingSession, attendee_name: str | None, **changes) -> StepResult:
        professionals = tuple(
            ProfessionalOption(id=p.id, name=p.name, specialty=p.specialty or UNKNOWN_SPECIALTY)
            for p in self._professionals.list_active_professionals(session.clinic_id)
        )
        if not professionals:
            return self._respond(session, replies.NO_PROFESSIONALS)

        updated = session.evolve(
            state=BookingState.SELECT_PROFESSIONAL,
            available_professionals=professionals,
            **changes,
        )
        return self._respond(updated, replies.ask_professional(professionals, attendee_name))

    def _on_select_professional(self, session: BookingSession, message: str) -> StepResult:
        options = session.available_professionals
        if not options:
            return self._lost_context(session)
        choice = parse_choice(message, len(options))
        if choice is None:
            return self._respond(session, replies.invalid_choice(len(options)))

        selected = options[choice - 1]
        dates = self._availability.get_available_dates(session.clinic_id, selected.id)
        if not dates:
            return self._respond(session, replies.no_dates(selected.name))

        updated = session.evolve(
            state=BookingState.SELECT_DATE,
            selected_professional_id=selected.id,
            selected_professional_name=selected.name,
            available_dates=tuple(dates),
        )
        return self._respond(updated, replies.ask_date(selected.name, updated.available_dates))

    def _on_select_date(self, session: BookingSession, message: str) -> StepResult:
        options = session.available_dates
        if not options or not session.selected_professional_id:
            return self._lost_context(session)
        choice = parse_choice(message, len(options))
        if choice is None:
            return self._respond(session, replies.invalid_choice(len(options)))

        selected = options[choice - 1]
        times = self._availability.get_available_times(
            session.clinic_id, session.selected_professional_id, selected.date
        )
        if not times:
            return self._respond(session, replies.no_times(selected.formatted))

        updated = session.evolve(
            state=BookingState.SELECT_TIME,
            selected_date=selected.date,
            available_times=tuple(times),
        )
        return self._respond(
            updated,
            replies.ask_time(session.selected_professional_name, selected.date, updated.available_times),
        )

    def _on_select_time(self, session: BookingSession, message: str) -> StepResult:
        options = session.available_times
        if not options or not session.selected_professional_id or not session.selected_date:
            return self._lost_context(session)
        choice = parse_choice(message, len(options))
        if choice is None:
            return self._respond(session, replies.invalid_choice(len(options)))

        updated = session.evolve(
            state=BookingState.CONFIRM_APPOINTMENT,
            selected_time=options[choice - 1].time,
        )
        return self._respond(updated, replies.confirm_appointment(updated))

    def _on_confirm_appointment(self, session: BookingSession, message: str) -> StepResult:
        if not is_affirmative(message):
            return self._reset(session, replies.APPOINTMENT_CANCELLED, reason="appointment_cancelled")

        if not (
            session.patient_id
            and session.selected_professional_id
            and session.selected_date
            and session.selected_time
        ):
            return self._lost_context(session)
        if session.booking_for is BookingFor.DEPENDENT and not session.selected_dependent_id:
            return self._lost_context(session)

        duration = self._availability.appointment_duration(session.clinic_id, session.selected_professional_id)
        result = self._commit.commit(session, duration)
        finished = session.evolve(state=BookingState.FINISHED)

        if result.action == "booked":
            return StepResult(
                session=finished,
                reply=DialogueReply(
                    text=replies.booking_confirmed(session),
                    state=BookingState.FINISHED,
                    booking_complete=True,
                ),
            )
        if result.action == "rejected" and result.code is not None:
            text = replies.commit_rejected(result.code, session)
        else:
            text = replies.COMMIT_FAILED
        return StepResult(session=finished, reply=DialogueReply(text=text, state=BookingState.FINISHED))
