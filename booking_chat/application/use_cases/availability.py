from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterator

from booking_chat.application.ports.appointment_store import AppointmentStorePort
from booking_chat.application.ports.holiday_calendar import HolidayCalendarPort
from booking_chat.application.ports.professional_directory import ProfessionalDirectoryPort
from booking_chat.application.utils.clock import BusinessClock
from booking_chat.application.utils.formatting import format_date_br, format_time, weekday_pt
from booking_chat.domain.entities.booking_session import DateOption, TimeOption
from booking_chat.domain.entities.schedule import (
    DaySlots,
    ScheduleTemplate,
    format_clock,
    parse_schedule,
    resolve_day,
)


class AvailabilityCalculator:
    """Bookable dates and times of a professional.

    Results are advisory: the appointment store re-validates every insert.
    """

    def __init__(
        self,
        professionals: ProfessionalDirectoryPort,
        holidays: HolidayCalendarPort,
        appointments: AppointmentStorePort,
        clock: BusinessClock,
        lookahead_days: int = 14,
        max_dates: int = 5,
        max_times: int = 10,
        min_lead_minutes: int = 30,
        default_duration_minutes: int = 30,
    ) -> None:
        self._professionals = professionals
        self._holidays = holidays
        self._appointments = appointments
        self._clock = clock
        self._lookahead_days = lookahead_days
        self._max_dates = max_dates
        self._max_times = max_times
        self._min_lead_minutes = min_lead_minutes
        self._default_duration = default_duration_minutes
        self._logger = logging.getLogger(__name__)

    def appointment_duration(self, clinic_id: str, professional_id: str) -> int:
        professional = self._professionals.get_professional(clinic_id, professional_id)
        return self._duration_of(professional.appointment_duration if professional else None)

    def get_available_dates(self, clinic_id: str, professional_id: str) -> list[DateOption]:
        loaded = self._load_schedule(clinic_id, professional_id)
        if loaded is None:
            return []
        template, duration = loaded

        now = self._clock.now()
        today = now.date()
        now_minutes = now.hour * 60 + now.minute

        dates: list[DateOption] = []
        for offset in range(self._lookahead_days + 1):
            if len(dates) >= self._max_dates:
                break
            day = today + timedelta(days=offset)
            day_slots = self._resolve_day(clinic_id, professional_id, template, day, duration)
            if day_slots is None:
                continue

            min_start = None
            if offset == 0:
                min_start = now_minutes + self._min_lead_minutes
                if not any(w.end > min_start + duration for w in day_slots.windows):
                    continue

            booked = self._appointments.booked_start_times(clinic_id, professional_id, day.isoformat())
            if any(
                format_clock(start) not in booked
                for start in _candidate_starts(day_slots, duration, min_start)
            ):
                dates.append(
                    DateOption(date=day.isoformat(), formatted=format_date_br(day), weekday=weekday_pt(day))
                )

        self._logger.info(
            "Available dates computed",
            extra={"clinic_id": clinic_id, "count": len(dates)},
        )
        return dates

    def get_available_times(self, clinic_id: str, professional_id: str, day_iso: str) -> list[TimeOption]:
        loaded = self._load_schedule(clinic_id, professional_id)
        if loaded is None:
            return []
        template, duration = loaded

        day = date.fromisoformat(day_iso)
        now = self._clock.now()
        if day < now.date():
            return []

        day_slots = self._resolve_day(clinic_id, professional_id, template, day, duration)
        if day_slots is None:
            return []

        min_start = None
        if day == now.date():
            min_start = now.hour * 60 + now.minute + self._min_lead_minutes

        booked = self._appointments.booked_start_times(clinic_id, professional_id, day_iso)
        times: list[TimeOption] = []
        for start in sorted(set(_candidate_starts(day_slots, duration, min_start))):
            label = format_clock(start)
            if label in booked:
                continue
            times.append(TimeOption(time=label, formatted=format_time(label)))
            if len(times) >= self._max_times:
                break
        return times

    def _load_schedule(self, clinic_id: str, professional_id: str) -> tuple[ScheduleTemplate, int] | None:
        professional = self._professionals.get_professional(clinic_id, professional_id)
        if not professional or not professional.schedule:
            return None
        template = parse_schedule(professional.schedule)
        if template is None:
            return None
        return template, self._duration_of(professional.appointment_duration)

    def _resolve_day(
        self,
        clinic_id: str,
        professional_id: str,
        template: ScheduleTemplate,
        day: date,
        duration: int,
    ) -> DaySlots | None:
        exception = self._professionals.get_schedule_exception(clinic_id, professional_id, day.isoformat())
        day_slots = resolve_day(template, day, duration, exception)
        if day_slots is None or not day_slots.windows:
            return None
        if self._holidays.is_holiday(clinic_id, day.isoformat()):
            return None
        return day_slots

    def _duration_of(self, value: int | None) -> int:
        return value or self._default_duration


def _candidate_starts(day_slots: DaySlots, duration: int, min_start: int | None) -> Iterator[int]:
    """Walk each window in fixed steps, yielding starts that fit before the window end."""
    step = max(1, day_slots.step_minutes)
    for window in day_slots.windows:
        start = window.start
        while start + duration <= window.end:
            if min_start is None or start >= min_start:
                yield start
            start += step
