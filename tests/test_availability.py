"""
Tests for bookable dates and times.

The clock is frozen on Monday 2025-03-10 in UTC-3.
"""

from __future__ import annotations

from datetime import datetime

from booking_chat.application.use_cases.availability import AvailabilityCalculator
from booking_chat.application.utils.clock import BusinessClock, fixed_offset
from booking_chat.domain.entities.professional import Professional
from booking_chat.domain.entities.schedule import ScheduleException, TimeWindow
from booking_chat.infrastructure.clinic.memory_directory import InMemoryClinicDirectory

CLINIC = "clinic-1"
TZ = fixed_offset(-3)

WEEKDAY_MORNINGS = {
    day: {"enabled": True, "slots": [{"start": "08:00", "end": "12:00"}]}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
}


def _calculator(schedule, at=datetime(2025, 3, 10, 9, 0, tzinfo=TZ), duration=30, directory=None):
    directory = directory or InMemoryClinicDirectory(now=lambda: at)
    directory.add_professional(
        CLINIC,
        Professional(id="prof-1", name="Dra. Carla", specialty="Clínica", appointment_duration=duration, schedule=schedule),
    )
    clock = BusinessClock(TZ, now=lambda: at)
    calculator = AvailabilityCalculator(
        professionals=directory,
        holidays=directory,
        appointments=directory,
        clock=clock,
    )
    return calculator, directory


def test_dates_are_capped_at_five():
    """Even a seven-day schedule offers at most five dates, starting today."""
    every_day = {
        day: {"enabled": True, "slots": [{"start": "08:00", "end": "18:00"}]}
        for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
    }
    calculator, _ = _calculator(every_day)

    dates = calculator.get_available_dates(CLINIC, "prof-1")

    assert [d.date for d in dates] == ["2025-03-10", "2025-03-11", "2025-03-12", "2025-03-13", "2025-03-14"]
    assert dates[0].formatted == "10/03/2025"
    assert dates[0].weekday == "Segunda"


def test_weekend_and_holiday_are_skipped():
    calculator, directory = _calculator(WEEKDAY_MORNINGS)
    directory.add_holiday(CLINIC, "2025-03-11")

    dates = calculator.get_available_dates(CLINIC, "prof-1")

    assert [d.date for d in dates] == ["2025-03-10", "2025-03-12", "2025-03-13", "2025-03-14", "2025-03-17"]


def test_today_excluded_when_lead_time_leaves_no_slot():
    """At 11:40 the 30 minute lead pushes every start past the 12:00 window end."""
    calculator, _ = _calculator(WEEKDAY_MORNINGS, at=datetime(2025, 3, 10, 11, 40, tzinfo=TZ))

    dates = calculator.get_available_dates(CLINIC, "prof-1")

    assert dates[0].date == "2025-03-11"
    assert calculator.get_available_times(CLINIC, "prof-1", "2025-03-10") == []


def test_today_times_respect_lead_time():
    calculator, _ = _calculator(WEEKDAY_MORNINGS)

    times = calculator.get_available_times(CLINIC, "prof-1", "2025-03-10")

    assert [t.time for t in times] == ["09:30", "10:00", "10:30", "11:00", "11:30"]


def test_times_are_capped_at_ten():
    full_day = {"tuesday": {"enabled": True, "slots": [{"start": "08:00", "end": "18:00"}]}}
    calculator, _ = _calculator(full_day)

    times = calculator.get_available_times(CLINIC, "prof-1", "2025-03-11")

    assert len(times) == 10
    assert times[0].time == "08:00"
    assert times[-1].time == "12:30"


def test_booked_starts_are_excluded():
    """Scheduled and confirmed appointments block their start; cancelled ones do not."""
    calculator, directory = _calculator(WEEKDAY_MORNINGS)
    directory.add_appointment(CLINIC, "prof-1", "2025-03-11", "08:00")
    directory.add_appointment(CLINIC, "prof-1", "2025-03-11", "08:30:00", status="confirmed")
    directory.add_appointment(CLINIC, "prof-1", "2025-03-11", "09:00", status="cancelled")

    times = calculator.get_available_times(CLINIC, "prof-1", "2025-03-11")

    assert [t.time for t in times][:3] == ["09:00", "09:30", "10:00"]


def test_fully_booked_day_is_not_offered():
    short_day = {"tuesday": {"enabled": True, "slots": [{"start": "08:00", "end": "09:00"}]}}
    calculator, directory = _calculator(short_day)
    directory.add_appointment(CLINIC, "prof-1", "2025-03-11", "08:00")
    directory.add_appointment(CLINIC, "prof-1", "2025-03-11", "08:30")

    dates = calculator.get_available_dates(CLINIC, "prof-1")

    assert "2025-03-11" not in [d.date for d in dates]
    assert dates[0].date == "2025-03-18"


def test_exceptions_override_the_template():
    """A day off removes a working day; a replacement window opens a Saturday."""
    calculator, directory = _calculator(WEEKDAY_MORNINGS)
    directory.add_exception(CLINIC, "prof-1", "2025-03-12", ScheduleException(is_day_off=True))
    directory.add_exception(
        CLINIC,
        "prof-1",
        "2025-03-15",
        ScheduleException(window=TimeWindow.from_strings("08:00", "09:00")),
    )

    dates = [d.date for d in calculator.get_available_dates(CLINIC, "prof-1")]
    assert dates == ["2025-03-10", "2025-03-11", "2025-03-13", "2025-03-14", "2025-03-15"]

    times = calculator.get_available_times(CLINIC, "prof-1", "2025-03-15")
    assert [t.time for t in times] == ["08:00", "08:30"]


def test_block_schedule_uses_its_own_step():
    blocks = {"_blocks": [{"days": ["tuesday"], "start_time": "09:00", "end_time": "10:00"}]}
    calculator, _ = _calculator(blocks)

    times = [t.time for t in calculator.get_available_times(CLINIC, "prof-1", "2025-03-11")]

    assert times == ["09:00", "09:05", "09:10", "09:15", "09:20", "09:25", "09:30"]


def test_block_interval_step():
    blocks = {
        "_blocks": [{"days": ["tuesday"], "start_time": "09:00", "end_time": "10:00", "block_interval": 20}]
    }
    calculator, _ = _calculator(blocks)

    times = [t.time for t in calculator.get_available_times(CLINIC, "prof-1", "2025-03-11")]

    assert times == ["09:00", "09:20"]


def test_past_date_and_unknown_professional_have_nothing():
    calculator, _ = _calculator(WEEKDAY_MORNINGS)

    assert calculator.get_available_times(CLINIC, "prof-1", "2025-03-07") == []
    assert calculator.get_available_dates(CLINIC, "missing") == []
    assert calculator.get_available_times(CLINIC, "missing", "2025-03-11") == []


def test_duration_falls_back_to_default():
    calculator, _ = _calculator(WEEKDAY_MORNINGS, duration=None)

    assert calculator.appointment_duration(CLINIC, "prof-1") == 30
    assert calculator.appointment_duration(CLINIC, "missing") == 30
