from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

WEEKDAY_KEYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

BLOCK_DEFAULT_STEP_MINUTES = 5


def parse_clock(value: Any) -> int | None:
    """'HH:MM' or 'HH:MM:SS' -> minutes since midnight."""
    if not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours <= 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


def format_clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeWindow:
    start: int
    end: int

    @classmethod
    def from_strings(cls, start: Any, end: Any) -> "TimeWindow | None":
        start_min = parse_clock(start)
        end_min = parse_clock(end)
        if start_min is None or end_min is None:
            return None
        return cls(start=start_min, end=end_min)


@dataclass(frozen=True)
class DaySlots:
    """Bookable windows of one day and the step used to walk them."""

    windows: tuple[TimeWindow, ...]
    step_minutes: int


@dataclass(frozen=True)
class PerWeekdaySchedule:
    days: dict[str, tuple[TimeWindow, ...]] = field(default_factory=dict)

    def slots_for(self, day: date, duration_minutes: int) -> DaySlots | None:
        windows = self.days.get(WEEKDAY_KEYS[day.weekday()])
        if not windows:
            return None
        return DaySlots(windows=windows, step_minutes=duration_minutes)

    def fallback_step(self, duration_minutes: int) -> int:
        return duration_minutes


@dataclass(frozen=True)
class ScheduleBlock:
    days: frozenset[str]
    windows: tuple[TimeWindow, ...]
    start_date: date | None = None
    end_date: date | None = None
    step_minutes: int | None = None

    def applies_to(self, day: date) -> bool:
        if WEEKDAY_KEYS[day.weekday()] not in self.days:
            return False
        if self.start_date and day < self.start_date:
            return False
        if self.end_date and day > self.end_date:
            return False
        return True


@dataclass(frozen=True)
class BlockListSchedule:
    blocks: tuple[ScheduleBlock, ...]

    def slots_for(self, day: date, duration_minutes: int) -> DaySlots | None:
        windows: list[TimeWindow] = []
        step = BLOCK_DEFAULT_STEP_MINUTES
        for block in self.blocks:
            if not block.applies_to(day):
                continue
            # last matching block with a granularity wins
            if block.step_minutes is not None:
                step = block.step_minutes
            windows.extend(block.windows)
        if not windows:
            return None
        return DaySlots(windows=tuple(windows), step_minutes=step)

    def fallback_step(self, duration_minutes: int) -> int:
        return BLOCK_DEFAULT_STEP_MINUTES


ScheduleTemplate = PerWeekdaySchedule | BlockListSchedule


@dataclass(frozen=True)
class ScheduleException:
    """Single-date override: a day off, or a replacement time window."""

    is_day_off: bool = False
    window: TimeWindow | None = None


def resolve_day(
    template: ScheduleTemplate,
    day: date,
    duration_minutes: int,
    exception: ScheduleException | None = None,
) -> DaySlots | None:
    base = template.slots_for(day, duration_minutes)
    if exception is None:
        return base
    if exception.is_day_off:
        return None
    if exception.window is not None:
        step = base.step_minutes if base else template.fallback_step(duration_minutes)
        return DaySlots(windows=(exception.window,), step_minutes=step)
    return base


def parse_schedule(raw: Any) -> ScheduleTemplate | None:
    """Normalize the loosely-typed schedule JSON stored on a professional.

    A non-empty ``_blocks`` list takes precedence over the per-weekday map.
    """
    if not isinstance(raw, dict):
        return None

    raw_blocks = raw.get("_blocks")
    if isinstance(raw_blocks, list) and raw_blocks:
        blocks = tuple(b for b in (_parse_block(item) for item in raw_blocks) if b is not None)
        return BlockListSchedule(blocks=blocks)

    days: dict[str, tuple[TimeWindow, ...]] = {}
    for key in WEEKDAY_KEYS:
        day = raw.get(key)
        if not isinstance(day, dict) or not day.get("enabled"):
            continue
        windows = _parse_windows(day.get("slots"))
        if windows:
            days[key] = windows
    return PerWeekdaySchedule(days=days)


def _parse_block(item: Any) -> ScheduleBlock | None:
    if not isinstance(item, dict):
        return None
    days = item.get("days")
    if not isinstance(days, list):
        return None

    windows: list[TimeWindow] = []
    if item.get("start_time") and item.get("end_time"):
        window = TimeWindow.from_strings(item["start_time"], item["end_time"])
        if window:
            windows.append(window)
    windows.extend(_parse_windows(item.get("slots")))

    step = None
    if _is_number(item.get("duration")):
        step = int(item["duration"])
    if _is_number(item.get("block_interval")):
        step = int(item["block_interval"])

    return ScheduleBlock(
        days=frozenset(str(d).lower() for d in days),
        windows=tuple(windows),
        start_date=_parse_date(item.get("start_date")),
        end_date=_parse_date(item.get("end_date")),
        step_minutes=step,
    )


def _parse_windows(raw: Any) -> tuple[TimeWindow, ...]:
    if not isinstance(raw, list):
        return ()
    windows = []
    for slot in raw:
        if not isinstance(slot, dict) or not slot.get("start") or not slot.get("end"):
            continue
        window = TimeWindow.from_strings(slot["start"], slot["end"])
        if window:
            windows.append(window)
    return tuple(windows)


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
