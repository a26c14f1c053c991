from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Callable


def fixed_offset(hours: int) -> tzinfo:
    return timezone(timedelta(hours=hours))


class BusinessClock:
    """Tenant-local wall clock; tests pass ``now`` to freeze it."""

    def __init__(self, tz: tzinfo, now: Callable[[], datetime] | None = None) -> None:
        self.tz = tz
        self._now = now

    def now(self) -> datetime:
        if self._now is not None:
            return self._now().astimezone(self.tz)
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()
