from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Professional:
    id: str
    name: str
    specialty: str | None = None
    appointment_duration: int | None = None
    schedule: dict[str, Any] | None = field(default=None, compare=False)
    is_active: bool = True
