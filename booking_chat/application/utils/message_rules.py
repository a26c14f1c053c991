from __future__ import annotations

import re

_INTEGER = re.compile(r"^\d+$")

AFFIRMATIVE_PREFIXES = ("sim", "yes")


def parse_choice(text: str, option_count: int) -> int | None:
    """Return the 1-based choice if the text is an integer within range."""
    normalized = (text or "").strip()
    if not _INTEGER.match(normalized):
        return None
    choice = int(normalized)
    if choice < 1 or choice > option_count:
        return None
    return choice


def is_affirmative(text: str) -> bool:
    normalized = (text or "").strip().lower()
    return normalized == "1" or normalized.startswith(AFFIRMATIVE_PREFIXES)
