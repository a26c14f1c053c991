from __future__ import annotations

import re
from dataclasses import dataclass

_NON_DIGITS = re.compile(r"\D")
_CARD_TOKEN = re.compile(r"^([A-Z]+-)?(\d{5,10})$")
_REPEATED_DIGITS = re.compile(r"^(\d)\1{10}$")

CARD_MIN_DIGITS = 5
CARD_MAX_DIGITS = 10
CPF_DIGITS = 11


@dataclass(frozen=True)
class IdentityToken:
    kind: str  # "card" | "cpf"
    digits: str


def only_digits(text: str) -> str:
    return _NON_DIGITS.sub("", text or "")


def validate_cpf(cpf: str) -> bool:
    """Check the two verification digits of a CPF (punctuation ignored)."""
    digits = only_digits(cpf)
    if len(digits) != CPF_DIGITS:
        return False
    if _REPEATED_DIGITS.match(digits):
        return False

    numbers = [int(d) for d in digits]
    for position in (9, 10):
        total = sum(numbers[i] * (position + 1 - i) for i in range(position))
        check = (total * 10) % 11
        if check == 10:
            check = 0
        if check != numbers[position]:
            return False
    return True


def format_cpf(digits: str) -> str:
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def classify_identity_token(text: str) -> IdentityToken | None:
    """Tell a card number from a CPF.

    ``SECMI-000123`` and ``000123`` are card lookups; anything whose digits
    count 11 is a CPF candidate. Returns None for anything else.
    """
    normalized = (text or "").strip().upper()
    match = _CARD_TOKEN.match(normalized)
    if match:
        return IdentityToken(kind="card", digits=match.group(2))

    digits = only_digits(normalized)
    if CARD_MIN_DIGITS <= len(digits) <= CARD_MAX_DIGITS:
        return IdentityToken(kind="card", digits=digits)
    if len(digits) == CPF_DIGITS:
        return IdentityToken(kind="cpf", digits=digits)
    return None
