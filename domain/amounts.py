"""Amount parsing and cooldown formatting helpers (no I/O)."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Union

from .exceptions import ValidationError
from .models import ALL, All, BankAmount, Exact


RawAmount = Union[int, float, str]


@dataclass(frozen=True)
class Cooldown:
    """Time left before a cooldown expires, split into display components."""

    hours: int
    minutes: int
    seconds: int
    formatted: str


def now_ms() -> int:
    return int(time.time() * 1000)


def parse_amount(raw: RawAmount, field: str = "amount") -> int:
    """
    Convert a user-supplied amount into a non-negative integer.

    Accepts ints, integral floats and base-10 integer strings (chat
    commands arrive as text). Anything else raises `ValidationError`.
    """

    if raw is None or isinstance(raw, bool):
        raise ValidationError(f"Please provide a valid {field}.")

    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if not raw.is_integer():
            raise ValidationError(f"The {field} should be a whole number.")
        value = int(raw)
    elif isinstance(raw, str):
        try:
            value = int(raw.strip())
        except ValueError:
            raise ValidationError(f"The {field} should be a number.") from None
    else:
        raise ValidationError(f"Please provide a valid {field}.")

    if value < 0:
        raise ValidationError(f"The {field} can't be less than zero.")
    return value


def parse_bank_amount(raw: Union[RawAmount, BankAmount]) -> BankAmount:
    """Map `"all"` to `ALL` and anything numeric to `Exact`."""

    if isinstance(raw, All):
        return raw
    if isinstance(raw, Exact):
        # The tagged form is typed: only real ints, no text or floats.
        if not isinstance(raw.value, int) or isinstance(raw.value, bool):
            raise ValidationError("The amount should be a whole number.")
        return Exact(parse_amount(raw.value))
    if isinstance(raw, str) and raw.strip().lower() == "all":
        return ALL
    try:
        return Exact(parse_amount(raw))
    except ValidationError as exc:
        if isinstance(raw, str):
            raise ValidationError("The amount should be a number or 'all'.") from exc
        raise


def format_cooldown(milliseconds: int) -> Cooldown:
    """
    Split a remaining duration into hours/minutes/seconds.

    Components use floor division; zero components are left out of the
    readable string, which falls back to "0 seconds" when everything is zero.
    """

    total_seconds = max(int(milliseconds), 0) // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours} hour(s)")
    if minutes > 0:
        parts.append(f"{minutes} minute(s)")
    if seconds > 0:
        parts.append(f"{seconds} second(s)")

    return Cooldown(
        hours=hours,
        minutes=minutes,
        seconds=seconds,
        formatted=", ".join(parts) or "0 seconds",
    )
