"""Shared utility functions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def day_of_week(dt: datetime) -> int:
    """Return weekday number with 0=Sunday ... 6=Saturday."""
    return (dt.weekday() + 1) % 7


def start_of_week(dt: datetime) -> datetime:
    """Return Monday 00:00 UTC of the week containing dt."""
    current = ensure_utc(dt)
    monday = current - timedelta(days=current.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def slot_key(dow: int, hour: int, minute: int = 0) -> str:
    """Build weekly grid key such as ``1-09:00``."""
    return f"{dow}-{hour:02d}:{minute:02d}"


def to_base36(value: int) -> str:
    """Encode non-negative integer in base36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))
