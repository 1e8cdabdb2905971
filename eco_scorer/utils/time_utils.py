"""
Date and time helpers shared by the resolver, history, and dashboard.

Key concepts:
  - Calendar features: season and weekday name derived from a request date.
  - Trend windows: the inclusive date span ending on a given day.
  - All timestamps are timezone-aware UTC.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

# Northern-hemisphere meteorological seasons.
_SEASON_BY_MONTH: dict[int, str] = {
    12: "winter", 1: "winter", 2: "winter",
    3: "spring", 4: "spring", 5: "spring",
    6: "summer", 7: "summer", 8: "summer",
    9: "fall", 10: "fall", 11: "fall",
}

WEEKDAY_NAMES: tuple[str, ...] = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)


def season_for(day: date) -> str:
    """Return the meteorological season name for ``day``."""
    return _SEASON_BY_MONTH[day.month]


def weekday_name(day: date) -> str:
    """Return the English weekday name, e.g. ``"Monday"``."""
    return WEEKDAY_NAMES[day.weekday()]


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def trailing_window(end: date, days: int) -> tuple[date, date]:
    """Return ``(start, end)`` for the ``days``-long window ending on ``end``."""
    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}.")
    return end - timedelta(days=days - 1), end


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)
