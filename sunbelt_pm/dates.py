"""Calendar-day helpers shared by every module.

Backend date columns arrive either as ``YYYY-MM-DD`` or as ISO timestamps.
They are always read by their calendar-day prefix, never by converting
through UTC, so a due date of ``2026-03-01`` stays on March 1st whatever the
local timezone is.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional, Union

DateLike = Union[str, dt.date, dt.datetime, None]


def parse_day(value: DateLike) -> Optional[dt.date]:
    """Return the calendar day of *value*, or None when it is empty."""
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        return dt.date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Cannot read a calendar day from {type(value).__name__}")


def today() -> dt.date:
    """Local calendar day."""
    return dt.date.today()


def days_between(start: DateLike, end: DateLike = None, *, on: Optional[dt.date] = None) -> Optional[int]:
    """Whole days between *start* and *end* (today when *end* is missing)."""
    start_day = parse_day(start)
    if start_day is None:
        return None
    end_day = parse_day(end) or on or today()
    return abs((end_day - start_day).days)


def is_overdue(
    due_date: DateLike,
    status: Optional[str],
    closed_statuses: frozenset[str] | set[str] | tuple[str, ...],
    *,
    on: Optional[dt.date] = None,
) -> bool:
    """True when a due date exists, the status is open and the day has passed.

    An item due today is not overdue.
    """
    due = parse_day(due_date)
    if due is None:
        return False
    if status in closed_statuses:
        return False
    return due < (on or today())


def format_short(value: DateLike) -> str:
    """``MM/DD/YYYY`` or an empty string."""
    day = parse_day(value)
    return day.strftime("%m/%d/%Y") if day else ""


def format_long(value: DateLike, missing: str = "N/A") -> str:
    """``January 5, 2026`` style."""
    day = parse_day(value)
    if day is None:
        return missing
    return f"{day:%B} {day.day}, {day.year}"


def format_weekday_long(value: DateLike, missing: str = "Not set") -> str:
    """``Monday, January 5, 2026`` style."""
    day = parse_day(value)
    if day is None:
        return missing
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"
