"""Week and month grid dates. Weeks start on Monday."""

from __future__ import annotations

import calendar
import datetime as dt
from typing import Optional, Sequence

from sunbelt_pm.dates import DateLike, parse_day, today


def date_key(value: DateLike) -> str:
    """``YYYY-MM-DD`` key of a calendar day."""
    day = parse_day(value)
    return day.isoformat() if day else ""


def week_dates(day: dt.date) -> list[dt.date]:
    """The seven days of the Monday-start week containing *day*."""
    monday = day - dt.timedelta(days=day.weekday())
    return [monday + dt.timedelta(days=i) for i in range(7)]


def month_dates(day: dt.date) -> list[dt.date]:
    """Full weeks covering *day*'s month, Monday of the first through Sunday of the last."""
    first = day.replace(day=1)
    last = day.replace(day=calendar.monthrange(day.year, day.month)[1])
    start = first - dt.timedelta(days=first.weekday())
    end = last + dt.timedelta(days=6 - last.weekday())
    return [start + dt.timedelta(days=i) for i in range((end - start).days + 1)]


def week_range_text(dates: Sequence[dt.date]) -> str:
    """``Jan 5 - 11, 2026`` or ``Jan 26 - Feb 1, 2026``."""
    if not dates:
        return ""
    start, end = dates[0], dates[-1]
    start_month, end_month = f"{start:%b}", f"{end:%b}"
    if start_month == end_month:
        return f"{start_month} {start.day} - {end.day}, {end.year}"
    return f"{start_month} {start.day} - {end_month} {end.day}, {end.year}"


def month_text(day: dt.date) -> str:
    return f"{day:%B} {day.year}"


def is_past(value: DateLike, on: Optional[dt.date] = None) -> bool:
    day = parse_day(value)
    return day is not None and day < (on or today())


def is_weekend(value: DateLike) -> bool:
    day = parse_day(value)
    return day is not None and day.weekday() >= 5
