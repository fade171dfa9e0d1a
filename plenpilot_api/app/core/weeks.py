"""
ISO‑8601 week helpers.

Mowing cadences are expressed in ISO week numbers (Monday‑start weeks,
week 1 is the week containing the year's first Thursday).  These
helpers convert between dates and week numbers and produce the
Monday 00:00:00 – Sunday 23:59:59 range used to select a week's time
entries.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

from .config import settings

WEEKDAYS_NO = ["Mandag", "Tirsdag", "Onsdag", "Torsdag", "Fredag", "Lørdag", "Søndag"]

DateLike = Union[date, datetime]


def iso_week_number(value: DateLike) -> int:
    """Return the ISO week number of ``value``."""
    return value.isocalendar()[1]


def iso_year(value: DateLike) -> int:
    """Return the ISO year ``value`` belongs to.

    Differs from the calendar year around new year, e.g. 2024‑12‑30 is
    in week 1 of ISO year 2025.
    """
    return value.isocalendar()[0]


def iso_week_date_range(week_number: int, year: int) -> Tuple[datetime, datetime]:
    """Return the first and last second of an ISO week.

    ``start`` is Monday 00:00:00 and ``end`` is Sunday 23:59:59.  Raises
    ``ValueError`` for week numbers the year does not have (e.g. week
    53 in a 52‑week year).
    """
    if not 1 <= week_number <= 53:
        raise ValueError(f"Invalid ISO week number: {week_number}")
    monday = date.fromisocalendar(year, week_number, 1)
    sunday = monday + timedelta(days=6)
    return datetime.combine(monday, time.min), datetime.combine(sunday, time(23, 59, 59))


def current_iso_week(now: Optional[datetime] = None) -> Tuple[int, int]:
    """Return ``(iso_year, week_number)`` for ``now`` in the configured zone."""
    now = now or datetime.now(ZoneInfo(settings.timezone))
    iso = now.isocalendar()
    return iso[0], iso[1]


def format_week_range(week_number: int, year: int) -> Tuple[str, str]:
    """Format a week's Monday and Sunday as ``dd.mm.yyyy`` strings."""
    start, end = iso_week_date_range(week_number, year)
    return start.strftime("%d.%m.%Y"), end.strftime("%d.%m.%Y")


def weekday_name(value: DateLike) -> str:
    """Norwegian weekday name for ``value``."""
    return WEEKDAYS_NO[value.weekday()]


def to_local_naive(value: datetime) -> datetime:
    """Normalize a timestamp for storage.

    Aware datetimes are converted to the configured time zone and
    stripped of tzinfo.  Microseconds are dropped so stored values
    never sort after a week's 23:59:59 end bound.
    """
    if value.tzinfo is not None:
        value = value.astimezone(ZoneInfo(settings.timezone)).replace(tzinfo=None)
    return value.replace(microsecond=0)


def to_storage(value: datetime) -> str:
    """Timestamp string as stored in SQLite (``YYYY-MM-DD HH:MM:SS``)."""
    return to_local_naive(value).isoformat(sep=" ")
