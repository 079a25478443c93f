"""
Time and date utilities for inventory aging and demand windows.

Key concepts:
  - DOT codes: tires carry a manufacture week/year stamp (``WWYY``). Two-digit
    years below 50 are read as 20xx, the rest as 19xx.
  - Tire age: days between the manufacture date (or the row's creation time
    when no DOT code is recorded) and "now".
  - DB timestamps: every timestamp column holds a UTC ``YYYY-MM-DDTHH:MM:SSZ``
    string so trailing-window filters compare lexicographically.
"""

from __future__ import annotations

from datetime import MAXYEAR, datetime, timedelta, timezone
from typing import Optional

DB_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Two-digit DOT years below this are 20xx; the rest are 19xx.
DOT_CENTURY_PIVOT = 50

# Four-digit DOT years outside this range cannot be turned into a date.
DOT_YEAR_RANGE = range(1900, MAXYEAR)


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_db_timestamp(dt: datetime) -> str:
    """Serialize a datetime into the canonical DB timestamp string."""
    return ensure_utc(dt).strftime(DB_TIMESTAMP_FORMAT)


def parse_db_timestamp(value: str) -> datetime:
    """Parse a stored timestamp back into an aware UTC datetime.

    Accepts the canonical ``...Z`` form as well as any ISO-8601 string
    ``datetime.fromisoformat`` understands (e.g. ``+00:00`` offsets).
    """
    try:
        return datetime.strptime(value, DB_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return ensure_utc(datetime.fromisoformat(value))


def window_start(now: datetime, window_days: int) -> datetime:
    """Return the start of a trailing window of ``window_days`` ending at ``now``."""
    return ensure_utc(now) - timedelta(days=window_days)


def dot_manufacture_date(dot_week: int, dot_year: int) -> datetime:
    """Convert a DOT week/year stamp into an approximate manufacture date.

    The date is the first day of the year plus ``dot_week - 1`` whole weeks.
    Two-digit years are disambiguated with ``DOT_CENTURY_PIVOT``; four-digit
    years are taken as-is.

    Args:
        dot_week: Week of manufacture (1–53).
        dot_year: Year of manufacture, usually two digits (``19`` → 2019).

    Returns:
        Aware UTC datetime at midnight of the manufacture date.
    """
    if dot_year >= 100:
        year = dot_year
    elif dot_year < DOT_CENTURY_PIVOT:
        year = 2000 + dot_year
    else:
        year = 1900 + dot_year
    start_of_year = datetime(year, 1, 1, tzinfo=timezone.utc)
    return start_of_year + timedelta(weeks=dot_week - 1)


def is_valid_dot_year(dot_year: int) -> bool:
    """True for a two-digit year or a four-digit year in ``DOT_YEAR_RANGE``."""
    return 0 <= dot_year <= 99 or dot_year in DOT_YEAR_RANGE


def is_usable_dot_stamp(dot_week: Optional[int], dot_year: Optional[int]) -> bool:
    """True when both parts are present and convert to a calendar date."""
    if dot_week is None or dot_year is None:
        return False
    return 1 <= dot_week <= 53 and is_valid_dot_year(dot_year)


def tire_age_days(
    now: datetime,
    created_at: datetime,
    dot_week: Optional[int] = None,
    dot_year: Optional[int] = None,
) -> int:
    """Return a tire's age in whole days.

    Uses the DOT manufacture date when both week and year are present,
    otherwise (or when that stamp is not a representable date) falls back
    to the record creation time.

    Args:
        now: Reference "current" time.
        created_at: When the inventory row was created.
        dot_week: Optional DOT manufacture week.
        dot_year: Optional DOT manufacture year.

    Returns:
        Floor of the elapsed days (may be negative for future-dated rows).
    """
    if is_usable_dot_stamp(dot_week, dot_year):
        origin = dot_manufacture_date(dot_week, dot_year)
    else:
        origin = ensure_utc(created_at)
    return (ensure_utc(now) - origin) // timedelta(days=1)
