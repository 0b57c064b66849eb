from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, time, timedelta
from typing import Optional


def localnow() -> datetime:
    """Local wall-clock 'now' (naive). Sales are stamped and queried in local time."""
    return datetime.now()


def parse_day(value: str | date) -> date:
    """
    Parse a calendar-day key.

    - date instances pass through (datetimes are truncated)
    - "YYYY-MM-DD" strings are parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def day_key(value: str | date) -> str:
    """Normalize a day to its 'YYYY-MM-DD' storage key."""
    return parse_day(value).isoformat()


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    """23:59:59.999 local, matching millisecond-resolution period ends."""
    return datetime.combine(d, time(23, 59, 59, 999000))


def exclusive_end(end: datetime) -> datetime:
    """
    First instant after a millisecond-inclusive end.

    Timestamps carry microseconds, so 23:59:59.999500 is still inside a day
    that ends at 23:59:59.999; queries compare with `< exclusive_end(end)`.
    """
    return end.replace(microsecond=end.microsecond // 1000 * 1000) + timedelta(milliseconds=1)


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, monthrange(year, month)[1])


def to_local_iso(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes a naive local datetime to ISO-8601 with millisecond precision.
    No offset is appended: the value is local wall-clock time.
    """
    if dt is None:
        return None
    return dt.isoformat(timespec="milliseconds")
