from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def localnow() -> datetime:
    """
    Server-side 'now' as a naive local timestamp.

    All stored timestamps use this clock, so report day boundaries are the
    store's local calendar days.
    """
    return datetime.now()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string into a naive local datetime.

    - None / "" -> None
    - "YYYY-MM-DD" and "YYYY-MM-DDTHH:MM" (naive) are taken as local time
    - "...Z" or "...+/-HH:MM" is converted to local time and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Calendar day of an ISO date or datetime string; None for blank."""
    dt = parse_iso_datetime(value)
    return dt.date() if dt is not None else None


def start_of_day(day: date) -> datetime:
    """00:00:00.000 of the given day."""
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    """23:59:59.999 of the given day (millisecond precision)."""
    return datetime.combine(day, time(23, 59, 59, 999000))


def days_between(start: date, end: date) -> list[date]:
    """Every calendar day from start to end inclusive."""
    if end < start:
        return []
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes a datetime to ISO-8601 without microseconds.
    Aware datetimes are rendered in UTC with a trailing 'Z'.
    """
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
        return dt.replace(microsecond=0).isoformat() + "Z"
    return dt.replace(microsecond=0).isoformat()
