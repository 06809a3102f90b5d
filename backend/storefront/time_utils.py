from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
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
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_date(value: Optional[str | date]) -> Optional[date]:
    """Accept 'YYYY-MM-DD' (or a full ISO datetime) and return the calendar date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = value.strip()
    if not s:
        return None
    if len(s) == 10:
        return date.fromisoformat(s)
    return parse_iso_datetime(s).date()


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Whole-day inclusive UTC bounds: start 00:00:00 .. end 23:59:59.999999."""
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


def date_range_bounds(
    date_from: Optional[str | date],
    date_to: Optional[str | date],
) -> Optional[tuple[datetime, datetime]]:
    """
    Resolve an optional from/to pair into datetime bounds.

    Neither bound -> None (no filtering). A single bound is used for both ends.
    """
    start = parse_iso_date(date_from)
    end = parse_iso_date(date_to)
    if start is None and end is None:
        return None
    return day_bounds(start or end, end or start)


def month_range(now: datetime) -> tuple[date, date]:
    """First and last calendar day of the month containing `now`."""
    last_day = calendar.monthrange(now.year, now.month)[1]
    return date(now.year, now.month, 1), date(now.year, now.month, last_day)


def previous_period(start: date, end: date) -> tuple[date, date]:
    """
    Period of equal day length immediately preceding [start, end].

    The previous period ends the day before `start` and spans the same
    number of day boundaries as the current one.
    """
    span_days = (end - start).days
    previous_end = start - timedelta(days=1)
    previous_start = previous_end - timedelta(days=span_days)
    return previous_start, previous_end
