from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DD" and "YYYY-MM-DDTHH:MM" (naive) are interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_range_end(value: Optional[str]) -> Optional[datetime]:
    """
    Parse the inclusive upper bound of a date range.

    A date-only value ("YYYY-MM-DD") covers that whole day; anything else
    is parsed like parse_iso_datetime.
    """
    end = parse_iso_datetime(value)
    if end is not None and len(value.strip()) == len("YYYY-MM-DD"):
        end = end + timedelta(days=1) - timedelta(microseconds=1)
    return end


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


def day_key(dt: datetime) -> str:
    """Calendar day (UTC) of a timestamp, as used by the sales time series."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return date(dt.year, dt.month, dt.day).isoformat()
