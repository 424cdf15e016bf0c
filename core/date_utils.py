"""
Centralized date and time utilities for the application.

All instants handled by the service are timezone-aware UTC datetimes. The
only place local civil time appears is the history query, where calendar
dates are interpreted in an engineer's time zone and then converted back to
UTC bounds via :func:`local_day_range`.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser

logger = logging.getLogger(__name__)


def get_current_utc_time() -> datetime:
    """Return the current time as a timezone-aware datetime object in UTC."""
    return datetime.now(UTC)


def parse_timestamp(ts: str | datetime | None) -> datetime | None:
    """
    Parse a timestamp string (or datetime object) and ensure it is
    timezone-aware, defaulting to UTC.

    Args:
        ts: The timestamp to parse, either as an ISO 8601 string or a
            datetime object.

    Returns:
        A timezone-aware datetime object, or None if parsing fails.
    """
    if not ts:
        return None

    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            return ts.replace(tzinfo=UTC)
        return ts

    try:
        parsed_time = parser.isoparse(ts)
    except (ValueError, TypeError) as e:
        logger.warning("Failed to parse timestamp '%s': %s", ts, e)
        return None
    if parsed_time.tzinfo is None:
        return parsed_time.replace(tzinfo=UTC)
    return parsed_time


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Return the datetime as an explicit UTC-aware value."""

    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def parse_calendar_date(value: str | date | None) -> date | None:
    """Parse a ``YYYY-MM-DD`` string into a date; ``None`` passes through."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = value.strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError as e:
        msg = f"Invalid date '{value}', expected YYYY-MM-DD"
        raise ValueError(msg) from e


def resolve_timezone(name: str | None, default: str = "UTC") -> tzinfo:
    """Resolve an IANA zone name, falling back to ``default`` then UTC."""
    for candidate in (name, default):
        raw = str(candidate or "").strip()
        if not raw:
            continue
        if raw.upper() in {"UTC", "GMT", "Z"}:
            return UTC
        try:
            return ZoneInfo(raw)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown time zone '%s'; trying fallback", raw)
    return UTC


def local_day_range(
    start: date | None,
    end: date | None,
    tz: tzinfo,
    *,
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """
    Convert inclusive local calendar dates into a half-open UTC interval.

    The start bound is local midnight of ``start``; the end bound is local
    midnight of the day after ``end``. A missing side takes the value of the
    other, and when both are missing the current local day is used.

    Raises:
        ValueError: If ``end`` falls before ``start``.
    """
    if start is None and end is None:
        current = (now or get_current_utc_time()).astimezone(tz)
        start = end = current.date()
    elif start is None:
        start = end
    elif end is None:
        end = start

    if end < start:
        msg = f"endDate {end.isoformat()} is before startDate {start.isoformat()}"
        raise ValueError(msg)

    local_start = datetime.combine(start, time.min, tzinfo=tz)
    local_end = datetime.combine(end + timedelta(days=1), time.min, tzinfo=tz)
    return local_start.astimezone(UTC), local_end.astimezone(UTC)
