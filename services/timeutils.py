"""
Date/time helpers for string-keyed bookings.

Dates are ``YYYY-MM-DD`` and times ``HH:MM``. Hours are always two digits, so
lexical comparison matches chronological order, including end times past
midnight such as ``"25:00"``.
"""
import math
import re
from datetime import date, datetime, timedelta

from services.errors import InvalidRequest

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^\d{2}:\d{2}$")

DAY_END = "24:00"


def utcnow() -> datetime:
    """Naive UTC, matching the DateTime columns."""
    return datetime.utcnow()


def parse_date(value: str) -> date:
    if not isinstance(value, str) or not DATE_RE.match(value):
        raise InvalidRequest("Date must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidRequest("Date must be in YYYY-MM-DD format")


def time_to_minutes(value: str) -> int:
    if not isinstance(value, str) or not TIME_RE.match(value):
        raise InvalidRequest("Time must be in HH:MM format")
    hours, minutes = (int(p) for p in value.split(":"))
    if minutes > 59:
        raise InvalidRequest("Time must be in HH:MM format")
    return hours * 60 + minutes


def minutes_to_time(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def hour_of(value: str) -> int:
    return int(value.split(":")[0])


def end_time_for(start_time: str, duration) -> str:
    """start + duration hours, rounded to whole minutes. May exceed 24:00."""
    start = time_to_minutes(start_time)
    if start >= 24 * 60:
        raise InvalidRequest("Start time must be before 24:00")
    try:
        duration = float(duration)
    except (TypeError, ValueError):
        raise InvalidRequest("Duration must be a number of hours")
    if not math.isfinite(duration):
        raise InvalidRequest("Duration must be a number of hours")
    if duration <= 0:
        raise InvalidRequest("Duration must be positive")
    if duration > 24:
        raise InvalidRequest("Duration cannot exceed 24 hours")
    return minutes_to_time(start + round(duration * 60))


def previous_day(value: str) -> str:
    return (parse_date(value) - timedelta(days=1)).isoformat()


def is_weekend(value: str) -> bool:
    return parse_date(value).weekday() >= 5


def venue_now(utc_offset_hours: int, now: datetime = None) -> datetime:
    """Wall-clock time at the venue (fixed offset, no DST)."""
    return (now or utcnow()) + timedelta(hours=utc_offset_hours)
