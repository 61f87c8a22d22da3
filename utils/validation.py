"""Shape checks for request bodies, applied before anything reaches the core."""
import math

from flask import current_app

from services.timeutils import DATE_RE, TIME_RE


def require_fields(data: dict, *names):
    missing = [n for n in names if data.get(n) in (None, "")]
    if missing:
        return f"Missing required fields: {', '.join(missing)}"
    return None


def check_date(value, field="date"):
    if not isinstance(value, str) or not DATE_RE.match(value):
        return f"{field} must be in YYYY-MM-DD format"
    return None


def check_time(value, field="start_time"):
    if not isinstance(value, str) or not TIME_RE.match(value):
        return f"{field} must be in HH:MM format"
    return None


def parse_duration(value):
    """Returns (duration, error). Missing means one hour."""
    if value is None:
        return 1, None
    if isinstance(value, bool):
        return None, "duration must be a number"
    try:
        duration = float(value)
    except (TypeError, ValueError):
        return None, "duration must be a number"
    if not math.isfinite(duration):
        return None, "duration must be a number"
    lo = current_app.config.get("MIN_BOOKING_HOURS", 1)
    hi = current_app.config.get("MAX_BOOKING_HOURS", 4)
    if duration < lo or duration > hi:
        return None, f"duration must be between {lo:g} and {hi:g} hours"
    return duration, None


def first_error(*errors):
    for err in errors:
        if err:
            return err
    return None
