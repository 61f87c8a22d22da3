"""Coercion of numeric fields coming from request bodies."""
import math

from services.errors import InvalidRequest


def to_number(value, field: str, *, positive: bool = False, integer: bool = False):
    """
    Parse ``value`` as a finite, non-negative number (strictly positive with
    ``positive``). Raises InvalidRequest naming ``field`` otherwise.
    """
    if value is None or isinstance(value, bool):
        raise InvalidRequest(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidRequest(f"{field} must be a number")
    if not math.isfinite(number):
        raise InvalidRequest(f"{field} must be a number")
    if positive and number <= 0:
        raise InvalidRequest(f"{field} must be positive")
    if number < 0:
        raise InvalidRequest(f"{field} must be non-negative")
    if integer:
        if not number.is_integer():
            raise InvalidRequest(f"{field} must be a whole number")
        return int(number)
    return number
