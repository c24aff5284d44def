# barbershop/core.py

"""Time arithmetic shared by the slot calculator and the booking guard.

Times of day travel as "HH:MM" strings and are compared as minutes since
midnight. Calendar days are plain ``date`` values in server-local time.
"""

import re
from datetime import date, datetime

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")
MINUTES_PER_DAY = 24 * 60


class InvalidTimeError(ValueError):
    pass


def parse_time(value: str) -> int:
    """Return the minutes since midnight for an "HH:MM" string."""
    match = TIME_PATTERN.match(value or "")
    if match is None:
        raise InvalidTimeError(f"Invalid time format '{value}' (expected HH:MM)")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_time(minutes: int) -> str:
    if not (0 <= minutes < MINUTES_PER_DAY):
        raise InvalidTimeError(f"{minutes} minutes is outside a single day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    # "9:00" -> "09:00"
    return format_time(parse_time(value))


def add_minutes(value: str, minutes: int) -> str:
    """Add ``minutes`` to an "HH:MM" time. Never wraps past midnight."""
    total = parse_time(value) + minutes
    if total >= MINUTES_PER_DAY:
        raise InvalidTimeError(f"{value} + {minutes} minutes crosses midnight")
    return format_time(total)


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    # half-open intervals [a_start, a_end) and [b_start, b_end)
    return a_start < b_end and b_start < a_end


def day_of_week(day: date) -> int:
    # date.weekday() is 0=Monday; schedules use 0=Sunday
    return (day.weekday() + 1) % 7


def local_now() -> datetime:
    return datetime.now()
