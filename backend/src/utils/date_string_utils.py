"""
Timezone-agnostic date and time string utilities.

Dates are handled as "YYYY-MM-DD" strings and times as "HH:MM" or
"HH:MM:SS" strings throughout the application. Conversion to and from
``date`` objects only ever uses calendar fields, never a UTC offset, so a
date string always round-trips to the same calendar day regardless of the
host timezone.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

from core.constants import DATE_STRING_FORMAT, TIME_STRING_FORMAT

logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")

# Day-of-week numbering used by schedule settings: 0=Sunday .. 6=Saturday
SUNDAY = 0
MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3
THURSDAY = 4
FRIDAY = 5
SATURDAY = 6


def format_date_to_string(value: Union[date, datetime]) -> str:
    """
    Format a date (or datetime) as a YYYY-MM-DD string.

    Only the calendar fields are used; a timezone-aware datetime is NOT
    converted to UTC first.
    """
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date_string(date_str: str) -> date:
    """
    Parse a YYYY-MM-DD string into a date object.

    Raises:
        ValueError: If the string is empty or not a real calendar date
    """
    if not date_str or not date_str.strip():
        raise ValueError("Date string cannot be empty")

    date_str = date_str.strip()
    if not _DATE_PATTERN.match(date_str):
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD): {date_str}")

    try:
        return datetime.strptime(date_str, DATE_STRING_FORMAT).date()
    except ValueError as e:
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {date_str}") from e


def add_days_to_date_string(date_str: str, days: int) -> str:
    """Add ``days`` (may be negative) to a YYYY-MM-DD string."""
    return format_date_to_string(parse_date_string(date_str) + timedelta(days=days))


def compare_date_strings(date1: str, date2: str) -> int:
    """
    Compare two YYYY-MM-DD strings.

    Lexicographic order matches calendar order because the format is
    zero-padded and most-significant-first.

    Returns:
        -1 if date1 < date2, 0 if equal, 1 if date1 > date2
    """
    if date1 < date2:
        return -1
    if date1 > date2:
        return 1
    return 0


def is_valid_date_string(date_str: Optional[str]) -> bool:
    """Check that a string is a zero-padded YYYY-MM-DD real calendar date."""
    if not isinstance(date_str, str) or not _DATE_PATTERN.match(date_str):
        return False
    try:
        return format_date_to_string(parse_date_string(date_str)) == date_str
    except ValueError:
        return False


def is_valid_time_string(time_str: Optional[str]) -> bool:
    """Check that a string is HH:MM or HH:MM:SS on a 24-hour clock."""
    return isinstance(time_str, str) and bool(_TIME_PATTERN.match(time_str))


def get_today_string() -> str:
    """Today's local calendar date as YYYY-MM-DD."""
    return format_date_to_string(date.today())


def get_current_time_string() -> str:
    """Current local wall-clock time as HH:MM:SS."""
    return datetime.now().strftime(TIME_STRING_FORMAT)


def get_day_of_week(date_str: str) -> int:
    """Day of week for a date string, 0=Sunday .. 6=Saturday."""
    # date.weekday() is 0=Monday .. 6=Sunday
    return (parse_date_string(date_str).weekday() + 1) % 7


def get_next_weekday_string(date_str: str, weekday: int) -> str:
    """
    First date on or after ``date_str`` that falls on ``weekday``.

    Args:
        date_str: Reference date (YYYY-MM-DD)
        weekday: Target day of week, 0=Sunday .. 6=Saturday

    Returns:
        ``date_str`` itself when it already falls on ``weekday``,
        otherwise the next such date.
    """
    if weekday < SUNDAY or weekday > SATURDAY:
        raise ValueError(f"Invalid day of week: {weekday}")
    days_to_add = (weekday - get_day_of_week(date_str)) % 7
    return add_days_to_date_string(date_str, days_to_add)


def get_next_tuesday_string(date_str: Optional[str] = None) -> str:
    """Next Tuesday on or after ``date_str`` (today when omitted)."""
    return get_next_weekday_string(date_str or get_today_string(), TUESDAY)


def normalize_time_string(time_str: str) -> str:
    """
    Normalize HH:MM:SS to HH:MM so stored slot times compare consistently.

    Raises:
        ValueError: If the string is not a valid time
    """
    if not is_valid_time_string(time_str):
        raise ValueError(f"Invalid time format (expected HH:MM): {time_str}")
    return time_str[:5]
