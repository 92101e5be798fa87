# pyright: reportMissingTypeStubs=false
"""
Shared validators for API request models.

Request models call these from their ``field_validator`` hooks so every
router applies the same rules to names, dates, times and notes. Raising
``ValueError`` makes Pydantic report a 422 for the offending field.
"""

from typing import Optional

from core.constants import (
    LIGHT_BATH_COLORS,
    MAX_BODY_LOCATION_LENGTH,
    MAX_DAY_OF_WEEK,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_PATIENT_NOTE_LENGTH,
    MIN_DAY_OF_WEEK,
)
from utils.date_string_utils import is_valid_date_string, normalize_time_string


# ===== Common Field Validators =====

def validate_name(v: str) -> str:
    """
    Validate a person's name.

    - Trims whitespace
    - Ensures non-empty
    - Checks length
    - Rejects angle brackets
    """
    v = v.strip()
    if not v:
        raise ValueError('Name cannot be empty')
    if len(v) > MAX_NAME_LENGTH:
        raise ValueError(f'Name is too long (max {MAX_NAME_LENGTH} characters)')
    if '<' in v or '>' in v:
        raise ValueError('Name contains invalid characters')
    return v


def validate_name_optional(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    return validate_name(v)


def validate_date_string(v: str) -> str:
    """Require a calendar date in YYYY-MM-DD form."""
    v = v.strip()
    if not is_valid_date_string(v):
        raise ValueError('Invalid date, expected YYYY-MM-DD')
    return v


def validate_date_string_optional(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    return validate_date_string(v)


def validate_time_string(v: str) -> str:
    """Require a wall-clock time (HH:MM or HH:MM:SS); returns HH:MM."""
    return normalize_time_string(v.strip())


def validate_day_of_week(v: int) -> int:
    if v < MIN_DAY_OF_WEEK or v > MAX_DAY_OF_WEEK:
        raise ValueError(f'day_of_week must be between {MIN_DAY_OF_WEEK} (Sunday) and {MAX_DAY_OF_WEEK} (Saturday)')
    return v


def validate_body_location(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError('body_location cannot be empty')
    if len(v) > MAX_BODY_LOCATION_LENGTH:
        raise ValueError(f'body_location is too long (max {MAX_BODY_LOCATION_LENGTH} characters)')
    return v


def validate_color_optional(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip().lower()
    if v not in LIGHT_BATH_COLORS:
        raise ValueError(f'Invalid color, expected one of: {", ".join(LIGHT_BATH_COLORS)}')
    return v


def validate_notes(v: Optional[str]) -> Optional[str]:
    """Trim notes and cap their length; empty strings are allowed."""
    if v is None:
        return None
    v = v.strip()
    if len(v) > MAX_NOTES_LENGTH:
        raise ValueError(f'Notes are too long (max {MAX_NOTES_LENGTH} characters)')
    return v


def validate_note_content(v: str) -> str:
    """Patient note body: required, trimmed, capped at MAX_PATIENT_NOTE_LENGTH."""
    if not v or not v.strip():
        raise ValueError('Note content is required')
    v = v.strip()
    if len(v) > MAX_PATIENT_NOTE_LENGTH:
        raise ValueError(f'Note content cannot exceed {MAX_PATIENT_NOTE_LENGTH} characters')
    return v


def validate_note_content_optional(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    return validate_note_content(v)
