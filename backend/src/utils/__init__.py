"""
Utility modules for the clinic scheduler application.

This package contains shared helpers used across the application,
including the timezone-agnostic date/time string utilities.
"""

from utils.date_string_utils import (
    add_days_to_date_string,
    compare_date_strings,
    format_date_to_string,
    get_today_string,
    is_valid_date_string,
    parse_date_string,
)

__all__ = [
    'add_days_to_date_string',
    'compare_date_strings',
    'format_date_to_string',
    'get_today_string',
    'is_valid_date_string',
    'parse_date_string',
]
