"""Visit date parsing utilities."""

import re
from datetime import date, datetime, timedelta
from typing import Any

from dateutil import parser as date_parser

_ISO_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")


def truncate_visit_date(value: Any) -> str:
    """Reduce a stored visit date to its ``YYYY-MM-DD`` portion.

    Remote rows may carry a time-of-day suffix (``2024-05-01T00:00:00+00:00``)
    or arrive as date/datetime objects. Values that do not start with an ISO
    date are returned trimmed and otherwise untouched; None becomes "".
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    match = _ISO_DATE_PREFIX.match(text)
    if match:
        return match.group(1)
    return text


def parse_visit_date(date_str: str) -> str:
    """Parse a user supplied visit date into ``YYYY-MM-DD``.

    Supports:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday"
    - An empty string, meaning no visit date

    Args:
        date_str: Date string in various formats

    Returns:
        ISO date string, or "" for an empty input

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    if not date_str:
        return ""

    today = date.today()
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str].isoformat()

    try:
        return date_parser.parse(date_str).date().isoformat()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
