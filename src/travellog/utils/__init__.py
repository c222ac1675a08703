"""Utility functions for travellog."""

from travellog.utils.date_parser import parse_visit_date, truncate_visit_date
from travellog.utils.value_parser import coerce_float, coerce_tags, coerce_text

__all__ = [
    "parse_visit_date",
    "truncate_visit_date",
    "coerce_float",
    "coerce_tags",
    "coerce_text",
]
