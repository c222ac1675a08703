"""Lenient value coercion used when normalizing place input.

Every function here accepts whatever a form, an import file or a remote row
may contain and returns a usable value instead of raising.
"""

import math
from collections.abc import Iterable
from typing import Any, Optional


def coerce_text(value: Any) -> str:
    """Return value as a trimmed string; None becomes an empty string."""
    if value is None:
        return ""
    return str(value).strip()


def coerce_float(value: Any, default: float = 0.0) -> float:
    """Coerce a number or numeric string to a finite float.

    Handles:
    - 47.5
    - "47.5"
    - " 19 "

    Anything else (None, empty strings, garbage, NaN, infinities) yields
    ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def coerce_rating(value: Any) -> int:
    """Coerce a rating to an integer, falling back to 0.

    The 0..5 range is not enforced here; callers collecting input from a
    form restrict it there.
    """
    return int(coerce_float(value, 0.0))


def coerce_country_code(value: Any) -> Optional[str]:
    """Trim and uppercase a country code; empty codes become None."""
    code = coerce_text(value).upper()
    return code or None


def coerce_tags(value: Any) -> tuple[str, ...]:
    """Coerce tags from a comma separated string or a sequence.

    Order is kept and duplicates are not removed.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, Iterable) and not isinstance(value, (bytes, dict)):
        items = value
    else:
        return ()
    tags = []
    for item in items:
        if item is None:
            continue
        tag = str(item).strip()
        if tag:
            tags.append(tag)
    return tuple(tags)
