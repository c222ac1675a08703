"""Mapper functions to convert between domain places and remote store rows.

Rows use snake_case column names and may encode tags as JSON text and visit
dates as timestamps. This layer isolates that translation so the domain layer
only ever sees normalized Place entities.
"""

import json
from collections.abc import Mapping
from typing import Any

from travellog.domain import entities as domain
from travellog.domain.place import coerce_status, normalize_changes
from travellog.utils.date_parser import truncate_visit_date
from travellog.utils.value_parser import (
    coerce_country_code,
    coerce_float,
    coerce_rating,
    coerce_tags,
    coerce_text,
)

ROW_FIELDS = (
    "name",
    "country",
    "country_code",
    "city",
    "lat",
    "lng",
    "status",
    "date_visited",
    "rating",
    "notes",
    "tags",
)


def decode_tags(value: Any) -> tuple[str, ...]:
    """Decode row tags that arrive as JSON text or as a native list."""
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                value = json.loads(text)
            except ValueError:
                pass
    return coerce_tags(value)


def row_to_domain(row: Mapping[str, Any]) -> domain.Place:
    """Convert a remote store row to a domain Place entity."""
    return domain.Place(
        id=str(row["id"]),
        name=coerce_text(row.get("name")),
        country=coerce_text(row.get("country")),
        country_code=coerce_country_code(row.get("country_code")),
        city=coerce_text(row.get("city")),
        lat=coerce_float(row.get("lat")),
        lng=coerce_float(row.get("lng")),
        status=coerce_status(row.get("status")),
        date_visited=truncate_visit_date(row.get("date_visited")),
        rating=coerce_rating(row.get("rating")),
        notes=coerce_text(row.get("notes")),
        tags=decode_tags(row.get("tags")),
    )


def domain_to_row(place: domain.Place, owner_id: str) -> dict[str, Any]:
    """Convert a domain Place into an insert row for an owner.

    The place identifier is not sent; the remote store assigns its own.
    """
    row = {name: getattr(place, name) for name in ROW_FIELDS}
    row["tags"] = list(place.tags)
    row["owner_id"] = owner_id
    return row


def changes_to_row(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Convert an edit into a partial update document with only its fields."""
    row = dict(normalize_changes(changes))
    if "tags" in row:
        row["tags"] = list(row["tags"])
    return row
