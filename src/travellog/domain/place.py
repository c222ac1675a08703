"""Place normalization and the JSON interchange format.

The same JSON document shape (camelCase field names) is used for the local
storage entry and for import/export files.
"""

import json
import uuid
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from travellog.domain.entities import STATUS_VISITED, STATUS_WISHLIST, Place
from travellog.domain.errors import (
    ParseError,
    ValidationError,
    import_not_a_list,
    place_name_required,
    unknown_place_field,
)
from travellog.utils.value_parser import (
    coerce_country_code,
    coerce_float,
    coerce_rating,
    coerce_tags,
    coerce_text,
)

# Interchange field name -> Place attribute name.
JSON_FIELDS = {
    "id": "id",
    "name": "name",
    "country": "country",
    "countryCode": "country_code",
    "city": "city",
    "lat": "lat",
    "lng": "lng",
    "status": "status",
    "dateVisited": "date_visited",
    "rating": "rating",
    "notes": "notes",
    "tags": "tags",
}

EDITABLE_FIELDS = frozenset(JSON_FIELDS.values()) - {"id"}


def coerce_status(value: Any) -> str:
    """Return ``visited`` only for the exact string, ``wishlist`` otherwise."""
    return STATUS_VISITED if value == STATUS_VISITED else STATUS_WISHLIST


def new_place_id() -> str:
    """Return a fresh client-generated place identifier."""
    return str(uuid.uuid4())


def _coerce_field(attr: str, value: Any, default_coords: tuple[float, float]) -> Any:
    if attr == "country_code":
        return coerce_country_code(value)
    if attr == "lat":
        return coerce_float(value, default_coords[0])
    if attr == "lng":
        return coerce_float(value, default_coords[1])
    if attr == "status":
        return coerce_status(value)
    if attr == "rating":
        return coerce_rating(value)
    if attr == "tags":
        return coerce_tags(value)
    return coerce_text(value)


def normalize(raw: Any, default_coords: tuple[float, float] = (0.0, 0.0)) -> Place:
    """Normalize raw input into a Place.

    Accepts both interchange (``countryCode``) and attribute (``country_code``)
    field names. Never raises: missing or malformed fields get safe defaults,
    and a non-mapping input is treated as an empty object. A place with an
    empty name is returned as-is; use :func:`new_place` where a name is
    required.

    Args:
        raw: Mapping with place fields
        default_coords: Coordinates used when lat/lng are missing or not finite

    Returns:
        Normalized Place
    """
    if not isinstance(raw, Mapping):
        raw = {}

    values: dict[str, Any] = {}
    for json_name, attr in JSON_FIELDS.items():
        if attr == "id":
            continue
        if json_name in raw:
            value = raw[json_name]
        else:
            value = raw.get(attr)
        values[attr] = _coerce_field(attr, value, default_coords)

    place_id = raw.get("id")
    values["id"] = str(place_id) if place_id not in (None, "") else new_place_id()
    return Place(**values)


def new_place(raw: Mapping[str, Any], default_coords: tuple[float, float]) -> Place:
    """Normalize form input for a new place, always with a fresh identifier.

    Raises:
        ValidationError: If the name is empty after trimming
    """
    fields = {key: value for key, value in raw.items() if key != "id"}
    place = normalize(fields, default_coords=default_coords)
    if not place.name:
        raise ValidationError(place_name_required())
    return place


def normalize_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Coerce a partial edit, keeping only the fields it names.

    Raises:
        ValidationError: For unknown fields or an empty name
    """
    normalized = {}
    for key, value in changes.items():
        attr = JSON_FIELDS.get(key, key)
        if attr not in EDITABLE_FIELDS:
            raise ValidationError(unknown_place_field(key))
        normalized[attr] = _coerce_field(attr, value, (0.0, 0.0))

    if "name" in normalized and not normalized["name"]:
        raise ValidationError(place_name_required())
    return normalized


def place_to_json(place: Place) -> dict[str, Any]:
    """Convert a Place into its interchange document."""
    document: dict[str, Any] = {}
    for json_name, attr in JSON_FIELDS.items():
        value = getattr(place, attr)
        if attr == "country_code" and value is None:
            continue
        if attr == "tags":
            value = list(value)
        document[json_name] = value
    return document


def places_from_documents(documents: Any) -> list[Place]:
    """Normalize every element of a parsed interchange array, one-to-one.

    Raises:
        ParseError: If the top level value is not a list
    """
    if not isinstance(documents, list):
        raise ParseError(import_not_a_list())
    return [normalize(document) for document in documents]


def parse_places(text: str) -> list[Place]:
    """Parse an interchange JSON document into places.

    The whole document is rejected if it is not valid JSON or not an array;
    individual malformed elements are never dropped.

    Raises:
        ParseError: If the payload is not a JSON array
    """
    try:
        documents = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid JSON: {e}")
    return places_from_documents(documents)


def dump_places(places: Iterable[Place], indent: Optional[int] = 2) -> str:
    """Serialize places, in order, to the interchange JSON format."""
    return json.dumps(
        [place_to_json(place) for place in places], indent=indent, ensure_ascii=False
    )
