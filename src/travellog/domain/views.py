"""Derived views over the in-memory place collection."""

from collections.abc import Iterable
from typing import Optional

from travellog.domain.entities import STATUS_ALL, Place


def search_text(place: Place) -> str:
    """Text a place is searched by: name, country, city and tags, in that order."""
    return " ".join([place.name, place.country, place.city, " ".join(place.tags)]).lower()


def filter_places(
    places: Iterable[Place], text_query: str = "", status_filter: str = STATUS_ALL
) -> list[Place]:
    """Filter places by a case-insensitive text query and a status.

    The query is matched as a substring of the joined search text, so a query
    may span adjacent fields.
    """
    query = (text_query or "").lower()
    return [
        place
        for place in places
        if query in search_text(place)
        and (status_filter == STATUS_ALL or place.status == status_filter)
    ]


def find_place(places: Iterable[Place], place_id: Optional[str]) -> Optional[Place]:
    """Return the place with the given identifier, if present."""
    if place_id is None:
        return None
    for place in places:
        if place.id == place_id:
            return place
    return None
