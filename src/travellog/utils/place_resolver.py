"""Utility for resolving place references to places."""

from collections.abc import Sequence

from travellog.domain.entities import Place
from travellog.domain.errors import NotFoundError, ValidationError


def resolve_place(places: Sequence[Place], reference: str) -> Place:
    """Resolve a place ID, unique ID prefix or name to a place.

    Args:
        places: Places of the active collection
        reference: Full ID, a prefix of an ID, or a place name (case-insensitive)

    Returns:
        Matching place

    Raises:
        NotFoundError: If nothing matches
        ValidationError: If the reference matches more than one place
    """
    reference = reference.strip()

    for place in places:
        if place.id == reference:
            return place

    by_prefix = [place for place in places if place.id.startswith(reference)] if reference else []
    if len(by_prefix) == 1:
        return by_prefix[0]

    lowered = reference.lower()
    by_name = [place for place in places if place.name.lower() == lowered]
    if len(by_name) == 1:
        return by_name[0]

    if len(by_prefix) > 1 or len(by_name) > 1:
        raise ValidationError(f"Place '{reference}' is ambiguous; use its ID")
    raise NotFoundError(f"Place '{reference}' not found")
