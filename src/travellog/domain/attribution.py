"""Country attribution, aggregate statistics and map shading.

A place is attributed to a country by its explicit ISO code when it has one,
otherwise by looking its free-text country up in a Boundary Index built from
the boundary dataset. Attribution is a pure function of the place collection
and the index.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Optional

from travellog.domain.entities import (
    STATUS_VISITED,
    STATUS_WISHLIST,
    Place,
    PlaceStats,
)

# Property names under which boundary datasets publish the alpha-2 code.
ALPHA2_PROPERTY_KEYS = ("ISO3166-1-Alpha-2", "ISO_A2", "iso_a2", "ISO2")
NAME_PROPERTY_KEYS = ("name", "NAME", "ADMIN")

VISITED_FILL = "#f87171"
UNVISITED_FILL = "#ffffff"


def _first_property(properties: Mapping[str, Any], keys: Iterable[str]) -> str:
    for key in keys:
        value = properties.get(key)
        if value:
            return str(value)
    return ""


def feature_properties(feature: Any) -> Mapping[str, Any]:
    """Return a feature's properties, or an empty mapping."""
    if not isinstance(feature, Mapping):
        return {}
    properties = feature.get("properties")
    return properties if isinstance(properties, Mapping) else {}


def feature_alpha2(feature: Any) -> str:
    """Extract the uppercase alpha-2 code of a boundary feature, or ""."""
    return _first_property(feature_properties(feature), ALPHA2_PROPERTY_KEYS).upper()


class BoundaryIndex:
    """Lookup from lowercase country name or code to uppercase alpha-2 code."""

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        self._entries = dict(entries or {})

    @classmethod
    def from_geojson(cls, document: Any) -> "BoundaryIndex":
        """Build the index from a GeoJSON-like feature collection.

        Features without a code are skipped; a missing or malformed document
        yields an empty index.
        """
        entries: dict[str, str] = {}
        features = document.get("features") if isinstance(document, Mapping) else None
        for feature in features or []:
            alpha2 = feature_alpha2(feature)
            if not alpha2:
                continue
            name = _first_property(feature_properties(feature), NAME_PROPERTY_KEYS).lower()
            if name:
                entries[name] = alpha2
            entries[alpha2.lower()] = alpha2
        return cls(entries)

    def lookup(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    @property
    def is_loaded(self) -> bool:
        return bool(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


EMPTY_INDEX = BoundaryIndex()


def resolve_country_code(place: Optional[Place], index: BoundaryIndex) -> Optional[str]:
    """Attribute a place to an ISO alpha-2 code.

    An explicit ``country_code`` wins even if no boundary carries it. Otherwise
    the trimmed, lowercased ``country`` is looked up in the index. Returns None
    when the place cannot be attributed.
    """
    if place is None:
        return None
    if place.country_code:
        return place.country_code.upper()
    key = (place.country or "").strip().lower()
    if not key:
        return None
    return index.lookup(key)


def visited_country_codes(places: Iterable[Place], index: BoundaryIndex) -> frozenset[str]:
    """Return the distinct codes of all attributable visited places."""
    codes = set()
    for place in places:
        if place.status != STATUS_VISITED:
            continue
        code = resolve_country_code(place, index)
        if code:
            codes.add(code)
    return frozenset(codes)


def compute_stats(places: Iterable[Place], index: BoundaryIndex) -> PlaceStats:
    """Count visited and wishlist places and distinct visited countries.

    Without a loaded index the country count falls back to distinct trimmed
    ``country`` strings, compared case-sensitively.
    """
    places = list(places)
    visited = [p for p in places if p.status == STATUS_VISITED]
    wishlist = [p for p in places if p.status == STATUS_WISHLIST]

    if index.is_loaded:
        countries: Iterable[str] = visited_country_codes(visited, index)
    else:
        countries = {(p.country or "").strip() for p in visited} - {""}

    return PlaceStats(
        visited_count=len(visited),
        wishlist_count=len(wishlist),
        distinct_visited_country_count=len(set(countries)),
    )


def is_feature_visited(feature: Any, visited_codes: frozenset[str]) -> bool:
    """Classify a boundary polygon as visited; unmatched polygons are not."""
    alpha2 = feature_alpha2(feature)
    return bool(alpha2) and alpha2 in visited_codes


def country_style(feature: Any, visited_codes: frozenset[str]) -> dict[str, Any]:
    """Fill style for a boundary polygon."""
    visited = is_feature_visited(feature, visited_codes)
    return {
        "fillColor": VISITED_FILL if visited else UNVISITED_FILL,
        "fillOpacity": 0.6 if visited else 0.05,
        "color": "#999",
        "weight": 1,
    }


def shade_boundaries(document: Any, visited_codes: frozenset[str]) -> list[dict[str, Any]]:
    """Copy boundary features with ``visited`` and ``style`` properties added."""
    features = document.get("features") if isinstance(document, Mapping) else None
    shaded = []
    for feature in features or []:
        if not isinstance(feature, Mapping):
            continue
        properties = dict(feature_properties(feature))
        properties["visited"] = is_feature_visited(feature, visited_codes)
        properties["style"] = country_style(feature, visited_codes)
        shaded.append({**feature, "properties": properties})
    return shaded
