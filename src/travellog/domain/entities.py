"""Domain model entities for travellog.

These are pure data classes representing travel log concepts, independent of
how they are stored. Local storage keeps them as camelCase JSON documents and
the remote row store keeps them as snake_case rows; both are translated at the
boundary so the rest of the application only deals with these types.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

STATUS_VISITED = "visited"
STATUS_WISHLIST = "wishlist"
PLACE_STATUSES = (STATUS_VISITED, STATUS_WISHLIST)

# Sentinel accepted by the status filter meaning "any status".
STATUS_ALL = "all"


@dataclass(frozen=True)
class Place:
    """A single tracked location, visited or wished-for."""

    id: str
    name: str
    country: str = ""
    country_code: Optional[str] = None
    city: str = ""
    lat: float = 0.0
    lng: float = 0.0
    status: str = STATUS_WISHLIST
    date_visited: str = ""
    rating: int = 0
    notes: str = ""
    tags: tuple[str, ...] = ()

    @property
    def is_visited(self) -> bool:
        return self.status == STATUS_VISITED


@dataclass(frozen=True)
class Anonymous:
    """Session without an authenticated identity; backed by local storage."""


@dataclass(frozen=True)
class Authenticated:
    """Session scoped to a remote owner; backed by the remote row store."""

    owner_id: str


SessionState = Union[Anonymous, Authenticated]


@dataclass(frozen=True)
class Identity:
    """Identity reported by the auth provider."""

    id: str
    email: str


@dataclass(frozen=True)
class SignUpResult:
    """Outcome of a registration request.

    ``session_present`` is False when the backend requires e-mail
    confirmation before the new identity may sign in.
    """

    identity: Identity
    session_present: bool


@dataclass(frozen=True)
class PlaceStats:
    """Aggregate counts shown in the header of the travel log."""

    visited_count: int
    wishlist_count: int
    distinct_visited_country_count: int


@dataclass(frozen=True)
class PlaceCandidate:
    """Place suggestion returned by the external place search."""

    name: str
    country: str = ""
    country_code: str = ""
    city: str = ""
    lat: float = 0.0
    lng: float = 0.0
    display_name: str = ""
    raw: dict = field(default_factory=dict, compare=False, repr=False)
