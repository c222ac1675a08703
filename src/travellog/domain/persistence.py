"""Persistence mode controller.

Owns the in-memory place collection and routes every mutation either to
local storage (anonymous session) or to the remote row store (authenticated
session). Session changes go through :meth:`PersistenceController.transition`,
the only place where the collection is swapped between the two stores.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Optional

from travellog.database.mappers import changes_to_row, domain_to_row, row_to_domain
from travellog.domain.attribution import EMPTY_INDEX, BoundaryIndex, compute_stats
from travellog.domain.entities import (
    STATUS_ALL,
    STATUS_VISITED,
    STATUS_WISHLIST,
    Anonymous,
    Authenticated,
    Identity,
    Place,
    PlaceStats,
    SessionState,
)
from travellog.domain.errors import (
    ConflictError,
    NotFoundError,
    ParseError,
    RemoteCallFailure,
    change_in_flight,
    place_not_found,
)
from travellog.domain.place import dump_places, new_place, normalize_changes, parse_places
from travellog.domain.views import filter_places, find_place

if TYPE_CHECKING:
    from travellog.database.base import AuthProvider, LocalStore, RemoteStore

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "travel-tracker-places-v1"
# Budapest; stands in for the last clicked map position.
DEFAULT_COORDS = (47.4979, 19.0402)


def default_seed_places() -> tuple[Place, ...]:
    """Sample places shown to a first-time anonymous user."""
    return (
        Place(
            id=str(uuid.uuid4()),
            name="Lake Bled",
            country="Slovenia",
            country_code="SI",
            city="Bled",
            lat=46.3625,
            lng=14.0936,
            status=STATUS_VISITED,
            date_visited="2025-10-23",
            rating=5,
            notes="Boat ride to the island, great views.",
            tags=("lake", "hiking"),
        ),
        Place(
            id=str(uuid.uuid4()),
            name="Prague Old Town",
            country="Czechia",
            country_code="CZ",
            city="Prague",
            lat=50.087,
            lng=14.406,
            status=STATUS_WISHLIST,
            notes="Bridge, old town, beer.",
            tags=("sightseeing",),
        ),
    )


@dataclass(frozen=True)
class PersistenceConfig:
    """Configuration passed to the controller at construction."""

    storage_key: str = DEFAULT_STORAGE_KEY
    seed_places: tuple[Place, ...] = field(default_factory=default_seed_places)
    default_coords: tuple[float, float] = DEFAULT_COORDS


class PersistenceController:
    """Keeps the place collection in the store that matches the session."""

    def __init__(
        self,
        local_store: LocalStore,
        remote_store: RemoteStore,
        auth_provider: Optional[AuthProvider] = None,
        config: Optional[PersistenceConfig] = None,
    ):
        """Initialize persistence controller.

        Args:
            local_store: Durable sink for the anonymous collection
            remote_store: Row store for authenticated owners
            auth_provider: Source of the current identity and its changes
            config: Storage key, seed places and default coordinates
        """
        self.local_store = local_store
        self.remote_store = remote_store
        self.auth_provider = auth_provider
        self.config = config or PersistenceConfig()
        self._session: SessionState = Anonymous()
        self._places: tuple[Place, ...] = ()
        self._selected_id: Optional[str] = None
        # (session, place id) pairs with a remote change waiting
        self._in_flight: set[tuple[Authenticated, str]] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def places(self) -> tuple[Place, ...]:
        return self._places

    @property
    def selected(self) -> Optional[Place]:
        return find_place(self._places, self._selected_id)

    def select(self, place_id: Optional[str]) -> None:
        self._selected_id = place_id

    # Session lifecycle
    async def start(self) -> None:
        """Load the anonymous collection and adopt the current identity.

        Stays anonymous when there is no identity or the query fails.
        """
        self._places = self._load_local()
        if self.auth_provider is None:
            return
        self._unsubscribe = self.auth_provider.on_identity_change(self.handle_identity_change)
        try:
            identity = await self.auth_provider.get_current_identity()
        except RemoteCallFailure as e:
            logger.warning("Could not fetch current identity, staying anonymous: %s", e)
            return
        if identity is not None:
            await self.transition(Authenticated(identity.id))

    def close(self) -> None:
        """Stop listening for identity changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def handle_identity_change(self, identity: Optional[Identity]) -> None:
        """Listener for the auth provider's sign-in and sign-out notifications."""
        target = Authenticated(identity.id) if identity is not None else Anonymous()
        await self.transition(target)

    async def transition(self, target: SessionState) -> None:
        """Move to another session state and swap the collection accordingly.

        Signing in discards the anonymous collection and loads the owner's
        rows; local storage is left untouched. Signing out reloads local
        storage, or the seed places if it is empty.

        Raises:
            RemoteCallFailure: If the owner's rows could not be fetched; the
                collection is left empty
        """
        if target == self._session:
            return
        logger.info("Session transition %s -> %s", self._session, target)
        self._session = target
        self._selected_id = None

        if isinstance(target, Anonymous):
            self._places = self._load_local()
            return

        self._places = ()
        rows, current = await self._call_remote(
            target,
            self.remote_store.select_places(target.owner_id),
            f"fetch of places for {target.owner_id}",
        )
        if not current:
            return
        self._places = tuple(row_to_domain(row) for row in rows)

    # Local storage
    def _load_local(self) -> tuple[Place, ...]:
        raw = self.local_store.get_item(self.config.storage_key)
        if raw is None:
            return tuple(self.config.seed_places)
        try:
            return tuple(parse_places(raw))
        except ParseError as e:
            logger.warning("Ignoring unreadable local storage entry: %s", e)
            return tuple(self.config.seed_places)

    def _mirror_local(self) -> None:
        if isinstance(self._session, Anonymous):
            self.local_store.set_item(self.config.storage_key, dump_places(self._places))

    def _claim(self, issued: Authenticated, place_id: str) -> tuple[Authenticated, str]:
        claim = (issued, place_id)
        if claim in self._in_flight:
            raise ConflictError(change_in_flight(place_id))
        self._in_flight.add(claim)
        return claim

    def _replace_place(self, place_id: str, place: Place) -> None:
        self._places = tuple(place if p.id == place_id else p for p in self._places)

    async def _call_remote(
        self, issued: Authenticated, call: Awaitable[Any], description: str
    ) -> tuple[Any, bool]:
        """Await a remote call issued under ``issued``.

        Returns the result and whether the session is still the one the call
        was issued in. Results and failures of calls that outlived their
        session are dropped.
        """
        try:
            result = await call
        except RemoteCallFailure:
            if self._session != issued:
                logger.debug("Dropping failed %s; session changed", description)
                return None, False
            raise
        if self._session != issued:
            logger.debug("Dropping %s result; session changed", description)
            return None, False
        return result, True

    # Mutations
    async def create(self, raw: Mapping[str, Any]) -> Place:
        """Create a place from form input and commit it to the active store.

        While authenticated the place is shown immediately under a temporary
        id and swapped for the stored row once the insert succeeds. A failed
        insert leaves the temporary entry in place.

        Raises:
            ValidationError: If the name is empty
            RemoteCallFailure: If the remote insert fails
        """
        place = new_place(raw, self.config.default_coords)
        self._places = (place,) + self._places

        if isinstance(self._session, Anonymous):
            self._mirror_local()
            return place

        issued = self._session
        row, current = await self._call_remote(
            issued,
            self.remote_store.insert_place(domain_to_row(place, issued.owner_id)),
            f"insert of {place.id}",
        )
        if not current:
            return place
        stored = row_to_domain(row)
        self._replace_place(place.id, stored)
        if self._selected_id == place.id:
            self._selected_id = stored.id
        return stored

    async def update(self, place_id: str, changes: Mapping[str, Any]) -> Optional[Place]:
        """Apply an edit to a place in the active store.

        While authenticated only the edited fields are sent, and memory is
        updated from the returned row; a failed update leaves memory stale.
        Returns None when the session changed before the update completed.

        Raises:
            ValidationError: For unknown fields or an empty name
            NotFoundError: If the place does not exist
            ConflictError: If a change for the place is already in flight
            RemoteCallFailure: If the remote update fails
        """
        normalized = normalize_changes(changes)

        if isinstance(self._session, Anonymous):
            existing = find_place(self._places, place_id)
            if existing is None:
                raise NotFoundError(place_not_found(place_id))
            updated = replace(existing, **normalized)
            self._replace_place(place_id, updated)
            self._mirror_local()
            return updated

        issued = self._session
        claim = self._claim(issued, place_id)
        try:
            row, current = await self._call_remote(
                issued,
                self.remote_store.update_place(place_id, changes_to_row(changes), issued.owner_id),
                f"update of {place_id}",
            )
        finally:
            self._in_flight.discard(claim)
        if not current:
            return None
        if row is None:
            raise NotFoundError(place_not_found(place_id))
        updated = row_to_domain(row)
        self._replace_place(place_id, updated)
        return updated

    async def delete(self, place_id: str) -> None:
        """Delete a place from the active store.

        While authenticated the place leaves memory only after the remote
        delete succeeded.

        Raises:
            NotFoundError: If the place does not exist
            ConflictError: If a change for the place is already in flight
            RemoteCallFailure: If the remote delete fails
        """
        if isinstance(self._session, Anonymous):
            if find_place(self._places, place_id) is None:
                raise NotFoundError(place_not_found(place_id))
            self._remove(place_id)
            self._mirror_local()
            return

        issued = self._session
        claim = self._claim(issued, place_id)
        try:
            deleted, current = await self._call_remote(
                issued,
                self.remote_store.delete_place(place_id, issued.owner_id),
                f"delete of {place_id}",
            )
        finally:
            self._in_flight.discard(claim)
        if not current:
            return
        if not deleted:
            raise NotFoundError(place_not_found(place_id))
        self._remove(place_id)

    def _remove(self, place_id: str) -> None:
        self._places = tuple(p for p in self._places if p.id != place_id)
        if self._selected_id == place_id:
            self._selected_id = None

    # Import / export
    def import_places(self, text: str) -> tuple[Place, ...]:
        """Replace the collection with the places of an interchange document.

        The document is parsed completely before anything changes. While
        anonymous the result is mirrored to local storage; while authenticated
        it only replaces the in-memory collection.

        Raises:
            ParseError: If the document is not a JSON array
        """
        places = tuple(parse_places(text))
        self._places = places
        self._selected_id = None
        if isinstance(self._session, Anonymous):
            self._mirror_local()
        else:
            logger.info("Imported %d places into memory only while signed in", len(places))
        return places

    def export_places(self) -> str:
        """Serialize the current collection, in order, as pretty-printed JSON."""
        return dump_places(self._places)

    # Derived views
    def filtered(self, text_query: str = "", status_filter: str = STATUS_ALL) -> list[Place]:
        return filter_places(self._places, text_query, status_filter)

    def stats(self, index: BoundaryIndex = EMPTY_INDEX) -> PlaceStats:
        return compute_stats(self._places, index)
