"""Search-as-you-type against an external place lookup.

Keystrokes are debounced: a lookup fires only after a quiet period with no
newer query. Every query is tagged with a generation number and a response
is applied only if no newer query has been issued since, so a slow response
for an old query can never overwrite the results of a newer one.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Optional

from travellog.domain.entities import PlaceCandidate
from travellog.domain.errors import RemoteCallFailure
from travellog.utils.value_parser import coerce_float, coerce_text

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3

Lookup = Callable[[str], Awaitable[list[dict[str, Any]]]]


def candidate_from_result(item: Mapping[str, Any]) -> PlaceCandidate:
    """Convert a Nominatim search result into a place candidate.

    A missing or malformed ``address`` is treated as empty.
    """
    address = item.get("address")
    if not isinstance(address, Mapping):
        address = {}
    display_name = coerce_text(item.get("display_name"))
    city = ""
    for key in ("city", "town", "village", "hamlet", "state"):
        if address.get(key):
            city = coerce_text(address[key])
            break
    name = (coerce_text(address.get("name")) or display_name).split(",")[0].strip()
    return PlaceCandidate(
        name=name or display_name,
        country=coerce_text(address.get("country")),
        country_code=coerce_text(address.get("country_code")).upper(),
        city=city,
        lat=coerce_float(item.get("lat")),
        lng=coerce_float(item.get("lon")),
        display_name=display_name,
        raw=dict(item),
    )


class PlaceSearch:
    """Debounced place search with last-response-wins semantics."""

    def __init__(self, lookup: Lookup, debounce: float = DEFAULT_DEBOUNCE_SECONDS):
        self.lookup = lookup
        self.debounce = debounce
        self.query = ""
        self.results: list[PlaceCandidate] = []
        self.loading = False
        self._generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._requests: set[asyncio.Task] = set()

    def set_query(self, query: str) -> None:
        """Record a keystroke; must be called from a running event loop."""
        self.query = query
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        if not query:
            self.results = []
            self.loading = False
            return

        self.loading = True
        self._timer = asyncio.get_running_loop().create_task(
            self._fire_after_quiet_period(query, self._generation)
        )

    async def _fire_after_quiet_period(self, query: str, generation: int) -> None:
        await asyncio.sleep(self.debounce)
        # The timer has fired; from here on the request is never cancelled.
        self._timer = None
        request = asyncio.current_task()
        if request is not None:
            self._requests.add(request)
        try:
            await self._run_lookup(query, generation)
        finally:
            self._requests.discard(request)

    async def _run_lookup(self, query: str, generation: int) -> None:
        try:
            items = await self.lookup(query)
            candidates = [
                candidate_from_result(item) for item in items or [] if isinstance(item, Mapping)
            ]
        except (RemoteCallFailure, TypeError, ValueError) as e:
            logger.warning("Place search failed for %r: %s", query, e)
            candidates = []

        if generation != self._generation:
            logger.debug("Discarding stale search response for %r", query)
            return
        self.results = candidates
        self.loading = False

    async def wait_idle(self) -> None:
        """Wait for the pending timer and every in-flight lookup to finish."""
        while self._timer is not None or self._requests:
            pending = [task for task in (self._timer, *self._requests) if task is not None]
            await asyncio.gather(*pending, return_exceptions=True)

    def clear(self) -> None:
        self.set_query("")
