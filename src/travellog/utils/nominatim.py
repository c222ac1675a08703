"""Nominatim (OpenStreetMap) place lookup client."""

import asyncio
from typing import Any

import requests

from travellog.domain.errors import RemoteCallFailure, remote_call_failed

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
USER_AGENT = "travellog/0.1"


class NominatimClient:
    """Thin client for the Nominatim search endpoint."""

    def __init__(self, endpoint: str = NOMINATIM_SEARCH_URL, timeout: float = 15):
        self.endpoint = endpoint
        self.timeout = timeout

    def search(self, query: str, limit: int = 6) -> list[dict[str, Any]]:
        """Search places by free text, with English address fields.

        Raises:
            RemoteCallFailure: If the request fails or returns malformed data
        """
        params = {
            "format": "json",
            "addressdetails": 1,
            "limit": limit,
            "q": query,
        }
        headers = {"Accept-Language": "en", "User-Agent": USER_AGENT}
        try:
            response = requests.get(self.endpoint, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise RemoteCallFailure(remote_call_failed("search places", e))
        return data if isinstance(data, list) else []

    async def search_async(self, query: str) -> list[dict[str, Any]]:
        """Run :meth:`search` off the event loop."""
        return await asyncio.to_thread(self.search, query)
