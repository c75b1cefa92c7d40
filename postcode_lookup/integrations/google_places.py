"""Google Places Nearby Search integration.

Docs: https://developers.google.com/maps/documentation/places/web-service/search-nearby
Endpoint: https://maps.googleapis.com/maps/api/place/nearbysearch/json
"""

import logging
import time
from typing import Any

import httpx

from postcode_lookup.errors import PlacesSearchError

logger = logging.getLogger(__name__)

BASE_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"

# Statuses that carry a (possibly empty) result list
_OK_STATUSES = {"OK", "ZERO_RESULTS"}


class GooglePlacesClient:
    """Async client for nearby establishments around a coordinate."""

    def __init__(self, api_key: str, base_url: str = BASE_URL, timeout: float = 10):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout

    async def nearby(
        self,
        lat: float,
        lng: float,
        radius: int = 250,
        limit: int = 12,
    ) -> list[dict[str, Any]]:
        """Return up to ``limit`` places within ``radius`` metres.

        Raises PlacesSearchError on any failure so callers can tell an empty
        neighbourhood apart from a failed search.
        """
        if not self.api_key:
            raise PlacesSearchError("Google Maps API key is not configured")

        params = {
            "location": f"{lat},{lng}",
            "radius": str(radius),
            "type": "establishment",
            "key": self.api_key,
        }

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(self.base_url, params=params)
        except httpx.TimeoutException as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("Google Places timeout | %dms", elapsed_ms)
            raise PlacesSearchError("Google Places timed out") from e
        except httpx.HTTPError as e:
            raise PlacesSearchError(f"Google Places unreachable: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if resp.status_code != 200:
            logger.warning("Google Places | status=%d | %dms", resp.status_code, elapsed_ms)
            raise PlacesSearchError(f"Google Places returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise PlacesSearchError("Google Places returned invalid JSON") from e
        status = data.get("status", "")
        if status not in _OK_STATUSES:
            logger.warning(
                "Google Places | api_status=%s | %dms | %s",
                status, elapsed_ms, data.get("error_message", ""),
            )
            raise PlacesSearchError(f"Google Places status {status}")

        results = (data.get("results") or [])[:limit]
        logger.info("Google Places OK | results=%d | %dms", len(results), elapsed_ms)
        return results
