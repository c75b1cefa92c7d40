"""postcodes.io REST API integration.

Docs: https://postcodes.io/docs
Endpoints: /postcodes/{postcode}, /postcodes/{partial}/autocomplete
No API key required.
"""

import logging
import time
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from postcode_lookup.errors import UpstreamError

logger = logging.getLogger(__name__)

BASE_URL = "https://api.postcodes.io"


class PostcodeResult(BaseModel):
    """Geography for one postcode, as much as the lookup needs."""
    postcode: str
    latitude: float | None = None
    longitude: float | None = None
    admin_district: str = ""


class PostcodeResolution(BaseModel):
    """Resolver outcome. ``result`` is set only when ``status == 200``."""
    status: int
    result: PostcodeResult | None = None

    @property
    def ok(self) -> bool:
        return self.status == 200 and self.result is not None


class PostcodesIOClient:
    """Async client for postcodes.io."""

    def __init__(self, base_url: str = BASE_URL, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def resolve(self, postcode: str) -> PostcodeResolution:
        """Resolve a postcode to coordinates and district.

        Unknown or malformed postcodes come back with the resolver's status
        code (typically 404). Transport failures raise UpstreamError.
        """
        url = f"{self.base_url}/postcodes/{quote(postcode, safe='')}"

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url)
        except httpx.HTTPError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("postcodes.io error | %dms | postcode=%s | %s", elapsed_ms, postcode, str(e)[:200])
            raise UpstreamError(f"postcodes.io unreachable: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        data = _json_or_empty(resp)
        status = data.get("status") if isinstance(data.get("status"), int) else resp.status_code

        if status != 200 or not data.get("result"):
            logger.info(
                "postcodes.io | status=%d | %dms | postcode=%s",
                status, elapsed_ms, postcode,
            )
            return PostcodeResolution(status=status if status != 200 else 404)

        result = self._parse_result(data["result"])
        logger.info("postcodes.io OK | %dms | postcode=%s", elapsed_ms, result.postcode)
        return PostcodeResolution(status=200, result=result)

    async def autocomplete(self, partial: str, limit: int = 3) -> list[str]:
        """Return up to ``limit`` full postcodes starting with ``partial``."""
        url = f"{self.base_url}/postcodes/{quote(partial, safe='')}/autocomplete"

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url, params={"limit": str(limit)})
        except httpx.HTTPError as e:
            raise UpstreamError(f"postcodes.io autocomplete unreachable: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if resp.status_code != 200:
            logger.warning(
                "postcodes.io autocomplete | status=%d | %dms | partial=%s",
                resp.status_code, elapsed_ms, partial,
            )
            raise UpstreamError(f"postcodes.io autocomplete returned {resp.status_code}")

        results = _json_or_empty(resp).get("result") or []
        logger.info(
            "postcodes.io autocomplete OK | results=%d | %dms | partial=%s",
            len(results), elapsed_ms, partial,
        )
        return [str(p) for p in results[:limit]]

    def _parse_result(self, r: dict) -> PostcodeResult:
        return PostcodeResult(
            postcode=r.get("postcode", ""),
            latitude=r.get("latitude"),
            longitude=r.get("longitude"),
            admin_district=r.get("admin_district") or "",
        )


def _json_or_empty(resp: httpx.Response) -> dict:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
