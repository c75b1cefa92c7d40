"""Address aggregator — merges postcodes.io, Google Places and residential rows.

Full lookup: resolve the postcode first (mandatory), then fetch nearby places
and stored residential addresses concurrently. Places come first in the
result, residential rows after; a failed places search only removes its own
contribution.

Autocomplete: residential prefix matches and postcodes.io autocomplete,
merged residential-first and de-duplicated by postcode.
"""

import asyncio
import logging
from typing import Any

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from postcode_lookup.config import Settings
from postcode_lookup.crud import addresses as address_crud
from postcode_lookup.errors import UpstreamError
from postcode_lookup.integrations.google_places import GooglePlacesClient
from postcode_lookup.integrations.postcodes_io import (
    PostcodeResolution,
    PostcodeResult,
    PostcodesIOClient,
)
from postcode_lookup.models.residential_address import ResidentialAddress
from postcode_lookup.schemas import AddressSummary, Suggestion
from postcode_lookup.services.cache import AddressCaches

logger = logging.getLogger(__name__)


def normalize_postcode(raw: str) -> str:
    """Uppercase with all whitespace removed — the form used for keys and matching."""
    return "".join(raw.split()).upper()


def format_postcode(raw: str) -> str:
    """Canonical display form: outward code, one space, three-character inward code."""
    key = normalize_postcode(raw)
    if len(key) < 5:
        return key
    return f"{key[:-3]} {key[-3:]}"


class LookupOutcome(BaseModel):
    status_code: int = 200
    summaries: list[AddressSummary] = Field(default_factory=list)


class AddressAggregator:
    """Builds address summaries and suggestions from the three sources."""

    def __init__(
        self,
        caches: AddressCaches,
        resolver: PostcodesIOClient,
        places: GooglePlacesClient,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
    ):
        self.caches = caches
        self.resolver = resolver
        self.places = places
        self.session_factory = session_factory
        self.settings = settings

    # ─────────────── full lookup ───────────────

    async def lookup(self, postcode: str) -> LookupOutcome:
        key = normalize_postcode(postcode)

        resolution = await self._resolve(key)
        if not resolution.ok:
            return LookupOutcome(status_code=resolution.status)
        geo = resolution.result

        places, residential = await asyncio.gather(
            self._nearby_places(key, geo),
            self._residential_rows(key),
        )

        summaries = [_place_summary(p, geo) for p in places]
        summaries.extend(_residential_summary(row) for row in residential)
        summaries = _dedupe_by_id(summaries)

        logger.info(
            "Lookup | postcode=%s | places=%d | residential=%d",
            key, len(places), len(residential),
        )
        return LookupOutcome(status_code=200, summaries=summaries)

    async def _resolve(self, key: str) -> PostcodeResolution:
        cache_key = f"postcode_{key}"
        cached = self.caches.postcodes.get(cache_key)
        if cached is not None:
            return PostcodeResolution(status=200, result=cached)

        resolution = await self.resolver.resolve(key)
        if resolution.ok:
            self.caches.postcodes.put(cache_key, resolution.result)
        return resolution

    async def _nearby_places(self, key: str, geo: PostcodeResult) -> list[dict[str, Any]]:
        cache_key = f"places_{key}"
        cached = self.caches.places.get(cache_key)
        if cached is not None:
            return cached

        if geo.latitude is None or geo.longitude is None:
            logger.info("No coordinates for %s — skipping places search", key)
            return []

        try:
            places = await self.places.nearby(
                geo.latitude,
                geo.longitude,
                radius=self.settings.places_radius_meters,
                limit=self.settings.places_max_results,
            )
        except Exception as e:
            logger.error("Error fetching nearby places | postcode=%s | %s", key, str(e)[:200])
            return []

        self.caches.places.put(cache_key, places)
        return places

    async def _residential_rows(self, key: str) -> list[ResidentialAddress]:
        try:
            async with self.session_factory() as session:
                return await address_crud.find_by_postcode(
                    session, key, limit=self.settings.residential_lookup_limit,
                )
        except Exception as e:
            logger.error("Residential lookup failed | postcode=%s | %s", key, str(e)[:200])
            return []

    # ─────────────── autocomplete ───────────────

    async def suggest(self, partial: str) -> list[Suggestion]:
        key = normalize_postcode(partial)
        if len(key) < 2:
            return []

        cache_key = f"suggestions_{key}"
        cached = self.caches.postcodes.get(cache_key)
        if cached is not None:
            return list(cached)

        residential, external = await asyncio.gather(
            self._residential_suggestions(key),
            self._external_suggestions(key),
        )

        merged: list[Suggestion] = []
        seen: set[str] = set()
        for suggestion in [*residential, *external]:
            if suggestion.postcode in seen:
                continue
            seen.add(suggestion.postcode)
            merged.append(suggestion)

        final = merged[: self.settings.suggestion_max_results]
        self.caches.postcodes.put(cache_key, final)
        return list(final)

    async def _residential_suggestions(self, key: str) -> list[Suggestion]:
        try:
            async with self.session_factory() as session:
                rows = await address_crud.find_by_postcode_prefix(
                    session, key, limit=self.settings.suggestion_source_limit,
                )
        except Exception as e:
            logger.error("Residential suggestions failed | partial=%s | %s", key, str(e)[:200])
            return []
        return [
            Suggestion(
                postcode=row.postcode,
                address=f"{row.building_number} {row.street_address}, {row.town}",
            )
            for row in rows
        ]

    async def _external_suggestions(self, key: str) -> list[Suggestion]:
        limit = self.settings.suggestion_source_limit
        try:
            postcodes = await self.resolver.autocomplete(key, limit=limit)
        except UpstreamError as e:
            logger.warning("Autocomplete unavailable | partial=%s | %s", key, str(e)[:200])
            return []
        return [Suggestion(postcode=p, address="United Kingdom") for p in postcodes[:limit]]


def _place_summary(place: dict[str, Any], geo: PostcodeResult) -> AddressSummary:
    vicinity = place.get("vicinity") or ""
    parts = vicinity.split(",")
    street = parts[0].strip() if len(parts) > 1 else ""
    return AddressSummary(
        id=f"gp_{place.get('place_id', '')}",
        source_type="google_place",
        building_label=place.get("name") or "",
        street_address=street,
        town=geo.admin_district,
        postcode=geo.postcode,
        formatted_address=f"{vicinity}, {geo.postcode}".strip(),
    )


def _residential_summary(row: ResidentialAddress) -> AddressSummary:
    return AddressSummary(
        id=row.id,
        source_type="residential",
        building_label=row.building_number,
        street_address=row.street_address,
        town=row.town,
        postcode=row.postcode,
        formatted_address=row.full_address,
        created_at=row.created_at,
    )


def _dedupe_by_id(summaries: list[AddressSummary]) -> list[AddressSummary]:
    seen: set[str] = set()
    unique = []
    for summary in summaries:
        if summary.id in seen:
            continue
        seen.add(summary.id)
        unique.append(summary)
    return unique
