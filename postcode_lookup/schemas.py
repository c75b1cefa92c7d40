"""Pydantic models for API input/output.

Field aliases carry the exact wire names existing widgets parse
(``SearchEnd.Summaries[].StreetAddress`` and friends).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

SourceType = Literal["google_place", "residential"]


# ═══════════════ LOOKUP ═══════════════

class AddressSummary(BaseModel):
    """One candidate address returned by a postcode lookup."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="Id")
    source_type: SourceType = Field(alias="Type")
    building_label: str = Field(default="", alias="BuildingNumber")
    street_address: str = Field(default="", alias="StreetAddress")
    town: str = Field(default="", alias="Town")
    postcode: str = Field(default="", alias="Postcode")
    formatted_address: str = Field(default="", alias="Address")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def lookup_envelope(summaries: list[AddressSummary]) -> dict[str, Any]:
    """``{"SearchEnd": {"Summaries": [...]}}``, also used for empty results."""
    return {"SearchEnd": {"Summaries": [s.to_wire() for s in summaries]}}


# ═══════════════ SUGGESTIONS ═══════════════

class Suggestion(BaseModel):
    postcode: str
    address: str


# ═══════════════ RESIDENTIAL SUBMIT ═══════════════

class ResidentialAddressIn(BaseModel):
    """Submitted residential address. Requiredness is checked by the handler
    so a missing field yields a 400 with a readable message rather than 422.
    Numeric values (e.g. a building number sent as 10) are accepted as text."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    postcode: str | None = None
    building_number: str | None = Field(default=None, alias="buildingNumber")
    street_address: str | None = Field(default=None, alias="streetAddress")
    town: str | None = None

    def missing_required(self) -> bool:
        return not all(
            (v or "").strip()
            for v in (self.postcode, self.building_number, self.street_address, self.town)
        )


class ResidentialAddressOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="Id")
    type: Literal["residential"] = Field(default="residential", alias="Type")
    street_address: str = Field(alias="StreetAddress")
    town: str = Field(alias="Town")
    postcode: str = Field(alias="Postcode")
    address: str = Field(alias="Address")
    created_at: datetime = Field(alias="CreatedAt")


# ═══════════════ KEYS & ADMIN ═══════════════

class GenerateKeyRequest(BaseModel):
    user_id: str | None = Field(default=None, alias="userId")


class UserUpdate(BaseModel):
    rate_limit: int | None = Field(default=None, alias="rateLimit", ge=0)
    full_name: str | None = None
    email: str | None = None
    allowed_domains: list[str] | None = None

    def changes(self) -> dict[str, Any]:
        """Column name → value for every field given a non-null value."""
        return self.model_dump(exclude_none=True)


class UserOut(BaseModel):
    id: str
    full_name: str | None = None
    email: str | None = None
    new_api_key: str | None = None
    rate_limit: int
    request_count: int
    last_request_time: datetime | None = None
    allowed_domains: list[str] = Field(default_factory=list)
