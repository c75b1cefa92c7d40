"""Residential address queries."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postcode_lookup.models.residential_address import ResidentialAddress


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def find_by_postcode(
    session: AsyncSession, postcode_key: str, limit: int = 15
) -> list[ResidentialAddress]:
    stmt = (
        select(ResidentialAddress)
        .where(ResidentialAddress.postcode_key == postcode_key)
        .order_by(ResidentialAddress.created_at)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def find_by_postcode_prefix(
    session: AsyncSession, partial_key: str, limit: int = 3
) -> list[ResidentialAddress]:
    """Case-insensitive prefix match on the postcode key (never a substring match)."""
    pattern = f"{_escape_like(partial_key)}%"
    stmt = (
        select(ResidentialAddress)
        .where(ResidentialAddress.postcode_key.ilike(pattern, escape="\\"))
        .order_by(ResidentialAddress.created_at)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_address(
    session: AsyncSession,
    *,
    postcode: str,
    postcode_key: str,
    building_number: str,
    street_address: str,
    town: str,
    submitted_by: str,
) -> ResidentialAddress:
    address = ResidentialAddress(
        postcode=postcode,
        postcode_key=postcode_key,
        building_number=building_number,
        street_address=street_address,
        town=town,
        full_address=f"{building_number} {street_address}, {postcode}",
        submitted_by=submitted_by,
    )
    session.add(address)
    await session.commit()
    await session.refresh(address)
    return address
