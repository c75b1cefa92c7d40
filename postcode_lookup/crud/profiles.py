"""Profile (identity store) queries used by auth, key issuance and admin."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from postcode_lookup.models.api_usage import ApiUsage
from postcode_lookup.models.profile import Profile


async def get_by_api_key(session: AsyncSession, api_key: str) -> Profile | None:
    result = await session.execute(select(Profile).where(Profile.api_key == api_key))
    return result.scalar_one_or_none()


async def list_profiles(session: AsyncSession) -> list[Profile]:
    result = await session.execute(select(Profile).order_by(Profile.created_at))
    return list(result.scalars().all())


async def upsert_api_key(
    session: AsyncSession, user_id: str, api_key: str, default_rate_limit: int
) -> Profile:
    """Rotate the key of an existing profile, or create the profile with defaults."""
    profile = await session.get(Profile, user_id)
    if profile is None:
        profile = Profile(
            id=user_id,
            api_key=api_key,
            rate_limit=default_rate_limit,
            request_count=0,
            allowed_domains=[],
        )
        session.add(profile)
    else:
        profile.api_key = api_key
    await session.commit()
    return profile


async def update_profile(
    session: AsyncSession, user_id: str, updates: dict[str, Any]
) -> Profile | None:
    profile = await session.get(Profile, user_id)
    if profile is None:
        return None
    for field, value in updates.items():
        setattr(profile, field, value)
    await session.commit()
    return profile


async def delete_profile(session: AsyncSession, user_id: str) -> bool:
    """Delete a profile together with its usage history. Returns False if absent."""
    profile = await session.get(Profile, user_id)
    if profile is None:
        return False
    await session.execute(delete(ApiUsage).where(ApiUsage.user_id == user_id))
    await session.delete(profile)
    await session.commit()
    return True
