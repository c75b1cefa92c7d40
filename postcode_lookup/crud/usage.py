"""Usage log writes."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from postcode_lookup.models.api_usage import ApiUsage
from postcode_lookup.models.profile import Profile


async def insert_usage(
    session: AsyncSession, *, user_id: str, endpoint: str, status: str, timestamp: datetime
) -> None:
    """Append one usage row and bump the profile's request counters."""
    session.add(ApiUsage(user_id=user_id, endpoint=endpoint, status=status, timestamp=timestamp))
    await session.execute(
        update(Profile)
        .where(Profile.id == user_id)
        .values(request_count=Profile.request_count + 1, last_request_time=timestamp)
    )
    await session.commit()


async def list_usage(session: AsyncSession, user_id: str) -> list[ApiUsage]:
    result = await session.execute(
        select(ApiUsage).where(ApiUsage.user_id == user_id).order_by(ApiUsage.timestamp)
    )
    return list(result.scalars().all())
