"""Usage logging — audit trail of authenticated lookups.

Handlers queue ``log_usage`` with FastAPI ``BackgroundTasks`` so the write
happens after the response is sent. Write failures are logged and dropped
and never reach the request that produced the record.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from postcode_lookup.crud import usage as usage_crud
from postcode_lookup.services.access import Identity

logger = logging.getLogger(__name__)


async def log_usage(
    session_factory: async_sessionmaker[AsyncSession],
    identity: Identity,
    endpoint: str,
    status: str,
) -> None:
    """Fire-and-forget background task writing one ``api_usage`` row.

    Demo requests are never recorded. ``status`` is ``success`` or ``error``.
    """
    if identity.is_demo:
        return
    try:
        async with session_factory() as session:
            await usage_crud.insert_usage(
                session,
                user_id=identity.id,
                endpoint=endpoint,
                status=status,
                timestamp=datetime.now(timezone.utc),
            )
    except Exception as e:
        logger.error("Error logging API usage | user=%s | %s", identity.id, str(e)[:200])
