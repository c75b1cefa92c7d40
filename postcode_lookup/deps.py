"""FastAPI dependencies and request helpers."""

import json
from collections.abc import AsyncIterator
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from postcode_lookup.errors import RequestTooLarge
from postcode_lookup.services.access import Identity
from postcode_lookup.services.container import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yields an async DB session from the app's database."""
    async with get_services(request).database.session_factory() as session:
        yield session


async def require_identity(request: Request) -> Identity:
    """Resolve the caller or raise AccessDenied (401/403/429/500)."""
    identity = await get_services(request).access.authorize(request)
    request.state.identity = identity
    return identity


async def read_json_body(request: Request) -> Any:
    """Parse the JSON body, refusing anything over ``max_body_bytes``.

    Raises RequestTooLarge (413) or ValueError for malformed JSON.
    """
    limit = get_services(request).settings.max_body_bytes
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise RequestTooLarge(limit)
    body = await request.body()
    if len(body) > limit:
        raise RequestTooLarge(limit)
    return json.loads(body)
