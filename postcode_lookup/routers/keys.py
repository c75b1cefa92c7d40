"""API key issuance. Unauthenticated so a new account can bootstrap its first key."""

import logging
import secrets

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from postcode_lookup.crud import profiles as profile_crud
from postcode_lookup.deps import get_services, get_session, read_json_body
from postcode_lookup.schemas import GenerateKeyRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["keys"])


def generate_api_key() -> str:
    """64 hex characters from 32 random bytes."""
    return secrets.token_hex(32)


@router.post("/generate-key")
async def generate_key(request: Request, session: AsyncSession = Depends(get_session)):
    try:
        payload = GenerateKeyRequest.model_validate(await read_json_body(request))
    except (ValueError, ValidationError):
        payload = GenerateKeyRequest()

    if not payload.user_id:
        return JSONResponse(status_code=400, content={"error": "User ID is required"})

    api_key = generate_api_key()
    default_limit = get_services(request).settings.default_rate_limit
    try:
        await profile_crud.upsert_api_key(session, payload.user_id, api_key, default_limit)
    except Exception as e:
        logger.error("Error generating API key | user=%s | %s", payload.user_id, str(e)[:300])
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})

    logger.info("API key issued | user=%s", payload.user_id)
    return {"apiKey": api_key}
