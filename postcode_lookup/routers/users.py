"""Administrative user management.

No authentication is enforced here; the routes are expected to be reachable
only from the operator network.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from postcode_lookup.crud import profiles as profile_crud
from postcode_lookup.deps import get_session, read_json_body
from postcode_lookup.models.profile import Profile
from postcode_lookup.schemas import UserOut, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["admin"])


def _user_out(profile: Profile) -> dict:
    return UserOut(
        id=profile.id,
        full_name=profile.full_name,
        email=profile.email,
        new_api_key=profile.api_key,
        rate_limit=profile.rate_limit,
        request_count=profile.request_count,
        last_request_time=profile.last_request_time,
        allowed_domains=profile.allowed_domains or [],
    ).model_dump(mode="json")


@router.get("")
async def list_users(session: AsyncSession = Depends(get_session)):
    try:
        profiles = await profile_crud.list_profiles(session)
    except Exception as e:
        logger.error("Error fetching users: %s", str(e)[:300])
        return JSONResponse(status_code=500, content={"error": "Error fetching users"})
    return [_user_out(p) for p in profiles]


@router.put("/{user_id}")
async def update_user(user_id: str, request: Request, session: AsyncSession = Depends(get_session)):
    try:
        changes = UserUpdate.model_validate(await read_json_body(request)).changes()
    except (ValueError, ValidationError):
        changes = {}

    if not changes:
        return JSONResponse(
            status_code=400,
            content={"error": "At least one field is required for update"},
        )

    try:
        profile = await profile_crud.update_profile(session, user_id, changes)
    except Exception as e:
        logger.error("Error updating user %s: %s", user_id, str(e)[:300])
        return JSONResponse(status_code=500, content={"error": "Error updating user"})

    if profile is None:
        return JSONResponse(status_code=404, content={"error": "User not found"})

    logger.info("User updated | user=%s | fields=%s", user_id, ",".join(sorted(changes)))
    return {"message": "User updated successfully"}


@router.delete("/{user_id}")
async def delete_user(user_id: str, session: AsyncSession = Depends(get_session)):
    try:
        await profile_crud.delete_profile(session, user_id)
    except Exception as e:
        logger.error("Error deleting user profile %s: %s", user_id, str(e)[:300])
        return JSONResponse(status_code=500, content={"error": "Error deleting user profile"})

    logger.info("User deleted | user=%s", user_id)
    return {"message": "User deleted successfully"}
