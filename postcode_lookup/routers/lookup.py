"""Lookup endpoints — full postcode lookup, autocomplete, residential submit.

Every handler returns a structurally valid payload, even on failure, so
embedded widgets can parse responses without special-casing errors.
"""

import logging
import time

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from postcode_lookup.crud import addresses as address_crud
from postcode_lookup.deps import get_services, get_session, read_json_body, require_identity
from postcode_lookup.schemas import ResidentialAddressIn, ResidentialAddressOut, lookup_envelope
from postcode_lookup.services.access import Identity
from postcode_lookup.services.aggregator import format_postcode, normalize_postcode
from postcode_lookup.services.usage_logger import log_usage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["lookup"])

REQUIRED_FIELDS_ERROR = "Postcode, building number/name, street address, and town are required"


@router.get("/postcodes/{postcode}")
async def lookup_postcode(
    postcode: str,
    request: Request,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_identity),
):
    services = get_services(request)
    endpoint = request.url.path

    start = time.monotonic()
    try:
        outcome = await services.aggregator.lookup(postcode)
    except Exception as e:
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.error("Postcode lookup failed | %dms | postcode=%s | %s", elapsed_ms, postcode, str(e)[:300])
        background_tasks.add_task(log_usage, services.database.session_factory, identity, endpoint, "error")
        return JSONResponse(status_code=500, content=lookup_envelope([]))

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        "Postcode lookup | status=%d | items=%d | %dms | user=%s",
        outcome.status_code, len(outcome.summaries), elapsed_ms, identity.id,
    )
    status = "success" if outcome.status_code == 200 else "error"
    background_tasks.add_task(log_usage, services.database.session_factory, identity, endpoint, status)
    return JSONResponse(status_code=outcome.status_code, content=lookup_envelope(outcome.summaries))


@router.get("/suggestions/{partial}")
async def postcode_suggestions(
    partial: str,
    request: Request,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_identity),
):
    services = get_services(request)
    endpoint = request.url.path

    try:
        suggestions = await services.aggregator.suggest(partial)
    except Exception as e:
        logger.error("Postcode suggestions failed | partial=%s | %s", partial, str(e)[:300])
        background_tasks.add_task(log_usage, services.database.session_factory, identity, endpoint, "error")
        return JSONResponse(
            status_code=500,
            content={"error": "Error fetching suggestions", "suggestions": []},
        )

    background_tasks.add_task(log_usage, services.database.session_factory, identity, endpoint, "success")
    return {"suggestions": [s.model_dump() for s in suggestions]}


@router.post("/residential-address")
async def submit_residential_address(
    request: Request,
    identity: Identity = Depends(require_identity),
    session: AsyncSession = Depends(get_session),
):
    try:
        body = await read_json_body(request)
        payload = ResidentialAddressIn.model_validate(body)
    except (ValueError, ValidationError):
        return JSONResponse(status_code=400, content={"error": REQUIRED_FIELDS_ERROR})

    if payload.missing_required():
        return JSONResponse(status_code=400, content={"error": REQUIRED_FIELDS_ERROR})

    try:
        row = await address_crud.create_address(
            session,
            postcode=format_postcode(payload.postcode),
            postcode_key=normalize_postcode(payload.postcode),
            building_number=payload.building_number.strip(),
            street_address=payload.street_address.strip(),
            town=payload.town.strip(),
            submitted_by=identity.id,
        )
    except Exception as e:
        logger.error("Error submitting residential address: %s", str(e)[:300])
        return JSONResponse(status_code=500, content={"error": "Error submitting address"})

    logger.info("Residential address stored | id=%s | postcode=%s | user=%s", row.id, row.postcode, identity.id)
    address = ResidentialAddressOut(
        id=row.id,
        street_address=f"{row.building_number} {row.street_address}",
        town=row.town,
        postcode=row.postcode,
        address=row.full_address,
        created_at=row.created_at,
    )
    return {
        "message": "Residential address submitted successfully",
        "address": address.model_dump(mode="json", by_alias=True),
    }
