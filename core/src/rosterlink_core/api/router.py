from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from rosterlink_core.api.models import (
    ApiResponse,
    LookupRequest,
    LookupResponse,
    UpdateProfileRequest,
    fail,
)
from rosterlink_core.errors import BadRequest, Forbidden, NotFound, PortalError
from rosterlink_core.flows.lookup import LookupFlow
from rosterlink_core.flows.profile import ProfileUpdateFlow
from rosterlink_core.services import PortalServices

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api"])


def _get_services(request: Request) -> PortalServices:
    services = getattr(request.app.state, "portal", None)
    if services is None:
        raise RuntimeError("Portal services not initialized")
    return services


@router.post(
    "/lookup-email",
    response_model=LookupResponse,
    responses={400: {}, 404: {}, 500: {}},
)
async def lookup_email(request: Request, payload: LookupRequest) -> JSONResponse:
    services = _get_services(request)

    try:
        result = await LookupFlow(services).run(payload.email, base_url=str(request.base_url))
    except (BadRequest, NotFound) as exc:
        return JSONResponse(status_code=exc.status_code, content=fail(exc.message))
    except PortalError as exc:
        logger.error("Lookup failed: %s", exc.message)
        return JSONResponse(
            status_code=500, content=fail(f"Internal server error: {exc.message}")
        )

    body = LookupResponse(
        success=True,
        message="Magic link generated successfully!",
        redirect_url=result.link,
    )
    return JSONResponse(content=body.model_dump(mode="json", by_alias=True))


@router.post(
    "/update-profile",
    response_model=ApiResponse,
    responses={400: {}, 403: {}, 500: {}},
)
async def update_profile(request: Request, payload: UpdateProfileRequest) -> JSONResponse:
    services = _get_services(request)

    try:
        await ProfileUpdateFlow(services).run(
            payload.token or "", payload.member_id, payload.updates
        )
    except (BadRequest, Forbidden) as exc:
        logger.warning("Profile update rejected: %s", exc.message)
        return JSONResponse(status_code=exc.status_code, content=fail(exc.message))
    except PortalError as exc:
        # Invalid tokens and store failures share one opaque response.
        logger.error("Update error: %s", exc.message)
        return JSONResponse(status_code=500, content=fail("Failed to update profile"))

    body = ApiResponse(success=True, message="Profile updated successfully!")
    return JSONResponse(content=body.model_dump(mode="json"))
