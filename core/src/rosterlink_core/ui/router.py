from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from rosterlink_core.errors import StoreError, TokenInvalid
from rosterlink_core.flows.dashboard import DashboardFlow
from rosterlink_core.services import PortalServices
from rosterlink_core.ui.render import (
    render_dashboard,
    render_error,
    render_home,
    render_invalid_link,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ui"])


def _get_services(request: Request) -> PortalServices:
    services = getattr(request.app.state, "portal", None)
    if services is None:
        raise RuntimeError("Portal services not initialized")
    return services


@router.get("/", response_class=HTMLResponse)
async def ui_home() -> HTMLResponse:
    return HTMLResponse(render_home())


@router.get("/dashboard/{token}", response_class=HTMLResponse)
async def ui_dashboard(request: Request, token: str) -> HTMLResponse:
    services = _get_services(request)

    try:
        view = await DashboardFlow(services).run(token)
    except TokenInvalid as exc:
        logger.warning("Dashboard token rejected: %s", exc.message)
        return HTMLResponse(render_invalid_link(), status_code=401)
    except StoreError as exc:
        logger.error("Dashboard load failed: %s", exc.message)
        return HTMLResponse(
            render_error("We could not load your dashboard. Please try again later."),
            status_code=500,
        )

    return HTMLResponse(render_dashboard(view, fields=services.layout.member))
