"""Control endpoints for onboarding workspaces and fleet status."""

import json
from typing import Any
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from botfleet.api.dependencies import OAuthDep, SettingsDep, StorageDep, SupervisorDep
from botfleet.core.exceptions import AppException, Conflict, InvalidRequest, PersistenceError
from botfleet.models import Tenant

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["Control"])


def create_response(code: int, message: str) -> JSONResponse:
    """Status envelope used by control endpoints."""
    return JSONResponse(
        status_code=code,
        content={"status": {"code": code, "message": message}},
    )


async def _body_redirect_uri(request: Request) -> str | None:
    """Read ``redirect_uri`` from a JSON request body, if one was sent."""
    body = await request.body()
    if not body:
        return None
    try:
        data = json.loads(body)
    except ValueError:
        logger.warning("Ignoring non-JSON body on /start")
        return None
    return data.get("redirect_uri") if isinstance(data, dict) else None


# ==================== Onboarding ====================


@router.get("/start")
async def start(
    request: Request,
    supervisor: SupervisorDep,
    storage: StorageDep,
    oauth: OAuthDep,
    config: SettingsDep,
    code: str | None = None,
    redirect_uri: str | None = None,
) -> RedirectResponse:
    """Finish the Slack install flow and start the new workspace's bot."""
    if not code:
        raise InvalidRequest("Empty authentication code")

    redirect_uri = redirect_uri or await _body_redirect_uri(request)

    try:
        grant, identity = await oauth.exchange(code, redirect_uri)
        tenant = Tenant.from_grant(grant, identity)

        if supervisor.registry.is_running(tenant.token):
            raise Conflict("Bot already running in this team")

        await supervisor.activate(tenant)
    except Exception as e:
        message = e.message if isinstance(e, AppException) else str(e)
        logger.error("Onboarding failed", error=message, exc_info=not isinstance(e, AppException))
        query = urlencode({"message": message})
        return RedirectResponse(f"{config.error_redirect_url}?{query}", status_code=status.HTTP_302_FOUND)

    try:
        await storage.upsert(tenant.model_copy(update={"first_run": False}))
        logger.info("Bot persisted", token=tenant.token_preview)
    except PersistenceError as e:
        logger.error("Error while persisting bot", token=tenant.token_preview, error=e.message)

    return RedirectResponse(config.success_redirect_url, status_code=status.HTTP_302_FOUND)


@router.post("/stop")
async def stop() -> JSONResponse:
    """Reserved for unprovisioning."""
    return create_response(status.HTTP_400_BAD_REQUEST, "not implemented yet")


# ==================== Status ====================


@router.get("/status")
async def fleet_status(supervisor: SupervisorDep) -> dict[str, Any]:
    """Live bot and session counts."""
    snapshot = supervisor.status()
    return {
        "botsCount": snapshot.bots_count,
        "sessions": snapshot.sessions,
        "status": {
            "code": status.HTTP_200_OK,
            "message": "bots count",
        },
    }
