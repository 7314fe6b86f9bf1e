"""Health check endpoints."""

from datetime import datetime
from typing import Any

import structlog
from fastapi import APIRouter

from botfleet.api.dependencies import StorageDep, SupervisorDep
from botfleet.core.config import settings

logger = structlog.get_logger()

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
@router.get("/")
async def health_check() -> dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.app_env,
    }


@router.get("/ready")
async def readiness_check(
    storage: StorageDep,
    supervisor: SupervisorDep,
) -> dict[str, Any]:
    """Readiness check - verifies the tenant store is reachable."""
    storage_ok = await storage.health_check()
    if not storage_ok:
        logger.warning("Tenant store not ready")

    return {
        "status": "ready" if storage_ok else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {"storage": storage_ok},
        "bots": supervisor.status().bots_count,
    }


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    """Liveness check - basic endpoint for kubernetes liveness checks."""
    return {"status": "alive"}
