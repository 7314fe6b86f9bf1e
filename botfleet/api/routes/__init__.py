"""API routes."""

from botfleet.api.routes.control import router as control_router
from botfleet.api.routes.health import router as health_router

__all__ = ["control_router", "health_router"]
