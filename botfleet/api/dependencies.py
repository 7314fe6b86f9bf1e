"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from botfleet.core.config import Settings, settings
from botfleet.services.fleet.registry import FleetRegistry
from botfleet.services.fleet.supervisor import ConnectionSupervisor
from botfleet.services.slack.oauth import SlackOAuthExchange
from botfleet.storage.base import TenantStore
from botfleet.storage.memory import InMemoryTenantStore


# Process-wide singletons
_storage: TenantStore | None = None
_registry: FleetRegistry | None = None
_supervisor: ConnectionSupervisor | None = None
_oauth: SlackOAuthExchange | None = None


def get_storage() -> TenantStore:
    """Get the tenant store singleton.

    Uses in-memory storage unless Firestore is configured.
    """
    global _storage
    if _storage is None:
        if settings.storage_backend == "firestore":
            from botfleet.storage.firestore import FirestoreTenantStore
            _storage = FirestoreTenantStore(
                project_id=settings.gcp_project_id or None,
                collection=settings.tenants_collection,
            )
        else:
            _storage = InMemoryTenantStore()
    return _storage


def get_registry() -> FleetRegistry:
    global _registry
    if _registry is None:
        _registry = FleetRegistry()
    return _registry


def get_supervisor() -> ConnectionSupervisor:
    """Get the connection supervisor singleton."""
    global _supervisor
    if _supervisor is None:
        _supervisor = ConnectionSupervisor(registry=get_registry(), store=get_storage())
    return _supervisor


def get_oauth_exchange() -> SlackOAuthExchange:
    global _oauth
    if _oauth is None:
        _oauth = SlackOAuthExchange()
    return _oauth


def reset_dependencies() -> None:
    """Drop all singletons (for testing)."""
    global _storage, _registry, _supervisor, _oauth
    _storage = None
    _registry = None
    _supervisor = None
    _oauth = None


# Type aliases for cleaner dependency injection
StorageDep = Annotated[TenantStore, Depends(get_storage)]
SettingsDep = Annotated[Settings, Depends(lambda: settings)]
SupervisorDep = Annotated[ConnectionSupervisor, Depends(get_supervisor)]
OAuthDep = Annotated[SlackOAuthExchange, Depends(get_oauth_exchange)]
