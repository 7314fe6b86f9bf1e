"""In-memory tenant store for development and testing."""

import asyncio
from datetime import datetime
from typing import Any

from botfleet.models import Tenant
from botfleet.storage.base import TenantStore


class InMemoryTenantStore(TenantStore):
    """In-memory tenant store. Contents are lost on restart."""

    def __init__(self) -> None:
        self._tenants: dict[str, Tenant] = {}
        self._lock = asyncio.Lock()

    async def find_all(self, filter: dict[str, Any] | None = None) -> list[Tenant]:
        tenants = list(self._tenants.values())
        if filter:
            tenants = [
                t for t in tenants
                if all(getattr(t, key, None) == value for key, value in filter.items())
            ]
        tenants.sort(key=lambda t: t.created_at)
        return [t.model_copy() for t in tenants]

    async def upsert(self, tenant: Tenant) -> Tenant:
        async with self._lock:
            stored = tenant.model_copy(update={"updated_at": datetime.utcnow()})
            existing = self._tenants.get(tenant.token)
            if existing is not None:
                stored.created_at = existing.created_at
            self._tenants[tenant.token] = stored
        return stored.model_copy()

    async def get(self, token: str) -> Tenant | None:
        tenant = self._tenants.get(token)
        return tenant.model_copy() if tenant else None

    async def delete(self, token: str) -> bool:
        async with self._lock:
            return self._tenants.pop(token, None) is not None

    async def health_check(self) -> bool:
        return True

    # ==================== Development Helpers ====================

    async def clear_all(self) -> None:
        """Clear all data (for testing)."""
        self._tenants.clear()
