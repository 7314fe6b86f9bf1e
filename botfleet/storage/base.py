"""Abstract base class for tenant storage backends."""

from abc import ABC, abstractmethod
from typing import Any

from botfleet.models import Tenant


class TenantStore(ABC):
    """Durable tenant records keyed by bot access token.

    Implementations raise ``PersistenceError`` for any backend failure.
    """

    @abstractmethod
    async def find_all(self, filter: dict[str, Any] | None = None) -> list[Tenant]:
        """List tenants matching an equality filter, oldest first.

        An empty or missing filter returns every tenant.
        """
        ...

    @abstractmethod
    async def upsert(self, tenant: Tenant) -> Tenant:
        """Create or replace the record for ``tenant.token``."""
        ...

    @abstractmethod
    async def get(self, token: str) -> Tenant | None:
        """Get a tenant by token."""
        ...

    @abstractmethod
    async def delete(self, token: str) -> bool:
        """Delete a tenant. Returns False if it did not exist."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if storage is healthy."""
        ...
