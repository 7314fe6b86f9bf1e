"""Firestore tenant store for production."""

import os
from datetime import datetime, timezone
from typing import Any

import structlog
from google.api_core.exceptions import GoogleAPIError
from pydantic import ValidationError

from botfleet.core.exceptions import PersistenceError
from botfleet.models import Tenant
from botfleet.storage.base import TenantStore

logger = structlog.get_logger()


def _as_naive_utc(value: datetime) -> datetime:
    """Native Firestore timestamps are tz-aware; stored ISO strings are naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return _as_naive_utc(value)
    if isinstance(value, str):
        try:
            return _as_naive_utc(datetime.fromisoformat(value))
        except ValueError:
            logger.warning("Ignoring unparseable created_at", value=value)
    return None


class FirestoreTenantStore(TenantStore):
    """Firestore tenant store.

    Collection structure:
    - {collection}/{bot token}
    """

    def __init__(self, project_id: str | None = None, collection: str = "bots") -> None:
        self._project_id = project_id
        self._collection_name = collection
        self._db = None
        self._initialized = False

    async def _ensure_initialized(self) -> None:
        """Lazy initialization of Firestore client."""
        if self._initialized:
            return

        try:
            from google.cloud import firestore

            # Check if using emulator
            if os.environ.get("FIRESTORE_EMULATOR_HOST"):
                logger.info("Using Firestore emulator")

            self._db = firestore.AsyncClient(project=self._project_id)
            self._initialized = True
            logger.info("Firestore client initialized", project=self._project_id)
        except Exception as e:
            logger.error("Failed to initialize Firestore", error=str(e))
            raise PersistenceError(f"Failed to initialize Firestore: {e}", operation="init") from e

    def _collection(self):
        return self._db.collection(self._collection_name)

    async def find_all(self, filter: dict[str, Any] | None = None) -> list[Tenant]:
        await self._ensure_initialized()
        query = self._collection()
        for field, value in (filter or {}).items():
            query = query.where(field, "==", value)

        try:
            docs = await query.get()
        except GoogleAPIError as e:
            raise PersistenceError(f"Failed to load tenants: {e}", operation="find_all") from e

        tenants = []
        for doc in docs:
            try:
                tenants.append(Tenant.model_validate(doc.to_dict()))
            except ValidationError as e:
                # One unreadable record must not keep the rest of the fleet down
                logger.warning(
                    "Skipping malformed tenant document",
                    document_id=doc.id,
                    errors=e.error_count(),
                )
        # Ordered client-side; a server-side order_by would need a composite index per filter
        tenants.sort(key=lambda t: _as_naive_utc(t.created_at))
        return tenants

    async def upsert(self, tenant: Tenant) -> Tenant:
        await self._ensure_initialized()
        tenant.updated_at = datetime.utcnow()
        ref = self._collection().document(tenant.token)
        try:
            existing = await ref.get()
            if existing.exists:
                created_at = _parse_timestamp((existing.to_dict() or {}).get("created_at"))
                if created_at is not None:
                    tenant.created_at = created_at
            await ref.set(tenant.to_document())
        except GoogleAPIError as e:
            raise PersistenceError(f"Failed to persist tenant: {e}", operation="upsert") from e
        logger.info("Tenant persisted", token=tenant.token_preview, team_id=tenant.team_id)
        return tenant

    async def get(self, token: str) -> Tenant | None:
        await self._ensure_initialized()
        try:
            doc = await self._collection().document(token).get()
        except GoogleAPIError as e:
            raise PersistenceError(f"Failed to load tenant: {e}", operation="get") from e
        if not doc.exists:
            return None
        try:
            return Tenant.model_validate(doc.to_dict())
        except ValidationError as e:
            raise PersistenceError(f"Malformed tenant document: {doc.id}", operation="get") from e

    async def delete(self, token: str) -> bool:
        await self._ensure_initialized()
        try:
            ref = self._collection().document(token)
            doc = await ref.get()
            if not doc.exists:
                return False
            await ref.delete()
        except GoogleAPIError as e:
            raise PersistenceError(f"Failed to delete tenant: {e}", operation="delete") from e
        return True

    async def health_check(self) -> bool:
        try:
            await self._ensure_initialized()
            # Simple health check - try to access a collection
            await self._db.collection("_health").document("check").get()
            return True
        except Exception as e:
            logger.error("Firestore health check failed", error=str(e))
            return False
