"""Tenant storage - Firestore and in-memory implementations."""

from botfleet.storage.base import TenantStore
from botfleet.storage.firestore import FirestoreTenantStore
from botfleet.storage.memory import InMemoryTenantStore

__all__ = ["TenantStore", "FirestoreTenantStore", "InMemoryTenantStore"]
