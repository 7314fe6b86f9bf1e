"""Data models for the application."""

from botfleet.models.connection import ConnectionState, FleetStatus
from botfleet.models.message import EventClass, InboundEvent, RoutedMessage
from botfleet.models.tenant import Tenant, trim_token

__all__ = [
    # Tenant
    "Tenant",
    "trim_token",
    # Connection
    "ConnectionState",
    "FleetStatus",
    # Message
    "EventClass",
    "InboundEvent",
    "RoutedMessage",
]
