"""Live connection state and fleet status models."""

from enum import Enum

from pydantic import BaseModel


class ConnectionState(str, Enum):
    """Lifecycle of a tenant's streaming connection."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"  # Upstream ended the stream
    RECONNECTING = "reconnecting"
    TERMINATED = "terminated"  # Final; never restarted


class FleetStatus(BaseModel):
    """Read-only snapshot of the fleet."""

    bots_count: int = 0
    sessions: int = 0
