"""Core module - configuration and utilities."""

from botfleet.core.config import settings
from botfleet.core.exceptions import (
    AlreadyRunning,
    AppException,
    ConfigurationError,
    Conflict,
    InvalidRequest,
    PersistenceError,
    TransportError,
    UpstreamRejected,
)

__all__ = [
    "settings",
    "AppException",
    "AlreadyRunning",
    "ConfigurationError",
    "Conflict",
    "InvalidRequest",
    "PersistenceError",
    "TransportError",
    "UpstreamRejected",
]
