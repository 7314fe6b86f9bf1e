"""Custom exceptions for the application."""

from typing import Any


class AppException(Exception):
    """Base exception for application errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ConfigurationError(AppException):
    """Raised when there's a configuration problem."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


class InvalidRequest(AppException):
    """Raised when the caller sent an unusable request (e.g. no auth code)."""

    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="INVALID_REQUEST", details=details)


class UpstreamRejected(AppException):
    """Raised when Slack or the NLU service refuses a call."""

    status_code = 502

    def __init__(self, message: str, service: str, error: str | None = None) -> None:
        details: dict[str, Any] = {"service": service}
        if error:
            details["error"] = error
        super().__init__(message, code="UPSTREAM_REJECTED", details=details)


class TransportError(AppException):
    """Raised when a network call fails before an answer is received."""

    status_code = 503

    def __init__(self, message: str, service: str) -> None:
        super().__init__(message, code="TRANSPORT_ERROR", details={"service": service})


class PersistenceError(AppException):
    """Raised when the tenant store fails."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(
            message,
            code="PERSISTENCE_ERROR",
            details={"operation": operation} if operation else {},
        )


class Conflict(AppException):
    """Raised when an operation would duplicate an active tenant."""

    status_code = 409

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="CONFLICT", details=details)


class AlreadyRunning(Conflict):
    """Raised when a connection for a token is already registered."""

    def __init__(self, token_preview: str) -> None:
        super().__init__(
            "Bot already running in this team",
            details={"token": token_preview},
        )
