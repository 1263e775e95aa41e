"""Custom exception classes for backend communication errors."""

from __future__ import annotations

from typing import Any

from attribution_console.utils.errors import FoundationError


class ConsoleError(FoundationError):
    """Base exception for failed backend interactions."""

    category = "unknown"

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        details: dict[str, Any] | None = None,
        instance: str | None = None,
    ) -> None:
        """Initialize console error.

        Args:
            message: Human readable error message.
            status: HTTP status when a response was received.
            details: Additional error details such as the decoded body.
            instance: Request URL the failure relates to.
        """
        super().__init__(
            message,
            status=status,
            type=f"urn:attribution-console:error:{self.category}",
            instance=instance,
            extra=details,
        )
        self.message = message
        self.status = status
        self.details = details or {}

    @property
    def backend_message(self) -> str | None:
        """Return the ``error`` string supplied by the backend, if any."""
        body = self.details.get("body")
        if isinstance(body, dict):
            value = body.get("error")
            if isinstance(value, str) and value:
                return value
        return None


class ApiError(ConsoleError):
    """Raised for client-side HTTP failures without a dedicated class."""

    category = "client"


class AuthenticationError(ApiError):
    """Raised when the backend rejects the credentials (401)."""

    category = "authentication"


class AuthorizationError(ApiError):
    """Raised when the caller lacks permission (403)."""

    category = "authorization"


class ConflictError(ApiError):
    """Raised when a resource already exists (409)."""

    category = "conflict"


class RateLimitedError(ApiError):
    """Raised when the backend throttles the caller (429)."""

    category = "rate_limit"

    def __init__(self, message: str, *, retry_after: float = 0.0, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = max(retry_after, 0.0)


class ServerError(ApiError):
    """Raised for backend faults (5xx)."""

    category = "server"


class NetworkError(ConsoleError):
    """Raised when no response was received."""

    category = "network"


class RequestSetupError(ConsoleError):
    """Raised when the request could not be built or dispatched."""

    category = "request"


class ResponseDecodeError(ConsoleError):
    """Raised when a successful response body is not valid JSON."""

    category = "decode"


def backend_message(error: BaseException) -> str | None:
    """Return the backend ``error`` field carried by ``error`` when present."""
    if isinstance(error, ConsoleError):
        return error.backend_message
    return None


__all__ = [
    "ApiError",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "ConsoleError",
    "NetworkError",
    "RateLimitedError",
    "RequestSetupError",
    "ResponseDecodeError",
    "ServerError",
    "backend_message",
]
