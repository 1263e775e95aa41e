"""Error classification for backend communication.

Maps HTTP statuses and transport failures onto the typed error taxonomy in
:mod:`attribution_console.client.errors`. Side effects (session teardown,
navigation, logging) belong to :class:`~attribution_console.client.pipeline.RequestPipeline`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any

import httpx

from .errors import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ConsoleError,
    NetworkError,
    RateLimitedError,
    RequestSetupError,
    ServerError,
)


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""

    NETWORK = "network"
    REQUEST = "request"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    CONFLICT = "conflict"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    CLIENT = "client"


@dataclass(frozen=True)
class Classification:
    """Handling information for one failure class."""

    category: ErrorCategory
    severity: ErrorSeverity
    exception_type: type[ConsoleError]
    ends_session: bool = False


class ErrorClassification:
    """Classifies backend failures and determines appropriate handling."""

    STATUS_CLASSIFICATIONS: dict[int, Classification] = {
        401: Classification(
            ErrorCategory.AUTHENTICATION,
            ErrorSeverity.CRITICAL,
            AuthenticationError,
            ends_session=True,
        ),
        403: Classification(ErrorCategory.AUTHORIZATION, ErrorSeverity.MEDIUM, AuthorizationError),
        409: Classification(ErrorCategory.CONFLICT, ErrorSeverity.LOW, ConflictError),
        429: Classification(ErrorCategory.RATE_LIMIT, ErrorSeverity.MEDIUM, RateLimitedError),
    }
    SERVER = Classification(ErrorCategory.SERVER, ErrorSeverity.HIGH, ServerError)
    CLIENT = Classification(ErrorCategory.CLIENT, ErrorSeverity.MEDIUM, ApiError)
    NETWORK = Classification(ErrorCategory.NETWORK, ErrorSeverity.HIGH, NetworkError)
    REQUEST = Classification(ErrorCategory.REQUEST, ErrorSeverity.MEDIUM, RequestSetupError)

    @classmethod
    def classify(cls, status: int) -> Classification:
        """Return the classification for an HTTP error status."""
        if status in cls.STATUS_CLASSIFICATIONS:
            return cls.STATUS_CLASSIFICATIONS[status]
        if status >= 500:
            return cls.SERVER
        return cls.CLIENT

    @classmethod
    def classify_exception(cls, error: BaseException) -> Classification:
        """Return the classification for an ``httpx`` failure."""
        if isinstance(error, httpx.HTTPStatusError):
            return cls.classify(error.response.status_code)
        if isinstance(error, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
            return cls.REQUEST
        if isinstance(error, httpx.TransportError):
            return cls.NETWORK
        return cls.REQUEST


def compute_retry_after(response: httpx.Response) -> float:
    """Parse a Retry-After header and return the wait duration in seconds."""
    header = response.headers.get("Retry-After")
    if not header:
        return 0.0
    try:
        return max(float(header), 0.0)
    except ValueError:
        try:
            retry_at = parsedate_to_datetime(header)
        except (TypeError, ValueError):
            return 0.0
        if retry_at.tzinfo is None:
            retry_at = retry_at.replace(tzinfo=UTC)
        delta = (retry_at - datetime.now(UTC)).total_seconds()
        return max(delta, 0.0)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text[:2000]


def _request_url(error: httpx.HTTPError) -> str | None:
    try:
        return str(error.request.url)
    except RuntimeError:
        return None


def translate(error: httpx.HTTPError) -> ConsoleError:
    """Translate an ``httpx`` failure into a typed console error."""
    classification = ErrorClassification.classify_exception(error)
    instance = _request_url(error)

    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        body = _decode_body(response)
        message = None
        if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
            message = body["error"]
        message = message or f"Request failed with status code {response.status_code}"
        kwargs: dict[str, Any] = {
            "status": response.status_code,
            "details": {"body": body},
            "instance": instance,
        }
        if classification.exception_type is RateLimitedError:
            kwargs["retry_after"] = compute_retry_after(response)
        return classification.exception_type(message, **kwargs)

    message = str(error) or error.__class__.__name__
    return classification.exception_type(
        message,
        details={"cause": error.__class__.__name__},
        instance=instance,
    )


__all__ = [
    "Classification",
    "ErrorCategory",
    "ErrorClassification",
    "ErrorSeverity",
    "compute_retry_after",
    "translate",
]
