"""Backend client: request pipeline, HTTP clients and the error taxonomy."""

from __future__ import annotations

from .errors import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ConsoleError,
    NetworkError,
    RateLimitedError,
    RequestSetupError,
    ResponseDecodeError,
    ServerError,
)
from .http import ApiClient, AsyncApiClient
from .pipeline import RequestPipeline
from .retry import retry_rate_limited, retry_rate_limited_async

__all__ = [
    "ApiClient",
    "ApiError",
    "AsyncApiClient",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "ConsoleError",
    "NetworkError",
    "RateLimitedError",
    "RequestPipeline",
    "RequestSetupError",
    "ResponseDecodeError",
    "ServerError",
    "retry_rate_limited",
    "retry_rate_limited_async",
]
