"""Request/response pipeline shared by every backend call.

Key Responsibilities:
    - Attach tenant and bearer credentials from the current session to each
      outbound request
    - Translate transport and status failures into the typed error taxonomy,
      apply the session policy (401 ends the session and redirects to login)
      and re-raise so callers can still react locally

Collaborators:
    - Upstream: :class:`~attribution_console.client.http.ApiClient` and its
      async twin route every request and failure through this pipeline
    - Downstream: :class:`~attribution_console.session.manager.SessionManager`
      and a :class:`~attribution_console.session.navigation.Navigator`

Side Effects:
    - ``handle_response_error`` may clear the session and issue a navigation
    - Emits structured log events for every handled failure

Thread Safety:
    - ``decorate`` only reads the session; session writes are serialised by
      the session manager's lock
"""

from __future__ import annotations

from typing import NoReturn

import httpx
import structlog

from attribution_console.session.manager import SessionManager
from attribution_console.session.navigation import Navigator
from attribution_console.session.storage import StorageError

from .error_handler import (
    Classification,
    ErrorCategory,
    ErrorClassification,
    ErrorSeverity,
    translate,
)
from .errors import ConsoleError, NetworkError, RateLimitedError

logger = structlog.get_logger(__name__)

DEFAULT_TENANT_HEADER = "X-Tenant-ID"
DEFAULT_LOGIN_PATH = "/login"


class RequestPipeline:
    """Decorates outbound requests and centrally handles failed responses."""

    def __init__(
        self,
        session: SessionManager,
        navigator: Navigator,
        *,
        login_path: str = DEFAULT_LOGIN_PATH,
        tenant_header: str = DEFAULT_TENANT_HEADER,
    ) -> None:
        self._session = session
        self._navigator = navigator
        self._login_path = login_path
        self._tenant_header = tenant_header

    @property
    def session(self) -> SessionManager:
        return self._session

    def decorate(self, request: httpx.Request) -> httpx.Request:
        """Return a copy of ``request`` carrying the session credentials.

        The tenant header is added when the user has a tenant, the bearer
        header when a token is present. The input request is left untouched.
        """
        current = self._session.current
        headers = httpx.Headers(request.headers)
        if current.tenant_id is not None:
            headers[self._tenant_header] = str(current.tenant_id)
        if current.token:
            headers["Authorization"] = f"Bearer {current.token}"
        return httpx.Request(
            request.method,
            request.url,
            headers=headers,
            stream=request.stream,
            extensions=dict(request.extensions),
        )

    def handle_response_error(self, error: httpx.HTTPError | ConsoleError) -> NoReturn:
        """Apply the failure policy for ``error`` and re-raise it typed.

        A storage failure while ending the session is logged; the typed
        error is still raised and the login navigation still happens.

        Raises:
            ConsoleError: Always; the subclass reflects the failure category.
        """
        typed = error if isinstance(error, ConsoleError) else translate(error)
        classification = _classify(typed)
        fields: dict[str, object] = {
            "url": typed.problem.instance,
            "status": typed.status,
            "error": typed.message,
        }
        if isinstance(typed, RateLimitedError):
            fields["retry_after"] = typed.retry_after
        log = getattr(logger, _LOG_LEVELS[classification.severity])
        log(_EVENTS[classification.category], **fields)

        if classification.ends_session:
            self._end_session()

        if typed is error:
            raise typed
        raise typed from error

    def _end_session(self) -> None:
        try:
            self._session.clear()
        except (StorageError, OSError) as exc:
            logger.error("session.clear_failed", error=str(exc))
        finally:
            self._navigator.navigate(self._login_path)


_EVENTS: dict[ErrorCategory, str] = {
    ErrorCategory.AUTHENTICATION: "api.unauthorized",
    ErrorCategory.AUTHORIZATION: "api.forbidden",
    ErrorCategory.CONFLICT: "api.conflict",
    ErrorCategory.RATE_LIMIT: "api.rate_limited",
    ErrorCategory.SERVER: "api.server_error",
    ErrorCategory.NETWORK: "api.network_error",
    ErrorCategory.REQUEST: "api.request_error",
    ErrorCategory.CLIENT: "api.error",
}

_LOG_LEVELS: dict[ErrorSeverity, str] = {
    ErrorSeverity.LOW: "info",
    ErrorSeverity.MEDIUM: "warning",
    ErrorSeverity.HIGH: "error",
    ErrorSeverity.CRITICAL: "error",
}


def _classify(error: ConsoleError) -> Classification:
    if error.status is not None:
        return ErrorClassification.classify(error.status)
    if isinstance(error, NetworkError):
        return ErrorClassification.NETWORK
    return ErrorClassification.REQUEST


__all__ = ["DEFAULT_LOGIN_PATH", "DEFAULT_TENANT_HEADER", "RequestPipeline"]
