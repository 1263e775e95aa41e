"""Composition root wiring one session into every collaborator.

Example:
    >>> console = create_console()
    >>> console.session.restore_session()
    >>> result = console.auth.login("a@b.com", "secret")
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from .client.http import ApiClient, AsyncApiClient
from .client.pipeline import RequestPipeline
from .config.settings import AppSettings, get_settings
from .notifications.api import AlertsApi
from .notifications.center import NotificationCenter
from .notifications.poller import NotificationPoller
from .notifications.service import NotificationService
from .notifications.sources import ApiNotificationSource
from .session.auth import AuthService
from .session.manager import SessionManager
from .session.navigation import Navigator, RecordingNavigator
from .session.storage import FileSessionStore, SessionStore
from .utils.logging import configure_logging

logger = structlog.get_logger(__name__)


@dataclass
class Console:
    """Collaborators sharing a single :class:`SessionManager`."""

    settings: AppSettings
    session: SessionManager
    navigator: Navigator
    pipeline: RequestPipeline
    client: ApiClient
    async_client: AsyncApiClient
    auth: AuthService
    notifications: NotificationCenter
    alerts: AlertsApi
    notification_service: NotificationService
    poller: NotificationPoller

    async def aclose(self) -> None:
        """Stop polling and release HTTP resources."""
        await self.poller.stop()
        await self.async_client.aclose()
        self.client.close()


def create_console(
    settings: AppSettings | None = None,
    *,
    navigator: Navigator | None = None,
    store: SessionStore | None = None,
    transport: httpx.BaseTransport | None = None,
    async_transport: httpx.AsyncBaseTransport | None = None,
    configure_observability: bool = True,
) -> Console:
    """Build a fully wired :class:`Console`.

    The persisted session is not restored here; call
    ``console.session.restore_session()`` once at startup. Global logging is
    configured from ``settings.observability.logging`` unless
    ``configure_observability`` is false (embedding applications that own
    their logging setup).
    """
    settings = settings or get_settings()
    if configure_observability:
        configure_logging(settings=settings.observability.logging)
    navigator = navigator or RecordingNavigator()
    session = SessionManager(
        store or FileSessionStore(settings.session.storage_path),
        storage_key=settings.session.storage_key,
    )
    pipeline = RequestPipeline(
        session,
        navigator,
        login_path=settings.session.login_path,
        tenant_header=settings.api.tenant_header,
    )
    client = ApiClient.from_settings(pipeline, settings.api, transport=transport)
    async_client = AsyncApiClient.from_settings(pipeline, settings.api, transport=async_transport)
    center = NotificationCenter(policy=settings.notifications.refresh_policy)
    alerts = AlertsApi(async_client)
    poller = NotificationPoller(
        center,
        ApiNotificationSource(alerts, limit=settings.notifications.alert_limit),
        interval=settings.notifications.poll_interval_seconds,
    )
    logger.debug("console.created", api=settings.api.root_url, environment=settings.environment.value)
    return Console(
        settings=settings,
        session=session,
        navigator=navigator,
        pipeline=pipeline,
        client=client,
        async_client=async_client,
        auth=AuthService(session, client),
        notifications=center,
        alerts=alerts,
        notification_service=NotificationService(center, alerts),
        poller=poller,
    )


__all__ = ["Console", "create_console"]
