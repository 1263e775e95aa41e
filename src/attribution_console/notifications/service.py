"""Couples the notification center with the backend alert endpoints."""

from __future__ import annotations

import structlog

from attribution_console.client.errors import ConsoleError

from .api import AlertsApi
from .center import NotificationCenter, NotificationId

logger = structlog.get_logger(__name__)


class NotificationService:
    """Applies user actions locally and mirrors acknowledgements upstream."""

    def __init__(self, center: NotificationCenter, api: AlertsApi) -> None:
        self._center = center
        self._api = api

    @property
    def center(self) -> NotificationCenter:
        return self._center

    async def acknowledge(self, notification_id: NotificationId, *, by: str | None = None) -> bool:
        """Acknowledge locally, then on the backend.

        The local change stands even when the backend call fails; the error
        is re-raised for the caller. Unknown or already read ids are not sent.
        """
        if not self._center.acknowledge(notification_id, by=by):
            return False
        try:
            await self._api.acknowledge_alert(notification_id, by=by)
        except ConsoleError:
            logger.warning("notifications.remote_acknowledge_failed", notification_id=notification_id)
            raise
        return True

    async def refresh(self, **filters: object) -> int:
        """Load the current alerts once; returns the unread count."""
        batch = await self._api.list_alerts(**filters)  # type: ignore[arg-type]
        return self._center.load(batch).unread_count


__all__ = ["NotificationService"]
