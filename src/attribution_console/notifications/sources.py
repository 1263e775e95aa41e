"""Where notification batches come from."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from .api import AlertsApi
from .models import Notification, Severity


@runtime_checkable
class NotificationSource(Protocol):
    """Produces the next full batch of notifications."""

    async def fetch(self) -> list[Notification]: ...


class StaticNotificationSource:
    """Always returns the same seed batch."""

    def __init__(self, batch: Iterable[Notification | Mapping[str, Any]]) -> None:
        self._batch = tuple(
            item if isinstance(item, Notification) else Notification.model_validate(item)
            for item in batch
        )

    async def fetch(self) -> list[Notification]:
        return list(self._batch)


class ApiNotificationSource:
    """Fetches alerts from the backend with fixed filters."""

    def __init__(
        self,
        api: AlertsApi,
        *,
        severity: Severity | str | None = None,
        alert_type: str | None = None,
        unresolved: bool | None = None,
        limit: int | None = None,
    ) -> None:
        self._api = api
        self._filters: dict[str, Any] = {
            "severity": severity,
            "alert_type": alert_type,
            "unresolved": unresolved,
            "limit": limit,
        }

    async def fetch(self) -> list[Notification]:
        return await self._api.list_alerts(**self._filters)


__all__ = ["ApiNotificationSource", "NotificationSource", "StaticNotificationSource"]
