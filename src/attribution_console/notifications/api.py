"""Backend endpoints for real-time alerts."""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from attribution_console.client.errors import ResponseDecodeError
from attribution_console.client.http import AsyncApiClient

from .models import Notification, Severity

logger = structlog.get_logger(__name__)

ALERTS_PATH = "/realtime/alerts"


class AlertsApi:
    """Thin wrapper over the ``/realtime/alerts`` endpoints."""

    def __init__(self, client: AsyncApiClient) -> None:
        self._client = client

    async def list_alerts(
        self,
        *,
        severity: Severity | str | None = None,
        alert_type: str | None = None,
        acknowledged: bool | None = None,
        unresolved: bool | None = None,
        limit: int | None = None,
    ) -> list[Notification]:
        """Fetch alerts, newest first as ordered by the backend.

        ``severity`` is sent as given so backend-only values such as
        ``critical`` can be used as filters. Records that fail validation
        (for example an unknown severity) are logged and left out.
        """
        params: dict[str, Any] = {}
        if severity is not None:
            params["severity"] = severity.value if isinstance(severity, Severity) else severity
        if alert_type:
            params["type"] = alert_type
        if acknowledged:
            params["acknowledged"] = "true"
        if unresolved:
            params["unresolved"] = "true"
        if limit is not None:
            params["limit"] = limit
        body = await self._client.get_json(ALERTS_PATH, params=params)
        if not isinstance(body, dict):
            raise ResponseDecodeError(
                "Alerts response must be a JSON object", details={"body": body}
            )
        items = body.get("alerts") or []
        if not isinstance(items, list):
            raise ResponseDecodeError(
                "Alerts response field 'alerts' must be a list", details={"body": body}
            )
        notifications: list[Notification] = []
        for item in items:
            try:
                notifications.append(Notification.model_validate(item))
            except ValidationError as exc:
                logger.warning(
                    "alerts.rejected",
                    alert_id=item.get("id") if isinstance(item, dict) else None,
                    errors=exc.error_count(),
                )
        return notifications

    async def acknowledge_alert(self, alert_id: int | str, *, by: str | None = None) -> None:
        payload = {"by": by} if by else {}
        await self._client.post(f"{ALERTS_PATH}/{alert_id}/acknowledge", json=payload)
        logger.info("alerts.acknowledged", alert_id=alert_id)

    async def create_alert(
        self,
        *,
        alert_type: str,
        severity: Severity | str,
        title: str,
        description: str | None = None,
        entity_type: str | None = None,
        entity_id: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Notification:
        """Create an alert (administrative and testing use)."""
        for name, value in (("alert_type", alert_type), ("severity", severity), ("title", title)):
            if not value:
                raise ValueError(f"{name} is required")
        payload: dict[str, Any] = {
            "alert_type": alert_type,
            "severity": severity.value if isinstance(severity, Severity) else severity,
            "title": title,
        }
        optional = {
            "description": description,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "metadata": metadata,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        body = await self._client.post_json(ALERTS_PATH, json=payload)
        return Notification.model_validate(body)


__all__ = ["ALERTS_PATH", "AlertsApi"]
