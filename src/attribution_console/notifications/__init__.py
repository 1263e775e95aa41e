"""Notification center: alert models, state machine, sources and polling."""

from __future__ import annotations

from .api import ALERTS_PATH, AlertsApi
from .center import NotificationCenter, NotificationSnapshot, RefreshPolicy
from .models import Notification, Severity
from .poller import NotificationPoller
from .service import NotificationService
from .sources import ApiNotificationSource, NotificationSource, StaticNotificationSource

__all__ = [
    "ALERTS_PATH",
    "AlertsApi",
    "ApiNotificationSource",
    "Notification",
    "NotificationCenter",
    "NotificationPoller",
    "NotificationService",
    "NotificationSnapshot",
    "NotificationSource",
    "RefreshPolicy",
    "Severity",
    "StaticNotificationSource",
]
