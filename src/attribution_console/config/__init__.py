"""Configuration package exports."""

from __future__ import annotations

from .settings import (
    ENVIRONMENT_DEFAULTS,
    ApiSettings,
    AppSettings,
    Environment,
    LoggingSettings,
    NotificationSettings,
    ObservabilitySettings,
    SessionSettings,
    get_settings,
    load_settings,
)

__all__ = [
    "ENVIRONMENT_DEFAULTS",
    "ApiSettings",
    "AppSettings",
    "Environment",
    "LoggingSettings",
    "NotificationSettings",
    "ObservabilitySettings",
    "SessionSettings",
    "get_settings",
    "load_settings",
]
