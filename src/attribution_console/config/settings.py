"""Configuration system for the attribution console client."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environments supported by the console."""

    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    level: str = Field(default="INFO", description="Log level for application output")
    scrub_fields: Sequence[str] = Field(
        default_factory=lambda: ["password", "token", "secret", "authorization"],
        description="Fields that should be redacted in logs",
    )


class ObservabilitySettings(BaseModel):
    """Aggregate observability configuration."""

    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class ApiSettings(BaseModel):
    """Connection settings for the attribution backend."""

    base_url: str = Field(default="http://localhost:8080", description="Backend origin")
    prefix: str = Field(default="/v1", description="Path prefix applied to every API call")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Per-request timeout")
    tenant_header: str = Field(default="X-Tenant-ID", description="Header carrying the tenant")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("prefix")
    @classmethod
    def _normalise_prefix(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = f"/{value}"
        return value

    @property
    def root_url(self) -> str:
        """Return the base URL including the API prefix."""
        return f"{self.base_url}{self.prefix}"


class SessionSettings(BaseModel):
    """Durable session storage and login routing."""

    storage_path: Path = Field(
        default_factory=lambda: Path.home() / ".attribution_console" / "session.json",
        description="JSON document holding persisted session values",
    )
    storage_key: str = Field(default="convin_user", description="Key the session is stored under")
    login_path: str = Field(default="/login", description="Entry point used for forced redirects")


class NotificationSettings(BaseModel):
    """Notification center refresh behaviour."""

    poll_interval_seconds: float = Field(default=5.0, gt=0)
    refresh_policy: Literal["replace", "preserve"] = "preserve"
    alert_limit: int = Field(default=50, ge=1, description="Maximum alerts requested per poll")


class AppSettings(BaseSettings):
    """Top-level application settings."""

    environment: Environment = Environment.DEV
    debug: bool = False
    service_name: str = "attribution-console"
    api: ApiSettings = Field(default_factory=ApiSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(env_prefix="AC_", env_nested_delimiter="__")


ENVIRONMENT_DEFAULTS: Mapping[Environment, dict[str, Any]] = {
    Environment.DEV: {
        "debug": True,
        "observability": {"logging": {"level": "DEBUG"}},
    },
    Environment.STAGING: {
        "notifications": {"poll_interval_seconds": 10.0},
    },
    Environment.PROD: {
        "observability": {"logging": {"level": "WARNING"}},
        "notifications": {"poll_interval_seconds": 15.0},
    },
}


def _deep_update(target: dict[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in updates.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            target[key] = _deep_update(dict(current), value)
        else:
            target[key] = value
    return target


def load_settings(environment: str | None = None) -> AppSettings:
    """Load application settings with environment specific defaults applied.

    Environment defaults only fill in values; anything set explicitly through
    ``AC_`` variables wins over the preset.
    """
    env_value = (environment or os.getenv("AC_ENV", "dev")).lower()
    try:
        env = Environment(env_value)
    except ValueError as err:
        raise RuntimeError(f"Unknown environment: {env_value}") from err
    try:
        base_settings = AppSettings()
    except ValidationError as err:
        raise RuntimeError(f"Invalid configuration: {err}") from err
    explicit = base_settings.model_dump(exclude_unset=True)
    merged = _deep_update(base_settings.model_dump(), ENVIRONMENT_DEFAULTS.get(env, {}))
    merged = _deep_update(merged, explicit)
    merged["environment"] = env
    return AppSettings.model_validate(merged)


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Cached accessor used by production code."""
    return load_settings()


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
