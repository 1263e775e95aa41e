"""Notification data models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    """Closed set of notification severities."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def parse(cls, value: object) -> Severity:
        """Parse a backend severity, rejecting unknown values.

        The alerts backend reports ``critical`` for what the console shows as
        an error; that alias is the only non-canonical value accepted.
        """
        if isinstance(value, Severity):
            return value
        if not isinstance(value, str):
            raise ValueError(f"severity must be a string, got {type(value).__name__}")
        normalised = value.strip().lower()
        normalised = SEVERITY_ALIASES.get(normalised, normalised)
        try:
            return cls(normalised)
        except ValueError as exc:
            allowed = ", ".join(member.value for member in cls)
            raise ValueError(f"unknown severity {value!r}; expected one of {allowed}") from exc


SEVERITY_ALIASES: dict[str, str] = {"critical": Severity.ERROR.value}

# Value keys of the nullable column wrappers the alerts backend serialises,
# e.g. {"String": "...", "Valid": true} or {"Time": "...", "Valid": false}.
_NULLABLE_VALUE_KEYS = ("String", "Int64", "Int32", "Float64", "Bool", "Time")


def unwrap_nullable(value: object) -> object:
    """Return the plain value of a nullable column wrapper.

    A wrapper with ``Valid`` false becomes ``None``; anything that is not a
    wrapper is returned unchanged.
    """
    if not isinstance(value, dict) or "Valid" not in value:
        return value
    if not value["Valid"]:
        return None
    for key in _NULLABLE_VALUE_KEYS:
        if key in value:
            return value[key]
    return value


class Notification(BaseModel):
    """A discrete alert shown to the user with read/unread status."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: int | str
    severity: Severity
    title: str
    description: str = ""
    triggered_at: datetime = Field(validation_alias=AliasChoices("triggered_at", "triggeredAt"))
    acknowledged: bool = False
    alert_type: str | None = None
    entity_type: str | None = None
    entity_id: int | None = None
    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None
    resolved: bool = False
    resolved_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: object) -> Severity:
        return Severity.parse(value)

    @field_validator(
        "entity_type", "entity_id", "acknowledged_by", "acknowledged_at", "resolved_at", mode="before"
    )
    @classmethod
    def _unwrap_nullable(cls, value: object) -> object:
        return unwrap_nullable(value)

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, value: object) -> object:
        value = unwrap_nullable(value)
        return "" if value is None else value

    @field_validator("metadata", mode="before")
    @classmethod
    def _default_metadata(cls, value: object) -> object:
        return {} if value is None else value

    def acknowledge(self, *, by: str | None = None, at: datetime | None = None) -> Notification:
        """Return an acknowledged copy of this notification."""
        update: dict[str, Any] = {"acknowledged": True}
        if by is not None:
            update["acknowledged_by"] = by
        if at is not None:
            update["acknowledged_at"] = at
        return self.model_copy(update=update)


__all__ = ["Notification", "SEVERITY_ALIASES", "Severity", "unwrap_nullable"]
