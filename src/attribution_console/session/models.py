"""Session data models.

The backend's user record is opaque beyond ``id`` (and ``tenant_id`` for
request scoping); unknown fields are preserved so the persisted session
round-trips whatever the backend returned.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class User(BaseModel):
    """Authenticated identity returned by the backend."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    id: int | str
    tenant_id: int | str | None = None
    email: str | None = None
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role_id: int | None = None
    team_id: int | None = None
    user_type: str | None = None
    phone: str | None = None
    timezone: str | None = None
    is_active: bool | None = None
    last_login_at: datetime | None = None

    @field_validator("id")
    @classmethod
    def _require_id(cls, value: int | str) -> int | str:
        if isinstance(value, str) and not value.strip():
            raise ValueError("user id must not be blank")
        return value

    @property
    def display_name(self) -> str:
        parts = [part for part in (self.first_name, self.last_name) if part]
        if parts:
            return " ".join(parts)
        return self.name or self.email or str(self.id)


class Session(BaseModel):
    """Current authenticated identity and credential.

    A token is never held without a user. A user without a token is valid for
    deployments whose login endpoint returns only the user record.
    """

    model_config = ConfigDict(frozen=True)

    user: User | None = None
    token: str | None = Field(default=None, repr=False)

    @model_validator(mode="after")
    def _reject_orphan_token(self) -> Session:
        if self.user is None and self.token is not None:
            raise ValueError("a session token requires a user")
        return self

    @classmethod
    def empty(cls) -> Session:
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def tenant_id(self) -> int | str | None:
        return self.user.tenant_id if self.user is not None else None

    def to_storage(self) -> dict[str, Any]:
        """Return the JSON-compatible payload persisted for this session."""
        payload: dict[str, Any] = {
            "user": self.user.model_dump(mode="json", exclude_none=True) if self.user else None
        }
        if self.token is not None:
            payload["token"] = self.token
        return payload

    @classmethod
    def from_storage(cls, payload: Any) -> Session:
        """Build a session from a persisted payload.

        Accepts both ``{"user": {...}, "token": "..."}`` and a bare user
        object. Raises ``ValueError`` (``ValidationError``) for anything else.
        """
        if not isinstance(payload, dict):
            raise ValueError("persisted session must be a JSON object")
        if "user" in payload:
            return cls.model_validate({"user": payload["user"], "token": payload.get("token")})
        return cls(user=User.model_validate(payload))


__all__ = ["Session", "User"]
