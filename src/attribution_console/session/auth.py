"""Login, signup and logout flows.

Expected failures (bad credentials, duplicate accounts, transport errors) are
returned as :class:`AuthResult` values carrying a user-facing message so the
caller can render it inline; only unexpected exceptions propagate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from attribution_console.client.errors import ConflictError, ConsoleError

from .manager import SessionManager
from .models import User

if TYPE_CHECKING:
    from attribution_console.client.http import ApiClient

logger = structlog.get_logger(__name__)

MSG_LOGIN_FAILED = "Login failed"
MSG_SIGNUP_FAILED = "Signup failed. Please try again."
MSG_ACCOUNT_EXISTS = "An account with this email already exists. Please sign in instead."
MSG_INVALID_RESPONSE = "Invalid response from server"
MSG_ACCOUNT_NOT_CREATED = "Failed to create user account"
MSG_MISSING_FIELDS = "Please fill in all fields"

DEFAULT_USER_TYPE = "product_user"
_TOKEN_KEYS = ("token", "access_token")


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a login or signup attempt."""

    success: bool
    error: str | None = None
    user: User | None = None

    @classmethod
    def ok(cls, user: User) -> AuthResult:
        return cls(success=True, user=user)

    @classmethod
    def failed(cls, message: str) -> AuthResult:
        return cls(success=False, error=message)


def failure_message(error: ConsoleError, fallback: str) -> str:
    """Backend ``error`` field, then the transport message, then ``fallback``."""
    return error.backend_message or error.message or fallback


def _blank(*values: str | None) -> bool:
    return any(value is None or not value.strip() for value in values)


class AuthService:
    """Authenticates against the backend and maintains the session."""

    def __init__(self, session: SessionManager, client: ApiClient) -> None:
        self._session = session
        self._client = client

    @property
    def session(self) -> SessionManager:
        return self._session

    def login(self, email: str, password: str) -> AuthResult:
        if _blank(email, password):
            return AuthResult.failed(MSG_MISSING_FIELDS)
        try:
            body = self._client.post_json(
                "/users/login", json={"email": email, "password": password}
            )
        except ConsoleError as exc:
            logger.info("auth.login_failed", category=exc.category, status=exc.status)
            return AuthResult.failed(failure_message(exc, MSG_LOGIN_FAILED))

        user_payload = _extract_user(body)
        if user_payload is None or not user_payload.get("id"):
            logger.warning("auth.login_invalid_response")
            return AuthResult.failed(MSG_INVALID_RESPONSE)
        try:
            user = User.model_validate(user_payload)
        except ValidationError:
            logger.warning("auth.login_invalid_response")
            return AuthResult.failed(MSG_INVALID_RESPONSE)

        self._session.establish(user, _extract_token(body))
        return AuthResult.ok(user)

    def signup(
        self,
        first_name: str,
        last_name: str | None,
        email: str,
        password: str,
    ) -> AuthResult:
        if _blank(first_name, email, password):
            return AuthResult.failed(MSG_MISSING_FIELDS)
        payload = {
            "email": email,
            "first_name": first_name,
            "last_name": last_name or None,
            "password": password,
            "user_type": DEFAULT_USER_TYPE,
        }
        try:
            body = self._client.post_json("/users", json=payload)
        except ConflictError:
            logger.info("auth.signup_conflict")
            return AuthResult.failed(MSG_ACCOUNT_EXISTS)
        except ConsoleError as exc:
            logger.info("auth.signup_failed", category=exc.category, status=exc.status)
            return AuthResult.failed(failure_message(exc, MSG_SIGNUP_FAILED))

        if not isinstance(body, dict) or not body.get("user"):
            return AuthResult.failed(MSG_ACCOUNT_NOT_CREATED)
        return self.login(email, password)

    def logout(self) -> None:
        """End the session locally; the backend token is not revoked."""
        self._session.clear()


def _extract_user(body: Any) -> dict[str, Any] | None:
    if not isinstance(body, dict):
        return None
    if "user" not in body:
        return {k: v for k, v in body.items() if k not in _TOKEN_KEYS}
    user = body["user"]
    return user if isinstance(user, dict) else None


def _extract_token(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    for key in _TOKEN_KEYS:
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


__all__ = [
    "AuthResult",
    "AuthService",
    "MSG_ACCOUNT_EXISTS",
    "MSG_INVALID_RESPONSE",
    "MSG_LOGIN_FAILED",
    "MSG_MISSING_FIELDS",
    "MSG_SIGNUP_FAILED",
    "failure_message",
]
