"""Process-wide owner of the authenticated session.

Construct one :class:`SessionManager` at startup and hand it to every
collaborator that needs the session (request pipeline, auth service, UI
shell). Writers are ``establish``/``clear`` (called by login, signup, logout
and the response interceptor); the request pipeline only reads.
"""

from __future__ import annotations

import json
import threading

import structlog
from pydantic import ValidationError

from .models import Session, User
from .storage import SessionStore, StorageError

logger = structlog.get_logger(__name__)

DEFAULT_STORAGE_KEY = "convin_user"


class SessionManager:
    """Holds the current :class:`Session` and its durable copy."""

    def __init__(self, store: SessionStore, *, storage_key: str = DEFAULT_STORAGE_KEY) -> None:
        self._store = store
        self._storage_key = storage_key
        self._session = Session.empty()
        self._lock = threading.RLock()

    @property
    def current(self) -> Session:
        with self._lock:
            return self._session

    @property
    def user(self) -> User | None:
        return self.current.user

    @property
    def token(self) -> str | None:
        return self.current.token

    @property
    def tenant_id(self) -> int | str | None:
        return self.current.tenant_id

    @property
    def is_authenticated(self) -> bool:
        return self.current.is_authenticated

    def restore_session(self) -> Session:
        """Load the persisted session, discarding anything malformed.

        Returns:
            The session now current; empty when nothing usable was stored.
        """
        with self._lock:
            try:
                raw = self._store.read(self._storage_key)
            except (StorageError, OSError) as exc:
                logger.warning("session.restore_unavailable", error=str(exc))
                raw = None
            if raw is None:
                self._session = Session.empty()
                return self._session
            try:
                session = Session.from_storage(json.loads(raw))
            except (json.JSONDecodeError, ValidationError, ValueError, TypeError) as exc:
                logger.warning("session.restore_discarded", reason=exc.__class__.__name__)
                self._discard_persisted()
                self._session = Session.empty()
                return self._session
            self._session = session
            if session.is_authenticated:
                logger.info("session.restored", user_id=session.user.id, tenant_id=session.tenant_id)
            return self._session

    def establish(self, user: User, token: str | None = None) -> Session:
        """Persist and activate a freshly authenticated session."""
        session = Session(user=user, token=token)
        with self._lock:
            self._store.write(self._storage_key, json.dumps(session.to_storage()))
            self._session = session
        logger.info("session.established", user_id=user.id, tenant_id=user.tenant_id)
        return session

    def clear(self) -> None:
        """Drop the current and persisted session unconditionally.

        The in-memory session is emptied before storage is touched, so a
        storage failure still leaves the process logged out.
        """
        with self._lock:
            self._session = Session.empty()
            self._store.delete(self._storage_key)
        logger.info("session.cleared")

    def _discard_persisted(self) -> None:
        try:
            self._store.delete(self._storage_key)
        except (StorageError, OSError) as exc:
            logger.warning("session.discard_failed", error=str(exc))


__all__ = ["DEFAULT_STORAGE_KEY", "SessionManager"]
