"""Session ownership: identity, durable storage and authentication flows."""

from __future__ import annotations

from .manager import DEFAULT_STORAGE_KEY, SessionManager
from .models import Session, User
from .navigation import CallbackNavigator, Navigator, RecordingNavigator
from .storage import FileSessionStore, MemorySessionStore, SessionStore, StorageError
from .auth import AuthResult, AuthService

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "AuthResult",
    "AuthService",
    "CallbackNavigator",
    "FileSessionStore",
    "MemorySessionStore",
    "Navigator",
    "RecordingNavigator",
    "Session",
    "SessionManager",
    "SessionStore",
    "StorageError",
    "User",
]
