"""Client-side session, request pipeline and notification center for the
revenue-attribution analytics backend.

Key Responsibilities:
    - Own the authenticated session (user, tenant, bearer token) and its
      durable copy
    - Route every backend call through one request/response policy
    - Hold real-time alert notifications and their read/unread lifecycle

Example:
    >>> from attribution_console import create_console
    >>> console = create_console()
    >>> console.session.restore_session()
"""

from __future__ import annotations

from .config import AppSettings, get_settings, load_settings
from .session import AuthResult, AuthService, Session, SessionManager, User
from .client import ApiClient, AsyncApiClient, ConsoleError, RequestPipeline
from .notifications import Notification, NotificationCenter, RefreshPolicy, Severity
from .app import Console, create_console

__all__ = [
    "ApiClient",
    "AppSettings",
    "AsyncApiClient",
    "AuthResult",
    "AuthService",
    "Console",
    "ConsoleError",
    "Notification",
    "NotificationCenter",
    "RefreshPolicy",
    "RequestPipeline",
    "Session",
    "SessionManager",
    "Severity",
    "User",
    "create_console",
    "get_settings",
    "load_settings",
]
