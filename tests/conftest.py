from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest
import structlog

from attribution_console.client.http import ApiClient, AsyncApiClient
from attribution_console.client.pipeline import RequestPipeline
from attribution_console.config.settings import get_settings
from attribution_console.notifications.models import Notification
from attribution_console.session.manager import SessionManager
from attribution_console.session.navigation import RecordingNavigator
from attribution_console.session.storage import MemorySessionStore

BASE_URL = "http://testserver/v1"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch, tmp_path) -> Iterator[None]:
    monkeypatch.setenv("AC_SESSION__STORAGE_PATH", str(tmp_path / "session.json"))
    monkeypatch.delenv("AC_ENV", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def session_manager(store: MemorySessionStore) -> SessionManager:
    return SessionManager(store)


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def pipeline(session_manager: SessionManager, navigator: RecordingNavigator) -> RequestPipeline:
    return RequestPipeline(session_manager, navigator)


@pytest.fixture
def make_client(pipeline: RequestPipeline) -> Iterator[Callable[[Handler], ApiClient]]:
    clients: list[ApiClient] = []

    def factory(handler: Handler) -> ApiClient:
        client = ApiClient(pipeline, base_url=BASE_URL, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture
def make_async_client(pipeline: RequestPipeline) -> Callable[[Handler], AsyncApiClient]:
    def factory(handler: Handler) -> AsyncApiClient:
        return AsyncApiClient(pipeline, base_url=BASE_URL, transport=httpx.MockTransport(handler))

    return factory


def make_notification(
    notification_id: int | str,
    *,
    acknowledged: bool = False,
    severity: str = "info",
    **extra: Any,
) -> Notification:
    payload: dict[str, Any] = {
        "id": notification_id,
        "severity": severity,
        "title": f"Alert {notification_id}",
        "description": "",
        "triggered_at": datetime(2026, 1, 1, tzinfo=UTC),
        "acknowledged": acknowledged,
    }
    payload.update(extra)
    return Notification.model_validate(payload)


@pytest.fixture
def notification() -> Callable[..., Notification]:
    return make_notification
