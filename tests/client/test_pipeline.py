import json

import httpx
import pytest
from structlog.testing import capture_logs

from attribution_console.client.error_handler import Classification, ErrorClassification
from attribution_console.client.errors import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NetworkError,
    RateLimitedError,
    RequestSetupError,
    ServerError,
)
from attribution_console.client.pipeline import RequestPipeline
from attribution_console.session.manager import SessionManager
from attribution_console.session.models import User
from attribution_console.session.storage import MemorySessionStore, StorageError

URL = "http://testserver/v1/realtime/alerts"


def _status_error(status: int, **kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", URL)
    response = httpx.Response(status, request=request, **kwargs)
    return httpx.HTTPStatusError("failed", request=request, response=response)


def test_decorate_without_session_adds_nothing(pipeline):
    request = httpx.Request("GET", URL, headers={"Accept": "application/json"})
    decorated = pipeline.decorate(request)
    assert "Authorization" not in decorated.headers
    assert "X-Tenant-ID" not in decorated.headers
    assert decorated.headers["Accept"] == "application/json"


def test_decorate_adds_exactly_tenant_and_bearer(pipeline, session_manager):
    session_manager.establish(User(id=7, tenant_id=3), "tok")
    request = httpx.Request("GET", URL)
    decorated = pipeline.decorate(request)
    added = set(decorated.headers.keys()) - set(request.headers.keys())
    assert added == {"x-tenant-id", "authorization"}
    assert decorated.headers["X-Tenant-ID"] == "3"
    assert decorated.headers["Authorization"] == "Bearer tok"
    assert "Authorization" not in request.headers


def test_decorate_is_idempotent(pipeline, session_manager):
    session_manager.establish(User(id=7, tenant_id=3), "tok")
    once = pipeline.decorate(httpx.Request("GET", URL))
    twice = pipeline.decorate(once)
    assert twice.headers.get_list("Authorization") == ["Bearer tok"]
    assert twice.headers.get_list("X-Tenant-ID") == ["3"]


def test_decorate_skips_missing_parts(pipeline, session_manager):
    session_manager.establish(User(id=7), None)
    decorated = pipeline.decorate(httpx.Request("GET", URL))
    assert "X-Tenant-ID" not in decorated.headers
    assert "Authorization" not in decorated.headers


def test_decorate_preserves_body(pipeline, session_manager):
    session_manager.establish(User(id=7, tenant_id=1), "tok")
    decorated = pipeline.decorate(httpx.Request("POST", URL, json={"title": "x"}))
    assert json.loads(decorated.read()) == {"title": "x"}


def test_custom_tenant_header(session_manager, navigator):
    session_manager.establish(User(id=7, tenant_id=9), "tok")
    pipeline = RequestPipeline(session_manager, navigator, tenant_header="X-Org")
    decorated = pipeline.decorate(httpx.Request("GET", URL))
    assert decorated.headers["X-Org"] == "9"


def test_unauthorized_clears_session_and_navigates_once(pipeline, session_manager, store, navigator):
    session_manager.establish(User(id=7, tenant_id=3), "tok")
    with pytest.raises(AuthenticationError) as excinfo:
        pipeline.handle_response_error(_status_error(401, json={"error": "expired"}))
    assert excinfo.value.status == 401
    assert excinfo.value.message == "expired"
    assert not session_manager.is_authenticated
    assert store.read("convin_user") is None
    assert navigator.history == ["/login"]


def test_unauthorized_without_session_still_redirects(pipeline, navigator):
    with pytest.raises(AuthenticationError):
        pipeline.handle_response_error(_status_error(401))
    assert navigator.history == ["/login"]


def test_unauthorized_uses_configured_login_path(session_manager, navigator):
    pipeline = RequestPipeline(session_manager, navigator, login_path="/signin")
    with pytest.raises(AuthenticationError):
        pipeline.handle_response_error(_status_error(401))
    assert navigator.last == "/signin"


def test_forbidden_keeps_session(pipeline, session_manager, navigator):
    session_manager.establish(User(id=7, tenant_id=3), "tok")
    with pytest.raises(AuthorizationError):
        pipeline.handle_response_error(_status_error(403))
    assert session_manager.token == "tok"
    assert navigator.history == []


def test_rate_limited_carries_retry_after(pipeline):
    with pytest.raises(RateLimitedError) as excinfo:
        pipeline.handle_response_error(_status_error(429, headers={"Retry-After": "7"}))
    assert excinfo.value.retry_after == 7.0


@pytest.mark.parametrize(
    ("status", "expected"),
    [(409, ConflictError), (500, ServerError), (503, ServerError), (404, ApiError), (422, ApiError)],
)
def test_status_maps_to_error_class(pipeline, session_manager, status, expected):
    session_manager.establish(User(id=1), "tok")
    with pytest.raises(expected) as excinfo:
        pipeline.handle_response_error(_status_error(status))
    assert excinfo.value.message == f"Request failed with status code {status}"
    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)
    assert session_manager.is_authenticated


def test_backend_error_body_is_kept(pipeline):
    with pytest.raises(ApiError) as excinfo:
        pipeline.handle_response_error(_status_error(400, json={"error": "bad filter"}))
    assert excinfo.value.backend_message == "bad filter"
    assert excinfo.value.details == {"body": {"error": "bad filter"}}


def test_transport_failure_becomes_network_error(pipeline, session_manager, navigator):
    session_manager.establish(User(id=1), "tok")
    request = httpx.Request("GET", URL)
    with pytest.raises(NetworkError):
        pipeline.handle_response_error(httpx.ConnectError("refused", request=request))
    assert session_manager.is_authenticated
    assert navigator.history == []


def test_typed_errors_pass_through(pipeline):
    error = RequestSetupError("bad url")
    with pytest.raises(RequestSetupError) as excinfo:
        pipeline.handle_response_error(error)
    assert excinfo.value is error


class _UndeletableStore(MemorySessionStore):
    def delete(self, key):
        raise StorageError("session file is read-only")


def test_unauthorized_is_raised_when_storage_cannot_be_cleared(navigator):
    session_manager = SessionManager(_UndeletableStore())
    session_manager.establish(User(id=7, tenant_id=3), "tok")
    pipeline = RequestPipeline(session_manager, navigator)
    with pytest.raises(AuthenticationError):
        pipeline.handle_response_error(_status_error(401))
    assert not session_manager.is_authenticated
    assert navigator.history == ["/login"]


def test_session_teardown_follows_classification(pipeline, session_manager, navigator, monkeypatch):
    original = ErrorClassification.STATUS_CLASSIFICATIONS[401]
    monkeypatch.setitem(
        ErrorClassification.STATUS_CLASSIFICATIONS,
        401,
        Classification(original.category, original.severity, original.exception_type),
    )
    session_manager.establish(User(id=7), "tok")
    with pytest.raises(AuthenticationError):
        pipeline.handle_response_error(_status_error(401))
    assert session_manager.is_authenticated
    assert navigator.history == []


@pytest.mark.parametrize(
    ("status", "event", "level"),
    [
        (401, "api.unauthorized", "error"),
        (403, "api.forbidden", "warning"),
        (409, "api.conflict", "info"),
        (429, "api.rate_limited", "warning"),
        (500, "api.server_error", "error"),
        (404, "api.error", "warning"),
    ],
)
def test_failures_are_logged_by_severity(pipeline, status, event, level):
    with capture_logs() as logs:
        with pytest.raises(ApiError):
            pipeline.handle_response_error(_status_error(status))
    entry = next(log for log in logs if log["event"] == event)
    assert entry["log_level"] == level
    assert entry["status"] == status
