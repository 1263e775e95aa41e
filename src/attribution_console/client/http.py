"""HTTP clients that route every backend call through the request pipeline.

Key Responsibilities:
    - Construct synchronous and asynchronous ``httpx`` clients bound to the
      backend's versioned API root
    - Decorate each request with session credentials and hand every failure
      to :meth:`RequestPipeline.handle_response_error`
    - Emit OpenTelemetry spans so backend calls remain observable

Collaborators:
    - Upstream: :class:`~attribution_console.session.auth.AuthService`,
      :class:`~attribution_console.notifications.api.AlertsApi`
    - Downstream: ``httpx`` and :class:`~attribution_console.client.pipeline.RequestPipeline`

Side Effects:
    - Opens network connections via ``httpx``

Performance Characteristics:
    - Connection pooling is delegated to ``httpx``; no retries are performed
      (see :mod:`attribution_console.client.retry` for opt-in caller retries)

Example:
    >>> client = ApiClient(pipeline, base_url="http://localhost:8080/v1")
    >>> alerts = client.get_json("/realtime/alerts")
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

import httpx
from opentelemetry import trace

from attribution_console.config.settings import ApiSettings

from .errors import RequestSetupError, ResponseDecodeError
from .pipeline import RequestPipeline

DEFAULT_HEADERS = {"Content-Type": "application/json"}


def _decode_json(response: httpx.Response) -> Any:
    """Decode a successful response body; an empty body decodes to ``{}``."""
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError as exc:
        raise ResponseDecodeError(
            "Response body is not valid JSON",
            status=response.status_code,
            details={"body": response.text[:500]},
            instance=str(response.request.url),
        ) from exc


class ApiClient:
    """Synchronous backend client."""

    def __init__(
        self,
        pipeline: RequestPipeline,
        *,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create a backend client.

        Args:
            pipeline: Pipeline applied to every request and failure.
            base_url: API root, including the version prefix.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport override used in tests.
        """
        self._pipeline = pipeline
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers=DEFAULT_HEADERS,
            transport=transport,
        )
        self._tracer = trace.get_tracer(__name__)

    @classmethod
    def from_settings(
        cls,
        pipeline: RequestPipeline,
        settings: ApiSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> ApiClient:
        return cls(
            pipeline,
            base_url=settings.root_url,
            timeout=settings.timeout_seconds,
            transport=transport,
        )

    @property
    def pipeline(self) -> RequestPipeline:
        return self._pipeline

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Issue a request through the pipeline.

        Args:
            method: HTTP method (GET, POST, etc.).
            path: Path relative to the API root.
            **kwargs: Arguments forwarded to ``httpx.Client.build_request``.

        Returns:
            The successful (non-error status) response.

        Raises:
            ConsoleError: Typed failure produced by the pipeline.
        """
        try:
            request = self._client.build_request(method, path, **kwargs)
        except httpx.InvalidURL as exc:
            self._pipeline.handle_response_error(
                RequestSetupError(str(exc), details={"cause": exc.__class__.__name__})
            )
        decorated = self._pipeline.decorate(request)
        with self._tracer.start_as_current_span("http.request") as span:
            span.set_attribute("http.method", method)
            span.set_attribute("http.url", str(decorated.url))
            try:
                response = self._client.send(decorated)
            except httpx.TransportError as exc:
                self._pipeline.handle_response_error(exc)
            span.set_attribute("http.status_code", response.status_code)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._pipeline.handle_response_error(exc)
        return response

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", path, **kwargs)

    def get_json(self, path: str, **kwargs: Any) -> Any:
        return _decode_json(self.get(path, **kwargs))

    def post_json(self, path: str, **kwargs: Any) -> Any:
        return _decode_json(self.post(path, **kwargs))

    def close(self) -> None:
        """Release HTTP resources."""
        self._client.close()

    @contextmanager
    def lifespan(self) -> Iterator[ApiClient]:
        """Provide a context manager that automatically closes the client."""
        try:
            yield self
        finally:
            self.close()


class AsyncApiClient:
    """Async backend client sharing the same pipeline semantics."""

    def __init__(
        self,
        pipeline: RequestPipeline,
        *,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=DEFAULT_HEADERS,
            transport=transport,
        )
        self._tracer = trace.get_tracer(__name__)

    @classmethod
    def from_settings(
        cls,
        pipeline: RequestPipeline,
        settings: ApiSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> AsyncApiClient:
        return cls(
            pipeline,
            base_url=settings.root_url,
            timeout=settings.timeout_seconds,
            transport=transport,
        )

    @property
    def pipeline(self) -> RequestPipeline:
        return self._pipeline

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Issue an asynchronous request through the pipeline."""
        try:
            request = self._client.build_request(method, path, **kwargs)
        except httpx.InvalidURL as exc:
            self._pipeline.handle_response_error(
                RequestSetupError(str(exc), details={"cause": exc.__class__.__name__})
            )
        decorated = self._pipeline.decorate(request)
        with self._tracer.start_as_current_span("http.request") as span:
            span.set_attribute("http.method", method)
            span.set_attribute("http.url", str(decorated.url))
            try:
                response = await self._client.send(decorated)
            except httpx.TransportError as exc:
                self._pipeline.handle_response_error(exc)
            span.set_attribute("http.status_code", response.status_code)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._pipeline.handle_response_error(exc)
        return response

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    async def get_json(self, path: str, **kwargs: Any) -> Any:
        return _decode_json(await self.get(path, **kwargs))

    async def post_json(self, path: str, **kwargs: Any) -> Any:
        return _decode_json(await self.post(path, **kwargs))

    async def aclose(self) -> None:
        """Close the underlying ``httpx.AsyncClient``."""
        await self._client.aclose()

    @asynccontextmanager
    async def lifespan(self) -> AsyncIterator[AsyncApiClient]:
        """Provide an async context manager that closes the client."""
        try:
            yield self
        finally:
            await self.aclose()


__all__ = ["ApiClient", "AsyncApiClient", "DEFAULT_HEADERS"]
