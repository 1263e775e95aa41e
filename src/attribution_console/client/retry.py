"""Opt-in retries for callers that choose to retry rate-limited calls.

The request pipeline never retries. Callers that want to ride out a 429 wrap
the call explicitly::

    alerts = retry_rate_limited(lambda: client.get_json("/realtime/alerts"))
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from .errors import RateLimitedError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RetryAfterWait(wait_base):
    """Tenacity wait strategy that honours the server's Retry-After value."""

    def __init__(self, fallback: wait_base, *, max_wait: float) -> None:
        self._fallback = fallback
        self._max_wait = max_wait

    def __call__(self, retry_state: RetryCallState) -> float:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exception, RateLimitedError) and exception.retry_after > 0:
            delay = min(exception.retry_after, self._max_wait)
        else:
            delay = min(self._fallback(retry_state), self._max_wait)
        logger.info("api.retry_scheduled", attempt=retry_state.attempt_number, delay=delay)
        return delay


def _strategy(attempts: int, max_wait: float, backoff_initial: float) -> dict[str, object]:
    return {
        "stop": stop_after_attempt(max(attempts, 1)),
        "wait": RetryAfterWait(
            wait_exponential(multiplier=max(backoff_initial, 0.0) or 0.1, max=max_wait),
            max_wait=max_wait,
        ),
        "retry": retry_if_exception_type(RateLimitedError),
        "reraise": True,
    }


def retry_rate_limited(
    func: Callable[[], T],
    *,
    attempts: int = 3,
    max_wait: float = 30.0,
    backoff_initial: float = 0.5,
) -> T:
    """Call ``func`` and retry it while the backend answers 429.

    Args:
        func: Zero-argument callable performing the request.
        attempts: Total attempts including the first call.
        max_wait: Upper bound for a single wait in seconds.
        backoff_initial: Exponential backoff multiplier used when the server
            does not send ``Retry-After``.

    Raises:
        RateLimitedError: When every attempt was throttled.
    """
    retrying = Retrying(**_strategy(attempts, max_wait, backoff_initial))
    return retrying(func)


async def retry_rate_limited_async(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    max_wait: float = 30.0,
    backoff_initial: float = 0.5,
) -> T:
    """Async twin of :func:`retry_rate_limited`."""
    async for attempt in AsyncRetrying(**_strategy(attempts, max_wait, backoff_initial)):
        with attempt:
            return await func()
    raise RuntimeError("unreachable")  # pragma: no cover - tenacity exhausts attempts


__all__ = ["RetryAfterWait", "retry_rate_limited", "retry_rate_limited_async"]
