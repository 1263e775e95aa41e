"""Fixed-interval refresh of the notification center.

The poller fetches a full batch immediately on start and then every
``interval`` seconds, handing each batch to :meth:`NotificationCenter.load`.
Fetch failures are counted and logged but never stop the loop. Once
:meth:`NotificationPoller.stop` has been called no further batch is applied.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from types import TracebackType

import structlog
from pydantic import ValidationError

from attribution_console.client.errors import ConsoleError

from .center import NotificationCenter
from .sources import NotificationSource

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL = 5.0


class NotificationPoller:
    """Drives periodic ``load`` calls from a :class:`NotificationSource`."""

    def __init__(
        self,
        center: NotificationCenter,
        source: NotificationSource,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._center = center
        self._source = source
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._paused = False
        self._disposed = False
        self.consecutive_failures = 0
        self.last_error: BaseException | None = None
        self.last_refreshed_at: datetime | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def paused(self) -> bool:
        return self._paused

    async def start(self) -> None:
        """Start polling; a second call while running is a no-op."""
        if self.running:
            return
        self._disposed = False
        self._task = asyncio.create_task(self._run(), name="notification-poller")
        logger.info("notifications.poller_started", interval=self._interval)

    async def stop(self) -> None:
        """Cancel the polling task and wait for it to finish."""
        self._disposed = True
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
        logger.info("notifications.poller_stopped")

    def pause(self) -> None:
        """Keep the task alive but skip fetches until :meth:`resume`."""
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    async def refresh_now(self) -> bool:
        """Fetch and load one batch immediately.

        Any failure while fetching or loading is recorded and logged rather
        than raised, so the polling loop keeps running.

        Returns:
            ``True`` when a batch was applied.
        """
        if self._disposed:
            return False
        try:
            batch = await self._source.fetch()
            if self._disposed:
                return False
            self._center.load(batch)
        except (ConsoleError, ValidationError) as exc:
            self._record_failure(exc)
            logger.warning(
                "notifications.refresh_failed",
                error=str(exc),
                consecutive_failures=self.consecutive_failures,
            )
            return False
        except Exception as exc:
            self._record_failure(exc)
            logger.exception(
                "notifications.refresh_crashed",
                consecutive_failures=self.consecutive_failures,
            )
            return False
        self.consecutive_failures = 0
        self.last_error = None
        self.last_refreshed_at = datetime.now(UTC)
        return True

    def _record_failure(self, exc: Exception) -> None:
        self.consecutive_failures += 1
        self.last_error = exc

    async def _run(self) -> None:
        while True:
            if not self._paused:
                await self.refresh_now()
            await asyncio.sleep(self._interval)

    async def __aenter__(self) -> NotificationPoller:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()


__all__ = ["DEFAULT_POLL_INTERVAL", "NotificationPoller"]
