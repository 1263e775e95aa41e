"""Notification center state machine.

Key Responsibilities:
    - Hold the session's authoritative local copy of alert notifications in
      load order
    - Expose deterministic mutations (acknowledge, remove, mark-all, clear-all)
      that keep ``unread_count`` equal to the number of unacknowledged
      notifications after every single operation
    - Reconcile periodic refreshes with local user actions according to a
      :class:`RefreshPolicy`

Collaborators:
    - Upstream: :class:`~attribution_console.notifications.poller.NotificationPoller`
      feeds ``load``; UI shells call the mutations and subscribe to snapshots
    - Downstream: none; the center never performs I/O

Thread Safety:
    - Mutations are serialised by a re-entrant lock. Listeners run after the
      lock is released.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import structlog

from .models import Notification, Severity

logger = structlog.get_logger(__name__)

NotificationId = int | str


class RefreshPolicy(str, Enum):
    """How ``load`` treats local user actions on the previous set.

    ``REPLACE`` installs the incoming batch as-is. ``PRESERVE`` keeps local
    acknowledgements and removals until the upstream batch agrees with them
    or stops reporting the notification.
    """

    REPLACE = "replace"
    PRESERVE = "preserve"


@dataclass(frozen=True)
class NotificationSnapshot:
    """Immutable view of the center handed to listeners."""

    notifications: tuple[Notification, ...]
    unread_count: int
    generation: int


Listener = Callable[[NotificationSnapshot], None]


class NotificationCenter:
    """Owns the notification set and its unread counter."""

    def __init__(self, *, policy: RefreshPolicy | str = RefreshPolicy.PRESERVE) -> None:
        self._policy = RefreshPolicy(policy)
        self._notifications: list[Notification] = []
        self._unread_count = 0
        self._generation = 0
        self._local_acks: set[NotificationId] = set()
        self._local_removals: set[NotificationId] = set()
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    @property
    def policy(self) -> RefreshPolicy:
        return self._policy

    @property
    def notifications(self) -> tuple[Notification, ...]:
        with self._lock:
            return tuple(self._notifications)

    @property
    def unread_count(self) -> int:
        with self._lock:
            return self._unread_count

    @property
    def generation(self) -> int:
        """Number of batches loaded so far."""
        with self._lock:
            return self._generation

    def __len__(self) -> int:
        with self._lock:
            return len(self._notifications)

    def get(self, notification_id: NotificationId) -> Notification | None:
        with self._lock:
            index = self._index_of(notification_id)
            return None if index is None else self._notifications[index]

    def unread(self) -> tuple[Notification, ...]:
        with self._lock:
            return tuple(n for n in self._notifications if not n.acknowledged)

    def by_severity(self, severity: Severity | str) -> tuple[Notification, ...]:
        wanted = Severity.parse(severity)
        with self._lock:
            return tuple(n for n in self._notifications if n.severity is wanted)

    def snapshot(self) -> NotificationSnapshot:
        with self._lock:
            return self._snapshot()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def load(self, batch: Iterable[Notification | Mapping[str, Any]]) -> NotificationSnapshot:
        """Replace the set with ``batch`` and recompute the unread counter.

        Mappings are validated into :class:`Notification`. Within a batch the
        first occurrence of an id wins.
        """
        incoming = _dedupe(
            item if isinstance(item, Notification) else Notification.model_validate(item)
            for item in batch
        )
        with self._lock:
            if self._policy is RefreshPolicy.PRESERVE:
                incoming = self._reconcile(incoming)
            self._notifications = incoming
            self._unread_count = sum(1 for n in incoming if not n.acknowledged)
            self._generation += 1
            snapshot = self._snapshot()
        logger.debug(
            "notifications.loaded",
            count=len(snapshot.notifications),
            unread=snapshot.unread_count,
            generation=snapshot.generation,
        )
        self._publish(snapshot)
        return snapshot

    def acknowledge(self, notification_id: NotificationId, *, by: str | None = None) -> bool:
        """Mark one notification read.

        Returns:
            ``True`` when the notification existed and was unread; ``False``
            for an unknown or already acknowledged id (no-op).
        """
        with self._lock:
            index = self._index_of(notification_id)
            if index is None or self._notifications[index].acknowledged:
                return False
            current = self._notifications[index]
            self._notifications[index] = current.acknowledge(by=by, at=datetime.now(UTC))
            self._unread_count = max(self._unread_count - 1, 0)
            if self._policy is RefreshPolicy.PRESERVE:
                self._local_acks.add(current.id)
            snapshot = self._snapshot()
        self._publish(snapshot)
        return True

    def remove(self, notification_id: NotificationId) -> bool:
        """Delete one notification; unknown ids are a no-op returning ``False``."""
        with self._lock:
            index = self._index_of(notification_id)
            if index is None:
                return False
            removed = self._notifications.pop(index)
            if not removed.acknowledged:
                self._unread_count = max(self._unread_count - 1, 0)
            if self._policy is RefreshPolicy.PRESERVE:
                self._local_acks.discard(removed.id)
                self._local_removals.add(removed.id)
            snapshot = self._snapshot()
        self._publish(snapshot)
        return True

    def mark_all_as_read(self) -> int:
        """Acknowledge every notification and return how many changed."""
        with self._lock:
            now = datetime.now(UTC)
            changed = 0
            for index, current in enumerate(self._notifications):
                if current.acknowledged:
                    continue
                self._notifications[index] = current.acknowledge(at=now)
                if self._policy is RefreshPolicy.PRESERVE:
                    self._local_acks.add(current.id)
                changed += 1
            self._unread_count = 0
            snapshot = self._snapshot()
        if changed:
            self._publish(snapshot)
        return changed

    def clear_all(self) -> None:
        """Empty the set and forget all local state.

        A ``load`` after ``clear_all`` yields exactly what a fresh center
        would hold after the same ``load``.
        """
        with self._lock:
            self._local_acks.clear()
            self._local_removals.clear()
            self._notifications = []
            self._unread_count = 0
            snapshot = self._snapshot()
        self._publish(snapshot)

    def forget_local_state(self) -> None:
        """Drop remembered local acknowledgements and removals."""
        with self._lock:
            self._local_acks.clear()
            self._local_removals.clear()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for snapshots; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _index_of(self, notification_id: NotificationId) -> int | None:
        for index, notification in enumerate(self._notifications):
            if notification.id == notification_id:
                return index
        return None

    def _snapshot(self) -> NotificationSnapshot:
        return NotificationSnapshot(
            notifications=tuple(self._notifications),
            unread_count=self._unread_count,
            generation=self._generation,
        )

    def _reconcile(self, incoming: list[Notification]) -> list[Notification]:
        incoming_ids = {n.id for n in incoming}
        self._local_acks &= incoming_ids
        self._local_removals &= incoming_ids
        reconciled: list[Notification] = []
        for notification in incoming:
            if notification.id in self._local_removals:
                continue
            if notification.id in self._local_acks:
                if notification.acknowledged:
                    self._local_acks.discard(notification.id)
                else:
                    notification = notification.acknowledge()
            reconciled.append(notification)
        return reconciled

    def _publish(self, snapshot: NotificationSnapshot) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("notifications.listener_failed")


def _dedupe(items: Iterable[Notification]) -> list[Notification]:
    seen: set[NotificationId] = set()
    unique: list[Notification] = []
    for item in items:
        if item.id in seen:
            logger.warning("notifications.duplicate_id", notification_id=item.id)
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


__all__ = ["NotificationCenter", "NotificationSnapshot", "RefreshPolicy"]
