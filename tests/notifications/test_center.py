import random

import pytest

from attribution_console.notifications.center import NotificationCenter, RefreshPolicy
from attribution_console.notifications.models import Severity


def _unread(center):
    return sum(1 for n in center.notifications if not n.acknowledged)


def test_load_counts_unread(notification):
    center = NotificationCenter()
    snapshot = center.load(
        [notification(1), notification(2), notification(3, acknowledged=True)]
    )
    assert snapshot.unread_count == 2
    assert center.unread_count == 2
    assert [n.id for n in center.notifications] == [1, 2, 3]
    assert center.generation == 1


def test_load_accepts_mappings():
    center = NotificationCenter()
    center.load(
        [
            {
                "id": "a",
                "severity": "critical",
                "title": "Budget exceeded",
                "triggeredAt": "2026-03-01T10:00:00Z",
            }
        ]
    )
    assert center.get("a").severity is Severity.ERROR
    assert center.unread_count == 1


def test_duplicate_ids_keep_first(notification):
    center = NotificationCenter()
    center.load([notification(1, title="first"), notification(1, title="second", acknowledged=True)])
    assert len(center) == 1
    assert center.get(1).title == "first"
    assert center.unread_count == 1


def test_scenario_walkthrough(notification):
    center = NotificationCenter()
    center.load([notification(1), notification(2), notification(3, acknowledged=True)])

    assert center.acknowledge(1)
    assert center.unread_count == 1

    assert center.remove(2)
    assert center.unread_count == 0

    assert center.remove(3)
    assert len(center) == 1
    assert center.unread_count == 0

    center.clear_all()
    assert len(center) == 0
    assert center.unread_count == 0


def test_acknowledge_is_idempotent(notification):
    center = NotificationCenter()
    center.load([notification(1), notification(2)])
    assert center.acknowledge(1, by="ops@example.com")
    assert not center.acknowledge(1)
    assert center.unread_count == 1
    assert center.get(1).acknowledged_by == "ops@example.com"
    assert center.get(1).acknowledged_at is not None


def test_unknown_ids_are_noops(notification):
    center = NotificationCenter()
    center.load([notification(1)])
    assert not center.acknowledge(99)
    assert not center.remove(99)
    assert center.unread_count == 1
    assert len(center) == 1


def test_mark_all_as_read(notification):
    center = NotificationCenter()
    center.load([notification(1), notification(2, acknowledged=True), notification(3)])
    assert center.mark_all_as_read() == 2
    assert center.unread_count == 0
    assert center.unread() == ()
    assert center.mark_all_as_read() == 0


def test_views(notification):
    center = NotificationCenter()
    center.load([notification(1, severity="error"), notification(2, severity="info", acknowledged=True)])
    assert [n.id for n in center.unread()] == [1]
    assert [n.id for n in center.by_severity("critical")] == [1]
    assert center.get(3) is None
    assert center.snapshot().notifications == center.notifications


@pytest.mark.parametrize("policy", list(RefreshPolicy))
def test_unread_count_invariant_holds_for_any_sequence(notification, policy):
    rng = random.Random(20261017)
    center = NotificationCenter(policy=policy)
    for _ in range(300):
        op = rng.choice(["load", "ack", "remove", "mark", "clear"])
        if op == "load":
            ids = rng.sample(range(12), rng.randint(0, 8))
            center.load([notification(i, acknowledged=rng.random() < 0.3) for i in ids])
        elif op == "ack":
            center.acknowledge(rng.randrange(12))
        elif op == "remove":
            center.remove(rng.randrange(12))
        elif op == "mark":
            center.mark_all_as_read()
        else:
            center.clear_all()
        assert center.unread_count == _unread(center)
        assert center.unread_count >= 0


def test_clear_all_then_load_matches_fresh_load(notification):
    batch = [notification(1), notification(2, acknowledged=True), notification(3)]
    used = NotificationCenter()
    used.load(batch)
    used.acknowledge(1)
    used.remove(3)
    used.clear_all()
    used.load(batch)

    fresh = NotificationCenter()
    fresh.load(batch)
    assert used.notifications == fresh.notifications
    assert used.unread_count == fresh.unread_count


def test_replace_policy_discards_local_actions(notification):
    center = NotificationCenter(policy=RefreshPolicy.REPLACE)
    center.load([notification(1), notification(2)])
    center.acknowledge(1)
    center.remove(2)
    center.load([notification(1), notification(2)])
    assert center.unread_count == 2
    assert len(center) == 2


def test_preserve_policy_keeps_local_actions_until_upstream_agrees(notification):
    center = NotificationCenter(policy="preserve")
    center.load([notification(1), notification(2), notification(3)])
    center.acknowledge(1)
    center.remove(2)

    center.load([notification(1), notification(2), notification(3)])
    assert [n.id for n in center.notifications] == [1, 3]
    assert center.get(1).acknowledged
    assert center.unread_count == 1

    center.load([notification(1, acknowledged=True), notification(3)])
    center.load([notification(1), notification(2), notification(3)])
    assert not center.get(1).acknowledged
    assert center.get(2) is not None
    assert center.unread_count == 3


def test_forget_local_state(notification):
    center = NotificationCenter()
    center.load([notification(1)])
    center.acknowledge(1)
    center.forget_local_state()
    center.load([notification(1)])
    assert center.unread_count == 1


def test_listeners_receive_snapshots(notification):
    center = NotificationCenter()
    seen = []
    unsubscribe = center.subscribe(lambda snapshot: seen.append(snapshot.unread_count))
    center.load([notification(1), notification(2)])
    center.acknowledge(1)
    unsubscribe()
    center.acknowledge(2)
    assert seen == [2, 1]


def test_failing_listener_does_not_break_mutation(notification):
    center = NotificationCenter()
    seen = []

    def broken(snapshot):
        raise RuntimeError("listener bug")

    center.subscribe(broken)
    center.subscribe(lambda snapshot: seen.append(snapshot.generation))
    center.load([notification(1)])
    assert center.unread_count == 1
    assert seen == [1]


def test_acknowledge_then_remove_acknowledged(notification):
    center = NotificationCenter()
    center.load([notification(1), notification(2, acknowledged=True)])
    center.acknowledge(1)
    center.remove(2)
    assert [(n.id, n.acknowledged) for n in center.notifications] == [(1, True)]
    assert center.unread_count == 0
