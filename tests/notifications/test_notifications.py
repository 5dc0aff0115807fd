from __future__ import annotations

import asyncio
import time

import pytest

from resq.metrics import RecordingWorkerMetrics
from resq.notifications import (
    InMemoryNotifier,
    NotificationDispatcher,
    NotificationRequest,
    build_alert_notification,
    resolve_action_target,
    sync_confirmation,
)


def run_async(coro):
    return asyncio.run(coro)


class BrokenNotifier(InMemoryNotifier):
    async def show(self, request) -> None:
        raise PermissionError("notifications not permitted")


def test_assigned_alert_uses_event_tag_and_tracking_actions():
    request = build_alert_notification(
        {"type": "emergency_assigned", "emergencyId": "42", "responderName": "Amina", "eta": 7}
    )

    assert request.tag == "emergency-42"
    assert "Amina" in request.body and "7 minutes" in request.body
    assert [a.action for a in request.actions] == ["track", "contact"]
    assert request.require_interaction is True
    assert request.urgency == "high"
    assert request.data["emergencyId"] == "42"


@pytest.mark.parametrize(
    "payload,tag,actions",
    [
        ({"type": "emergency_cancelled", "emergencyId": "7"}, "emergency-7", []),
        ({"type": "responder_arrived", "emergencyId": "7"}, "emergency-7", ["confirm", "message"]),
        ({"type": "emergency_resolved", "emergencyId": "7"}, "emergency-7", ["feedback", "view"]),
        ({"type": "system_alert", "message": "Maintenance at 02:00"}, "system-alert", []),
        ({"title": "Flood warning", "body": "Move uphill"}, "emergency", ["view", "dismiss"]),
        ({"type": "unknown", "tag": "custom"}, "custom", ["view", "dismiss"]),
    ],
)
def test_alert_templates_select_by_type(payload, tag, actions):
    request = build_alert_notification(payload)

    assert request.tag == tag
    assert [a.action for a in request.actions] == actions


def test_default_alert_urgency_follows_payload():
    urgent = build_alert_notification({"title": "Fire", "urgent": True, "data": {"emergencyId": "1"}})
    calm = build_alert_notification({})

    assert urgent.require_interaction is True
    assert urgent.urgency == "high"
    assert urgent.data == {"emergencyId": "1"}
    assert calm.title == "Emergency Alert"
    assert calm.urgency == "normal"


def test_sync_confirmation_only_for_emergencies():
    request = sync_confirmation("rec_9", "emergency")

    assert request is not None
    assert request.tag == "sync-success-rec_9"
    assert request.title == "Emergency Synced"
    assert sync_confirmation("rec_9", "location") is None


@pytest.mark.parametrize(
    "action,data,target",
    [
        ("dismiss", {"emergencyId": "42"}, None),
        ("track", {"emergencyId": "42"}, "/?emergency=42&view=tracking"),
        ("contact", {"emergencyId": "42"}, "/?emergency=42&view=contact"),
        ("confirm", {"emergencyId": "42"}, "/?emergency=42&action=confirm"),
        ("message", {"emergencyId": "42"}, "/?emergency=42&view=chat"),
        ("feedback", {"emergencyId": "42"}, "/?emergency=42&view=feedback"),
        ("view", {"emergencyId": "42"}, "/?emergency=42"),
        (None, {"emergencyId": "42"}, "/?emergency=42"),
        (None, {}, "/"),
        ("unknown", None, "/"),
    ],
)
def test_action_routing(action, data, target):
    assert resolve_action_target(action, data) == target


def test_same_tag_replaces_instead_of_stacking():
    async def scenario() -> None:
        notifier = InMemoryNotifier()
        dispatcher = NotificationDispatcher(notifier)

        assert await dispatcher.dispatch(NotificationRequest("A", "first", tag="emergency-1"))
        assert await dispatcher.dispatch(NotificationRequest("B", "second", tag="emergency-1"))
        assert await dispatcher.dispatch(NotificationRequest("C", "third", tag="system-alert"))

        shown = await notifier.list_shown()
        assert sorted(n.tag for n in shown) == ["emergency-1", "system-alert"]
        assert {n.tag: n.request.body for n in shown}["emergency-1"] == "second"
        assert len(notifier.history) == 3

    run_async(scenario())


def test_delivery_failure_is_reported_not_raised():
    async def scenario() -> None:
        metrics = RecordingWorkerMetrics()
        dispatcher = NotificationDispatcher(BrokenNotifier(), metrics=metrics)

        delivered = await dispatcher.dispatch(NotificationRequest("A", "b", tag="t"))

        assert delivered is False
        assert metrics.counters["notification_failed_total"] == 1

    run_async(scenario())


def test_expire_closes_notifications_older_than_max_age():
    async def scenario() -> None:
        notifier = InMemoryNotifier()
        dispatcher = NotificationDispatcher(notifier)
        await dispatcher.dispatch(NotificationRequest("A", "b", tag="old"))

        assert await dispatcher.expire_older_than(86400) == 0
        closed = await dispatcher.expire_older_than(86400, now=time.time() + 86401)

        assert closed == 1
        assert await notifier.list_shown() == []

    run_async(scenario())


def test_notifier_history_is_bounded():
    async def scenario() -> None:
        notifier = InMemoryNotifier(history_limit=3)
        dispatcher = NotificationDispatcher(notifier)

        for n in range(5):
            await dispatcher.dispatch(NotificationRequest("A", str(n), tag=f"t-{n}"))

        assert [r.body for r in notifier.history] == ["2", "3", "4"]
        assert len(await notifier.list_shown()) == 5

    run_async(scenario())
