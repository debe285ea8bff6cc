"""
Tests for the overdue / wait / timer alert pipeline.
"""

import pytest

from staff_console.engine.alerts import AlertPipeline
from staff_console.engine.latches import LatchSet
from staff_console.engine.notifications import NotificationPipeline
from staff_console.engine.projector import project_order
from staff_console.engine.timers import HALF_TIME, OVERDUE, TimerEvent
from staff_console.models import (
    AlertSeverity,
    AlertType,
    CookingTimer,
    NotificationPriority,
    NotificationType,
    OrderStatus,
)
from staff_console.schemas import OrderQueueSnapshot

from tests.conftest import NOW, make_order


@pytest.fixture
def notifications(mock_api, dispatcher, clock):
    return NotificationPipeline(mock_api, dispatcher, clock=clock)


@pytest.fixture
def alerts(store, notifications):
    return AlertPipeline(store, notifications, wait_alert_minutes=[30, 45, 60])


def view(order):
    return project_order(order, NOW, "staff-001")


class TestOverdue:
    @pytest.mark.asyncio
    async def test_overdue_fires_once(self, alerts, store, notifications):
        order = view(make_order(is_overdue=True, overdue_minutes=4))

        assert await alerts.scan_orders([order]) == 1
        assert await alerts.scan_orders([order]) == 0

        [alert] = store.alerts
        assert alert.type == AlertType.OVERDUE
        assert alert.severity == AlertSeverity.HIGH
        [local] = notifications.notifications
        assert local.type == NotificationType.ORDER_OVERDUE
        assert local.priority == NotificationPriority.URGENT
        assert "overdue by 4 minutes" in local.message

    @pytest.mark.asyncio
    async def test_not_overdue_is_quiet(self, alerts, store):
        assert await alerts.scan_orders([view(make_order(minutes_ago=10))]) == 0
        assert store.alerts == []


class TestWaitMarks:
    @pytest.mark.asyncio
    async def test_each_mark_fires_once_in_order(self, alerts, store, notifications):
        for minutes, expected in ((29, 0), (30, 1), (31, 0), (45, 1), (50, 0), (60, 1), (90, 0)):
            order = view(make_order(minutes_ago=minutes))
            assert await alerts.scan_orders([order]) == expected, minutes

        severities = [a.severity for a in store.alerts]
        assert severities == [AlertSeverity.MEDIUM, AlertSeverity.HIGH, AlertSeverity.CRITICAL]
        priorities = {n.priority for n in notifications.notifications}
        assert priorities == {NotificationPriority.HIGH, NotificationPriority.URGENT, NotificationPriority.EMERGENCY}

    @pytest.mark.asyncio
    async def test_jump_past_marks_announces_each_crossed_mark(self, alerts, store, notifications):
        order = view(make_order(minutes_ago=50))
        assert await alerts.scan_orders([order]) == 2
        assert await alerts.scan_orders([order]) == 0

        titles = {n.title for n in notifications.notifications}
        assert titles == {"Waiting over 30 minutes", "Waiting over 45 minutes"}
        assert [a.severity for a in store.alerts] == [AlertSeverity.MEDIUM, AlertSeverity.HIGH]
        assert alerts.latches.fired_for(order.order_id) == {"wait30", "wait45"}

    @pytest.mark.asyncio
    async def test_closed_orders_are_ignored(self, alerts):
        order = view(make_order(status=OrderStatus.COMPLETED, minutes_ago=90))
        assert await alerts.scan_orders([order]) == 0


class TestTimerEvents:
    @pytest.mark.asyncio
    async def test_timer_events_become_kitchen_alerts(self, alerts, store, notifications):
        store.replace(OrderQueueSnapshot(orders=[make_order("ord-7", OrderStatus.PREPARING)]))
        timer = CookingTimer(timer_id="t-1", order_id="ord-7", start_time=NOW, estimated_duration=600)

        raised = await alerts.handle_timer_events([TimerEvent(timer, HALF_TIME), TimerEvent(timer, OVERDUE)])

        assert raised == 2
        messages = sorted(n.message for n in notifications.notifications)
        assert messages == ["Order #7: cooking time exceeded", "Order #7: half cooking time reached"]
        assert all(n.type == NotificationType.KITCHEN_ALERT for n in notifications.notifications)


class TestLatchSet:
    def test_retain_drops_departed_keys(self):
        latches = LatchSet()
        latches.fire_once("ord-1", "wait30")
        latches.fire_once("ord-2", "wait30")
        latches.fire_once("ord-2", "overdue")

        assert latches.retain(["ord-1"]) == 2
        assert len(latches) == 1
        assert latches.is_set("ord-1", "wait30")
        assert latches.fire_once("ord-2", "wait30") is True
