"""
Alert Pipeline

Turns threshold crossings into order alerts and local notifications:

- server-flagged overdue orders raise an OVERDUE alert once per order
- orders waiting past each configured minute mark (30 / 45 / 60 by default)
  raise a one-shot wait alert per mark
- cooking timer half-time / near-complete / overdue events

Every alert is guarded by the shared ``LatchSet`` so repeated polling never
re-fires it.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Iterable, Sequence

from staff_console.engine.latches import LatchSet
from staff_console.engine.notifications import NotificationPipeline
from staff_console.engine.store import CLOSED_STATUSES, OrderSnapshotStore
from staff_console.engine.timers import HALF_TIME, NEAR_COMPLETE, OVERDUE, TimerEvent
from staff_console.models import AlertSeverity, AlertType, NotificationPriority, NotificationType
from staff_console.schemas import StaffOrder

logger = logging.getLogger(__name__)

# Severity ladder for successive wait marks
WAIT_LEVELS = (
    (NotificationPriority.HIGH, AlertSeverity.MEDIUM),
    (NotificationPriority.URGENT, AlertSeverity.HIGH),
    (NotificationPriority.EMERGENCY, AlertSeverity.CRITICAL),
)

TIMER_MESSAGES = {
    HALF_TIME: (NotificationPriority.NORMAL, "Half cooking time reached"),
    NEAR_COMPLETE: (NotificationPriority.HIGH, "Cooking almost done"),
    OVERDUE: (NotificationPriority.URGENT, "Cooking time exceeded"),
}


class AlertPipeline:
    """Raises local alerts from projected orders and timer events."""

    def __init__(
        self,
        store: OrderSnapshotStore,
        notifications: NotificationPipeline,
        wait_alert_minutes: Sequence[int] = (30, 45, 60),
    ):
        self.store = store
        self.notifications = notifications
        self.wait_alert_minutes = tuple(sorted(wait_alert_minutes))
        self.latches = LatchSet()

    def _wait_level(self, index: int) -> tuple[NotificationPriority, AlertSeverity]:
        return WAIT_LEVELS[min(index, len(WAIT_LEVELS) - 1)]

    async def scan_orders(self, orders: Iterable[StaffOrder]) -> int:
        """Check every order against the overdue and wait thresholds."""
        raised = 0
        for order in orders:
            if order.is_overdue and self.latches.fire_once(order.order_id, "overdue"):
                await self._raise_overdue(order)
                raised += 1

            if order.status in CLOSED_STATUSES:
                continue

            for index, minutes in enumerate(self.wait_alert_minutes):
                if order.actual_wait_time >= minutes and self.latches.fire_once(order.order_id, f"wait{minutes}"):
                    await self._raise_wait(order, index)
                    raised += 1
        return raised

    async def _raise_overdue(self, order: StaffOrder) -> None:
        self.store.add_overdue_alert(order)
        table = f" (table {order.table_number})" if order.table_number else ""
        await self.notifications.notify_local(
            type=NotificationType.ORDER_OVERDUE,
            priority=NotificationPriority.URGENT,
            title="Order overdue",
            message=f"Order #{order.order_number}{table} is overdue by {order.delayed_minutes} minutes",
            related_order_id=order.order_id,
        )

    async def _raise_wait(self, order: StaffOrder, index: int) -> None:
        minutes = self.wait_alert_minutes[index]
        priority, severity = self._wait_level(index)
        message = f"Order #{order.order_number} has been waiting {order.actual_wait_time} minutes"
        self.store.add_alert(order.order_id, AlertType.KITCHEN_DELAY, severity, message)
        await self.notifications.notify_local(
            type=NotificationType.KITCHEN_ALERT,
            priority=priority,
            title=f"Waiting over {minutes} minutes",
            message=message,
            related_order_id=order.order_id,
        )

    async def handle_timer_events(self, events: Iterable[TimerEvent]) -> int:
        """Announce timer thresholds latched by the timer manager."""
        raised = 0
        for event in events:
            priority, title = TIMER_MESSAGES[event.kind]
            order = self.store.get(event.timer.order_id)
            label = f"Order #{order.order_number}" if order else f"Order {event.timer.order_id}"
            await self.notifications.notify_local(
                type=NotificationType.KITCHEN_ALERT,
                priority=priority,
                title=title,
                message=f"{label}: {title.lower()}",
                related_order_id=event.timer.order_id,
            )
            raised += 1
        return raised
