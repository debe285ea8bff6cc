"""
Mock Order API

In-memory stand-in for the restaurant order API used in development.
Seeds a handful of realistic orders and notifications, simulates network
latency and random failures, and derives ``isOverdue`` on every fetch the
way the real server does.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from staff_console.models import (
    NotificationPriority,
    NotificationType,
    OrderPriority,
    OrderSource,
    OrderStatus,
)
from staff_console.schemas import (
    NotificationData,
    NotificationList,
    Order,
    OrderItem,
    OrderQueueSnapshot,
)
from staff_console.services.order_api.base import BaseOrderAPI, OrderAPIError

logger = logging.getLogger(__name__)

# Statuses for which the server still tracks lateness
_OPEN_STATUSES = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.PREPARING,
}


def _seed_orders(now: datetime) -> list[Order]:
    """Build a small, varied queue relative to ``now``."""
    seeds = [
        ("1001", "12", "Alice Martin", OrderStatus.PENDING, OrderPriority.NORMAL, OrderSource.DINE_IN, 4, 20),
        ("1002", "7", "Bruno Costa", OrderStatus.CONFIRMED, OrderPriority.HIGH, OrderSource.DINE_IN, 12, 25),
        ("1003", "3", "Chen Wei", OrderStatus.PREPARING, OrderPriority.NORMAL, OrderSource.TAKEAWAY, 38, 25),
        ("1004", "21", "Dana Scott", OrderStatus.PROCESSING, OrderPriority.URGENT, OrderSource.DELIVERY, 22, 30),
        ("1005", "5", "Elif Demir", OrderStatus.READY, OrderPriority.NORMAL, OrderSource.DINE_IN, 31, 25),
        ("1006", "A1", "Farid Haddad", OrderStatus.PENDING, OrderPriority.NORMAL, OrderSource.ONLINE, 2, 20),
    ]
    orders = []
    for number, table, customer, status, priority, source, age_minutes, prep_minutes in seeds:
        order_time = now - timedelta(minutes=age_minutes)
        items = [
            OrderItem(
                item_id=f"{number}-1",
                menu_item_id="pizza-margherita",
                name="Pizza Margherita",
                quantity=1,
                unit_price=14.99,
                total_price=14.99,
                preparation_time=15,
                allergens=["gluten", "dairy"],
            ),
            OrderItem(
                item_id=f"{number}-2",
                menu_item_id="caesar-salad",
                name="Caesar Salad",
                quantity=2,
                unit_price=9.5,
                total_price=19.0,
                special_requests="No croutons" if number == "1003" else None,
                preparation_time=8,
                allergens=["egg", "dairy"],
            ),
        ]
        orders.append(
            Order(
                order_id=f"ord-{number}",
                order_number=number,
                table_number=table,
                customer_name=customer,
                items=items,
                total_amount=round(sum(i.total_price for i in items), 2),
                status=status,
                priority=priority,
                source=source,
                order_time=order_time,
                estimated_complete_time=order_time + timedelta(minutes=prep_minutes),
            )
        )
    return orders


def _seed_notifications(now: datetime) -> list[NotificationData]:
    return [
        NotificationData(
            notification_id="ntf_seed_shift",
            type=NotificationType.SHIFT_START,
            priority=NotificationPriority.NORMAL,
            title="Shift started",
            message="Evening service is open. 6 orders in the queue.",
            sent_at=now - timedelta(minutes=45),
        ),
    ]


class MockOrderAPI(BaseOrderAPI):
    """Mock order API for development and tests."""

    def __init__(
        self,
        failure_rate: float = 0.05,
        min_latency: float = 0.05,
        max_latency: float = 0.25,
        orders: Optional[list[Order]] = None,
        notifications: Optional[list[NotificationData]] = None,
        seed: bool = True,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency

        now = datetime.now(timezone.utc)
        if orders is None:
            orders = _seed_orders(now) if seed else []
        self._orders: dict[str, Order] = {o.order_id: o for o in orders}
        if notifications is None:
            notifications = _seed_notifications(now) if seed else []
        self._notifications: list[NotificationData] = list(notifications)
        self._notes: dict[str, list[dict]] = {}

        logger.info(
            f"MockOrderAPI initialized (orders={len(self._orders)}, "
            f"failure_rate={failure_rate:.0%})"
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> None:
        """Simulate network latency."""
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def _call(self, operation: str) -> None:
        await self._simulate_latency()
        if self._should_fail():
            logger.warning(f"Mock {operation} failed (simulated)")
            raise OrderAPIError(f"Simulated {operation} failure", status_code=503)

    def _get(self, order_id: str) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderAPIError(f"Order {order_id} not found", status_code=404)
        return order

    def _with_overdue(self, order: Order, now: datetime) -> Order:
        """Server-side lateness: past the estimate while still open."""
        if order.status in _OPEN_STATUSES and order.estimated_complete_time:
            late = now - order.estimated_complete_time
            if late.total_seconds() > 0:
                return order.model_copy(
                    update={"is_overdue": True, "overdue_minutes": int(late.total_seconds() // 60)}
                )
        return order.model_copy(update={"is_overdue": False, "overdue_minutes": 0})

    def push_notification(
        self,
        recipient_id: Optional[str],
        type: NotificationType,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        related_order_id: Optional[str] = None,
    ) -> NotificationData:
        """Queue a server notification (development helper)."""
        notification = NotificationData(
            notification_id=f"ntf_{uuid.uuid4().hex[:12]}",
            recipient_id=recipient_id,
            type=type,
            priority=priority,
            title=title,
            message=message,
            related_order_id=related_order_id,
            sent_at=datetime.now(timezone.utc),
        )
        self._notifications.append(notification)
        return notification

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def fetch_order_queue(self) -> OrderQueueSnapshot:
        await self._call("fetch_order_queue")
        now = datetime.now(timezone.utc)
        orders = [self._with_overdue(o, now) for o in self._orders.values()]
        logger.debug(f"Mock queue fetched: {len(orders)} orders")
        # Summary omitted so the console computes it locally
        return OrderQueueSnapshot(orders=orders, summary=None)

    async def update_order_status(
        self,
        order_id: str,
        new_status: OrderStatus,
        staff_id: Optional[str],
        note: Optional[str] = None,
    ) -> Order:
        await self._call("update_order_status")
        order = self._get(order_id)
        update: dict = {"status": new_status}
        if new_status in (OrderStatus.COMPLETED, OrderStatus.DELIVERED):
            update["actual_complete_time"] = datetime.now(timezone.utc)
        updated = order.model_copy(update=update)
        self._orders[order_id] = updated
        if note:
            self._notes.setdefault(order_id, []).append({"note": note, "staff_id": staff_id})

        self.push_notification(
            recipient_id=staff_id,
            type=NotificationType.ORDER_STATUS_CHANGE,
            title=f"Order #{order.order_number}",
            message=f"Order #{order.order_number} is now {new_status.value}",
            related_order_id=order_id,
        )
        logger.info(f"Mock order {order_id}: {order.status.value} -> {new_status.value}")
        return updated

    async def assign_order(self, order_id: str, staff_id: str) -> None:
        await self._call("assign_order")
        order = self._get(order_id)
        self._orders[order_id] = order.model_copy(update={"assigned_staff": staff_id})
        logger.info(f"Mock order {order_id} assigned to {staff_id}")

    async def cancel_order(self, order_id: str, reason: str) -> None:
        await self._call("cancel_order")
        order = self._get(order_id)
        self._orders[order_id] = order.model_copy(update={"status": OrderStatus.CANCELLED})
        self._notes.setdefault(order_id, []).append({"note": f"Cancelled: {reason}", "staff_id": None})
        logger.info(f"Mock order {order_id} cancelled: {reason}")

    async def update_priority(self, order_id: str, priority: OrderPriority) -> None:
        await self._call("update_priority")
        order = self._get(order_id)
        self._orders[order_id] = order.model_copy(update={"priority": priority})

    async def add_note(self, order_id: str, note: str, staff_id: Optional[str] = None) -> None:
        await self._call("add_note")
        self._get(order_id)
        self._notes.setdefault(order_id, []).append({"note": note, "staff_id": staff_id})

    def notes_for(self, order_id: str) -> list[dict]:
        return list(self._notes.get(order_id, []))

    # =========================================================================
    # NOTIFICATIONS
    # =========================================================================

    async def fetch_notifications(
        self,
        staff_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> NotificationList:
        await self._call("fetch_notifications")
        mine = [
            n for n in self._notifications
            if n.recipient_id in (None, staff_id)
        ]
        unread_count = sum(1 for n in mine if not n.is_read)
        total_count = len(mine)
        if unread_only:
            mine = [n for n in mine if not n.is_read]
        mine.sort(key=lambda n: n.sent_at, reverse=True)
        start = offset or 0
        end = start + limit if limit else None
        return NotificationList(
            notifications=mine[start:end],
            unread_count=unread_count,
            total_count=total_count,
        )

    async def mark_notification_read(
        self,
        staff_id: str,
        notification_id: Optional[str] = None,
    ) -> None:
        await self._call("mark_notification_read")
        self._notifications = [
            n.model_copy(update={"is_read": True})
            if n.recipient_id in (None, staff_id)
            and (notification_id is None or n.notification_id == notification_id)
            else n
            for n in self._notifications
        ]

    async def health_check(self) -> bool:
        return True
