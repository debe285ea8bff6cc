"""
Order Snapshot Store

Explicit state container holding the last fetched order snapshot, the
by-status index derived from it, and the locally raised order alerts.

The snapshot is only ever replaced wholesale. ``apply_order`` swaps in one
complete order record returned by a successful write; the next refresh
overwrites it again (last write wins, reconciled by polling).

Consumers read through selector methods and can ``subscribe`` to changes.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Callable, Optional

from staff_console.engine.clock import Clock, utcnow
from staff_console.models import (
    AlertSeverity,
    AlertType,
    OrderAlert,
    OrderPriority,
    OrderStatus,
)
from staff_console.schemas import Order, OrderQueueSnapshot, QueueSummary

logger = logging.getLogger(__name__)

Listener = Callable[["OrderSnapshotStore"], None]

PENDING_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED)
PROCESSING_STATUSES = (OrderStatus.PROCESSING, OrderStatus.PREPARING)
READY_STATUSES = (OrderStatus.READY, OrderStatus.DELIVERED)
CLOSED_STATUSES = (OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REFUNDED)

QUEUE_BUCKETS = {
    "pending": PENDING_STATUSES,
    "processing": PROCESSING_STATUSES,
    "ready": READY_STATUSES,
    "completed": (OrderStatus.COMPLETED,),
    "cancelled": (OrderStatus.CANCELLED, OrderStatus.REFUNDED),
}


class OrderSnapshotStore:
    """Single shared mirror of the remote order queue."""

    def __init__(self, clock: Clock = utcnow):
        self._clock = clock
        self._orders: tuple[Order, ...] = ()
        self._index: dict[str, Order] = {}
        self._by_status: dict[OrderStatus, tuple[Order, ...]] = {}
        self._server_summary: Optional[QueueSummary] = None
        self._alerts: dict[str, OrderAlert] = {}
        self._listeners: list[Listener] = []
        self.version = 0
        self.last_refreshed: Optional[datetime] = None

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns the matching unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Store listener failed")

    # =========================================================================
    # WRITES
    # =========================================================================

    def replace(self, snapshot: OrderQueueSnapshot) -> None:
        """Install a freshly fetched snapshot, discarding the previous one."""
        self._install(tuple(snapshot.orders))
        self._server_summary = snapshot.summary
        self.last_refreshed = self._clock()
        self.version += 1
        logger.debug(f"Snapshot v{self.version}: {len(self._orders)} orders")
        self._notify()

    def apply_order(self, order: Order) -> None:
        """Reflect a complete order record returned by a successful write."""
        if order.order_id in self._index:
            orders = tuple(order if o.order_id == order.order_id else o for o in self._orders)
        else:
            orders = self._orders + (order,)
        self._install(orders)
        self.version += 1
        self._notify()

    def _install(self, orders: tuple[Order, ...]) -> None:
        by_status: dict[OrderStatus, list[Order]] = defaultdict(list)
        for order in orders:
            by_status[order.status].append(order)
        self._orders = orders
        self._index = {o.order_id: o for o in orders}
        self._by_status = {status: tuple(items) for status, items in by_status.items()}

    # =========================================================================
    # SELECTORS
    # =========================================================================

    @property
    def orders(self) -> tuple[Order, ...]:
        return self._orders

    def get(self, order_id: str) -> Optional[Order]:
        return self._index.get(order_id)

    def by_status(self, status: OrderStatus) -> tuple[Order, ...]:
        return self._by_status.get(status, ())

    def by_priority(self, priority: OrderPriority) -> list[Order]:
        return [o for o in self._orders if o.priority == priority]

    def urgent_orders(self) -> list[Order]:
        return [
            o for o in self._orders
            if o.priority == OrderPriority.URGENT or o.is_overdue
        ]

    def overdue_orders(self) -> list[Order]:
        return [o for o in self._orders if o.is_overdue]

    def orders_for_staff(self, staff_id: str) -> list[Order]:
        return [o for o in self._orders if o.assigned_staff == staff_id]

    def kitchen_orders(self) -> list[Order]:
        """Orders currently being worked on, oldest first."""
        orders = [o for o in self._orders if o.status in PROCESSING_STATUSES]
        return sorted(orders, key=lambda o: o.order_time)

    def queue_buckets(self) -> dict[str, list[Order]]:
        return {
            name: [o for status in statuses for o in self.by_status(status)]
            for name, statuses in QUEUE_BUCKETS.items()
        }

    def summary(self) -> QueueSummary:
        """Server summary when provided, otherwise computed from the snapshot."""
        if self._server_summary is not None:
            return self._server_summary
        return self.compute_summary(self._clock())

    def compute_summary(self, now: datetime) -> QueueSummary:
        orders = self._orders
        open_orders = [o for o in orders if o.status not in CLOSED_STATUSES]
        waits = [max(0.0, (now - o.order_time).total_seconds() / 60) for o in open_orders]
        billable = [
            o for o in orders
            if o.status not in (OrderStatus.CANCELLED, OrderStatus.REFUNDED)
        ]
        completed = len(self.by_status(OrderStatus.COMPLETED))

        return QueueSummary(
            pending_count=sum(len(self.by_status(s)) for s in PENDING_STATUSES),
            processing_count=sum(len(self.by_status(s)) for s in PROCESSING_STATUSES),
            urgent_count=len(self.urgent_orders()),
            overdue_count=len(self.overdue_orders()),
            average_wait_time=round(sum(waits) / len(waits), 1) if waits else 0.0,
            total_revenue=round(sum(o.total_amount for o in billable), 2),
            completion_rate=round(completed / len(orders) * 100, 1) if orders else 0.0,
        )

    # =========================================================================
    # ALERTS
    # =========================================================================

    @property
    def alerts(self) -> list[OrderAlert]:
        return sorted(self._alerts.values(), key=lambda a: a.created_at, reverse=True)

    def unacknowledged_alerts(self) -> list[OrderAlert]:
        return [a for a in self.alerts if not a.acknowledged]

    def alerts_for_order(self, order_id: str) -> list[OrderAlert]:
        return [a for a in self.alerts if a.order_id == order_id]

    def add_alert(
        self,
        order_id: str,
        alert_type: AlertType,
        severity: AlertSeverity,
        message: str,
    ) -> OrderAlert:
        alert = OrderAlert(
            id=f"alert_{uuid.uuid4().hex[:12]}",
            order_id=order_id,
            type=alert_type,
            severity=severity,
            message=message,
            created_at=self._clock(),
        )
        self._alerts[alert.id] = alert
        logger.info(f"Alert raised for order {order_id}: {message}")
        self._notify()
        return alert

    def add_overdue_alert(self, order: Order) -> Optional[OrderAlert]:
        """Raise the overdue alert once per order."""
        if any(a.type == AlertType.OVERDUE for a in self.alerts_for_order(order.order_id)):
            return None
        return self.add_alert(
            order.order_id,
            AlertType.OVERDUE,
            AlertSeverity.HIGH,
            f"Order #{order.order_number} is overdue by {order.overdue_minutes} minutes",
        )

    def acknowledge_alert(self, alert_id: str, staff_id: Optional[str]) -> bool:
        alert = self._alerts.get(alert_id)
        if alert is None:
            return False
        alert.acknowledged = True
        alert.acknowledged_by = staff_id
        self._notify()
        return True

    def clear_alert(self, alert_id: str) -> bool:
        if self._alerts.pop(alert_id, None) is None:
            return False
        self._notify()
        return True

    def clear_all_alerts(self) -> int:
        count = len(self._alerts)
        self._alerts.clear()
        if count:
            self._notify()
        return count
