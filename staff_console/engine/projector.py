"""
Derived-State Projector

Pure function turning a raw ``Order`` into the ``StaffOrder`` view the
console renders: capability flags, urgency, wait/remaining/delay minutes.

The projection reads only its arguments. Identical ``(order, now, staff_id)``
always produce an equal StaffOrder, so it is safe to call on every tick.

Overdue is taken from the server's ``isOverdue`` flag. Client-side elapsed
time only drives the wait badge below the server's threshold and the
one-shot wait alerts.

Author: Khalil Bannouri
Version: 1.0.0
"""

from datetime import datetime
from typing import Optional, Sequence

from staff_console.models import OrderPriority, OrderStatus, UrgencyLevel, WaitBadge
from staff_console.schemas import Order, StaffOrder

START_COOKING_STATUSES = frozenset({OrderStatus.CONFIRMED, OrderStatus.PROCESSING})
COMPLETABLE_STATUSES = frozenset({OrderStatus.READY, OrderStatus.DELIVERED})
ACCEPTABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})

# Highest threshold first
DEFAULT_BADGE_THRESHOLDS: tuple[tuple[int, WaitBadge], ...] = (
    (60, WaitBadge.EMERGENCY),
    (45, WaitBadge.URGENT),
    (30, WaitBadge.HIGH),
    (20, WaitBadge.WAITING),
)

PRIORITY_REASONS = {
    OrderPriority.HIGH: "High priority order",
    OrderPriority.URGENT: "Urgent order",
}


def badge_thresholds(badge_minutes: int, alert_minutes: Sequence[int]) -> tuple[tuple[int, WaitBadge], ...]:
    """Build badge tiers from the configured badge and alert minutes."""
    tiers = [(badge_minutes, WaitBadge.WAITING)]
    tiers += list(zip(sorted(alert_minutes), (WaitBadge.HIGH, WaitBadge.URGENT, WaitBadge.EMERGENCY)))
    return tuple(sorted(tiers, key=lambda t: t[0], reverse=True))


def wait_badge_for(
    wait_minutes: int,
    thresholds: Sequence[tuple[int, WaitBadge]] = DEFAULT_BADGE_THRESHOLDS,
) -> Optional[WaitBadge]:
    for minutes, badge in thresholds:
        if wait_minutes >= minutes:
            return badge
    return None


def urgency_for(order: Order) -> UrgencyLevel:
    """Server overdue dominates staff priority."""
    if order.is_overdue:
        return UrgencyLevel.EMERGENCY
    if order.priority == OrderPriority.URGENT:
        return UrgencyLevel.URGENT
    if order.priority == OrderPriority.HIGH:
        return UrgencyLevel.HIGH
    return UrgencyLevel.NORMAL


def whole_minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def allergy_warnings_for(order: Order) -> list[str]:
    seen: list[str] = []
    for item in order.items:
        for allergen in item.allergens:
            if allergen not in seen:
                seen.append(allergen)
    return seen


def has_special_requests(order: Order) -> bool:
    if order.special_instructions and order.special_instructions.strip():
        return True
    return any(item.special_requests and item.special_requests.strip() for item in order.items)


def project_order(
    order: Order,
    now: datetime,
    staff_id: Optional[str],
    thresholds: Sequence[tuple[int, WaitBadge]] = DEFAULT_BADGE_THRESHOLDS,
) -> StaffOrder:
    """
    Project an order into the staff view.

    Args:
        order: Order as last fetched from the API
        now: Current time (timezone-aware)
        staff_id: Staff member operating the console, if any
        thresholds: Wait badge tiers, highest first

    Returns:
        StaffOrder: Frozen view; the source order is left untouched
    """
    wait_minutes = max(0, whole_minutes_between(order.order_time, now))

    remaining = 0
    if order.estimated_complete_time is not None:
        remaining = max(0, whole_minutes_between(now, order.estimated_complete_time))

    return StaffOrder(
        **order.base_order().model_dump(),
        urgency_level=urgency_for(order),
        can_assign_to_self=not order.assigned_staff and bool(staff_id),
        can_start_cooking=order.status in START_COOKING_STATUSES,
        can_mark_ready=order.status == OrderStatus.PREPARING,
        can_complete=order.status in COMPLETABLE_STATUSES,
        can_accept=order.status in ACCEPTABLE_STATUSES,
        can_reject=order.status == OrderStatus.PENDING,
        actual_wait_time=wait_minutes,
        estimated_remaining_time=remaining,
        delayed_minutes=order.overdue_minutes if order.is_overdue else 0,
        priority_reason=PRIORITY_REASONS.get(order.priority),
        allergy_warnings=allergy_warnings_for(order),
        has_special_requests=has_special_requests(order),
        wait_badge=wait_badge_for(wait_minutes, thresholds),
    )


def project_orders(
    orders: Sequence[Order],
    now: datetime,
    staff_id: Optional[str],
    thresholds: Sequence[tuple[int, WaitBadge]] = DEFAULT_BADGE_THRESHOLDS,
) -> list[StaffOrder]:
    return [project_order(order, now, staff_id, thresholds) for order in orders]
