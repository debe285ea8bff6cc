"""
Status State Machine

The only path through which an order's lifecycle status changes. Targets
outside the legal table are rejected before any network call; remote
failures are caught and returned as results.

    PENDING    -> CONFIRMED, CANCELLED
    CONFIRMED  -> PROCESSING, CANCELLED
    PROCESSING -> PREPARING, CANCELLED
    PREPARING  -> READY, PROCESSING
    READY      -> DELIVERED, COMPLETED
    DELIVERED  -> COMPLETED

COMPLETED and CANCELLED are terminal. REFUNDED belongs to the payment
subsystem and is never a target here.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Optional

from staff_console.engine.results import ActionResult, TransitionResult
from staff_console.engine.store import OrderSnapshotStore
from staff_console.models import OrderStatus
from staff_console.schemas import Order
from staff_console.services.order_api.base import BaseOrderAPI, OrderAPIError

logger = logging.getLogger(__name__)

LEGAL_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.PROCESSING}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED, OrderStatus.COMPLETED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REFUNDED})


def allowed_transitions(status: OrderStatus) -> frozenset[OrderStatus]:
    return LEGAL_TRANSITIONS.get(status, frozenset())


def is_legal_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in allowed_transitions(current)


class StatusStateMachine:
    """Guards status changes and assignment against the legal table."""

    def __init__(self, api: BaseOrderAPI, store: OrderSnapshotStore):
        self.api = api
        self.store = store

    async def transition(
        self,
        order: Order,
        target: OrderStatus,
        staff_id: Optional[str],
        note: Optional[str] = None,
    ) -> TransitionResult:
        """Move an order to ``target`` if the table allows it."""
        if not is_legal_transition(order.status, target):
            reason = (
                f"Cannot change order #{order.order_number} from "
                f"{order.status.value} to {target.value}"
            )
            logger.info(f"Transition rejected: {reason}")
            return TransitionResult(
                success=False,
                order_id=order.order_id,
                from_status=order.status,
                to_status=target,
                rejected=True,
                error_message=reason,
            )

        try:
            updated = await self.api.update_order_status(order.order_id, target, staff_id, note)
        except OrderAPIError as e:
            logger.warning(f"Status update failed for order {order.order_id}: {e}")
            return TransitionResult(
                success=False,
                order_id=order.order_id,
                from_status=order.status,
                to_status=target,
                error_message=str(e),
            )

        self.store.apply_order(updated)
        logger.info(
            f"Order #{order.order_number}: {order.status.value} -> {target.value}"
            + (f" by {staff_id}" if staff_id else "")
        )
        return TransitionResult(
            success=True,
            order_id=order.order_id,
            from_status=order.status,
            to_status=target,
            order=updated,
        )

    async def assign(self, order: Order, staff_id: Optional[str]) -> ActionResult:
        """Assign an order to a staff member without touching its status."""
        if not staff_id:
            return ActionResult(False, order.order_id, "assign", "No staff member identified")
        if order.status in TERMINAL_STATUSES:
            reason = f"Cannot assign order #{order.order_number} in status {order.status.value}"
            logger.info(f"Assignment rejected: {reason}")
            return ActionResult(False, order.order_id, "assign", reason)

        try:
            await self.api.assign_order(order.order_id, staff_id)
        except OrderAPIError as e:
            logger.warning(f"Assignment failed for order {order.order_id}: {e}")
            return ActionResult(False, order.order_id, "assign", str(e))

        self.store.apply_order(order.base_order().model_copy(update={"assigned_staff": staff_id}))
        logger.info(f"Order #{order.order_number} assigned to {staff_id}")
        return ActionResult(True, order.order_id, "assign")

    async def cancel(self, order: Order, reason: str) -> ActionResult:
        """Cancel through the legal table and the dedicated cancel endpoint."""
        if not is_legal_transition(order.status, OrderStatus.CANCELLED):
            message = f"Cannot cancel order #{order.order_number} in status {order.status.value}"
            logger.info(f"Cancellation rejected: {message}")
            return ActionResult(False, order.order_id, "cancel", message)

        try:
            await self.api.cancel_order(order.order_id, reason)
        except OrderAPIError as e:
            logger.warning(f"Cancellation failed for order {order.order_id}: {e}")
            return ActionResult(False, order.order_id, "cancel", str(e))

        self.store.apply_order(order.base_order().model_copy(update={"status": OrderStatus.CANCELLED}))
        logger.info(f"Order #{order.order_number} cancelled: {reason}")
        return ActionResult(True, order.order_id, "cancel")
