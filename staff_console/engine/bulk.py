"""
Bulk Operation Executor

Applies one action to a set of selected orders, one order at a time, and
aggregates per-order outcomes. This is a best-effort batch: there is no
rollback, a failed order never aborts the rest, and the overall result is
successful as soon as one order was processed.

Also owns the console's selection set.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from staff_console.engine.results import BulkOperationResult
from staff_console.engine.state_machine import StatusStateMachine
from staff_console.models import BulkActionType, OrderPriority, OrderStatus
from staff_console.schemas import StaffOrder
from staff_console.services.export.base import BaseOrderExporter
from staff_console.services.order_api.base import BaseOrderAPI, OrderAPIError

logger = logging.getLogger(__name__)


# =============================================================================
# SELECTION
# =============================================================================

class SelectionSet:
    """Order ids picked for the next bulk action (insertion ordered)."""

    def __init__(self):
        self._ids: dict[str, None] = {}
        self.all_selected = False
        self.last_selected: Optional[str] = None

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, order_id: str) -> bool:
        return order_id in self._ids

    def select(self, order_id: str) -> None:
        self._ids[order_id] = None
        self.last_selected = order_id

    def deselect(self, order_id: str) -> None:
        self._ids.pop(order_id, None)
        self.all_selected = False

    def toggle(self, order_id: str) -> bool:
        """Flip membership; returns the new state."""
        if order_id in self._ids:
            self.deselect(order_id)
            return False
        self.select(order_id)
        return True

    def replace(self, order_ids: Iterable[str]) -> None:
        self._ids = dict.fromkeys(order_ids)
        self.all_selected = False
        self.last_selected = next(reversed(self._ids), None) if self._ids else None

    def select_all(self, order_ids: Iterable[str]) -> None:
        """Select every order of the current view."""
        self.replace(order_ids)
        self.all_selected = bool(self._ids)

    def clear(self) -> None:
        self._ids.clear()
        self.all_selected = False
        self.last_selected = None

    def to_dict(self) -> dict:
        return {
            "orderIds": self.ids,
            "allSelected": self.all_selected,
            "lastSelected": self.last_selected,
            "count": len(self),
        }


# =============================================================================
# EXECUTOR
# =============================================================================

@dataclass
class BulkOptions:
    new_status: Optional[OrderStatus] = None
    priority: Optional[OrderPriority] = None
    note: Optional[str] = None


class BulkOperationExecutor:
    """Runs bulk actions sequentially against the order API."""

    def __init__(
        self,
        api: BaseOrderAPI,
        state_machine: StatusStateMachine,
        exporter: BaseOrderExporter,
        throttle_seconds: float = 0.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.api = api
        self.state_machine = state_machine
        self.exporter = exporter
        self.throttle_seconds = throttle_seconds
        self._sleep = sleep
        self.selection = SelectionSet()

    async def execute(
        self,
        action: BulkActionType,
        orders: Sequence[StaffOrder],
        staff_id: Optional[str],
        options: Optional[BulkOptions] = None,
    ) -> BulkOperationResult:
        """
        Apply ``action`` to every order in turn.

        Returns:
            BulkOperationResult: processed + failed always equals len(orders)
        """
        options = options or BulkOptions()
        processed = 0
        errors: list[str] = []

        if not orders:
            return BulkOperationResult(
                success=False, processed_count=0, failed_count=0, message="No orders selected"
            )

        logger.info(f"Bulk {action.value} over {len(orders)} orders")

        for index, order in enumerate(orders):
            if index and self.throttle_seconds > 0:
                await self._sleep(self.throttle_seconds)

            error = await self._apply(action, order, staff_id, options)
            if error is None:
                processed += 1
            else:
                errors.append(error)

        failed = len(errors)
        message = f"{processed} of {len(orders)} orders processed"
        if failed:
            message += f", {failed} failed"
            logger.warning(f"Bulk {action.value}: {message}")
        else:
            logger.info(f"Bulk {action.value}: {message}")

        return BulkOperationResult(
            success=processed > 0,
            processed_count=processed,
            failed_count=failed,
            errors=errors,
            message=message,
        )

    async def _apply(
        self,
        action: BulkActionType,
        order: StaffOrder,
        staff_id: Optional[str],
        options: BulkOptions,
    ) -> Optional[str]:
        """Run the action for one order; returns an error message on failure."""
        label = f"Order #{order.order_number}"

        if action == BulkActionType.ASSIGN_TO_SELF:
            if not order.can_assign_to_self:
                return f"{label}: cannot assign"
            result = await self.state_machine.assign(order, staff_id)
            return None if result.success else f"{label}: {result.error_message}"

        if action == BulkActionType.UPDATE_STATUS:
            if options.new_status is None:
                return f"{label}: no status specified"
            transition = await self.state_machine.transition(order, options.new_status, staff_id, options.note)
            return None if transition.success else f"{label}: {transition.error_message}"

        if action == BulkActionType.SET_PRIORITY:
            if options.priority is None:
                return f"{label}: no priority specified"
            try:
                await self.api.update_priority(order.order_id, options.priority)
            except OrderAPIError as e:
                return f"{label}: {e}"
            return None

        if action == BulkActionType.ADD_NOTE:
            if not options.note:
                return f"{label}: no note specified"
            try:
                await self.api.add_note(order.order_id, options.note, staff_id)
            except OrderAPIError as e:
                return f"{label}: {e}"
            return None

        if action in (BulkActionType.PRINT_ORDERS, BulkActionType.EXPORT_TO_CSV):
            send = self.exporter.print_order if action == BulkActionType.PRINT_ORDERS else self.exporter.export_to_csv
            try:
                exported = await send(order.base_order())
            except Exception as e:
                logger.exception(f"{self.exporter.provider_name} exporter failed for order {order.order_id}")
                return f"{label}: {e}"
            return None if exported.success else f"{label}: {exported.message}"

        return f"{label}: unsupported action {action}"
