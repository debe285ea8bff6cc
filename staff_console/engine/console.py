"""
Staff Console

Composition root wiring the engine together for one staff console:

    refresh (timer / on demand) -> store.replace -> projector -> pipeline
    staff action -> state machine / bulk executor -> API -> forced refresh
    threshold crossings + pushed notifications -> alert channels

Writes are fire-and-await and followed by a full refresh, so concurrent
edits from another console are last-write-wins until the next poll.
Timers and the display clock read the store but never write it.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from staff_console.core.config import Settings, get_settings
from staff_console.engine.alerts import AlertPipeline
from staff_console.engine.bulk import BulkOperationExecutor, BulkOptions
from staff_console.engine.clock import Clock, utcnow
from staff_console.engine.notifications import NotificationPipeline
from staff_console.engine.pipeline import build_working_set
from staff_console.engine.projector import badge_thresholds, project_order, project_orders
from staff_console.engine.results import (
    ActionResult,
    BulkOperationResult,
    NotificationFetchResult,
    TimerActionResult,
    TransitionResult,
)
from staff_console.engine.scheduler import PeriodicTask, Scheduler
from staff_console.engine.state_machine import StatusStateMachine
from staff_console.engine.store import OrderSnapshotStore
from staff_console.engine.timers import CookingTimerManager
from staff_console.models import BulkActionType, OrderStatus
from staff_console.schemas import QueueSummary, StaffOrder, StaffOrderFilters
from staff_console.services.alerts.dispatcher import AlertDispatcher, build_alert_dispatcher
from staff_console.services.export import get_order_exporter
from staff_console.services.export.base import BaseOrderExporter
from staff_console.services.order_api.base import BaseOrderAPI, OrderAPIError

logger = logging.getLogger(__name__)


class OrderNotFoundError(KeyError):
    """No order with this id in the current snapshot."""

    def __init__(self, order_id: str):
        super().__init__(order_id)
        self.order_id = order_id

    def __str__(self) -> str:
        return f"Order {self.order_id} not found"


class StaffConsole:
    """One staff member's view of the live order queue."""

    def __init__(
        self,
        api: BaseOrderAPI,
        settings: Optional[Settings] = None,
        exporter: Optional[BaseOrderExporter] = None,
        dispatcher: Optional[AlertDispatcher] = None,
        clock: Clock = utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self.api = api
        self.staff_id = self.settings.staff_id
        self._clock = clock

        self.store = OrderSnapshotStore(clock)
        self.state_machine = StatusStateMachine(api, self.store)
        self.timers = CookingTimerManager(clock, self.settings.timer_near_complete_seconds)
        self.dispatcher = dispatcher or build_alert_dispatcher(self.settings)
        self.notifications = NotificationPipeline(
            api,
            self.dispatcher,
            max_retries=self.settings.notification_max_retries,
            base_delay=self.settings.notification_retry_base_delay,
            clock=clock,
            sleep=sleep,
        )
        self.alerts = AlertPipeline(self.store, self.notifications, self.settings.wait_alert_minutes_list)
        self.bulk = BulkOperationExecutor(
            api,
            self.state_machine,
            exporter or get_order_exporter(),
            throttle_seconds=self.settings.bulk_throttle_seconds,
            sleep=sleep,
        )
        self.thresholds = badge_thresholds(
            self.settings.urgency_badge_minutes, self.settings.wait_alert_minutes_list
        )

        self._refreshing = False
        self.last_refresh_error: Optional[str] = None

        self.scheduler = Scheduler()
        self.scheduler.add(PeriodicTask("order-refresh", self.settings.refresh_interval_seconds, self.refresh))
        self.scheduler.add(PeriodicTask("clock-tick", self.settings.clock_tick_seconds, self.tick))
        self.scheduler.add(
            PeriodicTask("notification-poll", self.settings.notification_poll_seconds, self.poll_notifications)
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        await self.refresh()
        await self.poll_notifications()
        self.scheduler.start()
        logger.info(f"🚀 Staff console running for {self.staff_id or 'anonymous'}")

    async def stop(self) -> None:
        await self.scheduler.stop()
        logger.info("Staff console stopped")

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    async def refresh(self) -> bool:
        """Fetch and install a full snapshot; skipped while one is in flight."""
        if self._refreshing:
            logger.debug("Refresh already in progress, skipping")
            return False

        self._refreshing = True
        try:
            snapshot = await self.api.fetch_order_queue()
        except OrderAPIError as e:
            self.last_refresh_error = str(e)
            logger.warning(f"Order refresh failed: {e}")
            return False
        finally:
            self._refreshing = False

        self.last_refresh_error = None
        self.store.replace(snapshot)
        self._prune_departed()
        await self.alerts.scan_orders(self.staff_orders())
        return True

    def _prune_departed(self) -> None:
        """Drop latches and finished timers of orders that left the snapshot."""
        live = [o.order_id for o in self.store.orders]
        latches = self.alerts.latches.retain(live)
        timers = self.timers.prune(live)
        if latches or timers:
            logger.debug(f"Pruned {latches} latches and {timers} timers for departed orders")

    async def tick(self) -> None:
        """Clock tick: timer thresholds and wait-time marks."""
        await self.alerts.handle_timer_events(self.timers.check_alerts())
        await self.alerts.scan_orders(self.staff_orders())

    async def poll_notifications(self) -> Optional[NotificationFetchResult]:
        if not self.staff_id:
            return None
        return await self.notifications.fetch(self.staff_id)

    # =========================================================================
    # VIEWS
    # =========================================================================

    def now(self):
        return self._clock()

    def staff_orders(self) -> list[StaffOrder]:
        return project_orders(self.store.orders, self._clock(), self.staff_id, self.thresholds)

    def staff_order(self, order_id: str) -> StaffOrder:
        order = self.store.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return project_order(order, self._clock(), self.staff_id, self.thresholds)

    def view(self, filters: Optional[StaffOrderFilters] = None) -> list[StaffOrder]:
        """The filtered, sorted working set."""
        return build_working_set(self.staff_orders(), filters, self.staff_id)

    def queue(self) -> dict[str, list[StaffOrder]]:
        now = self._clock()
        return {
            bucket: project_orders(orders, now, self.staff_id, self.thresholds)
            for bucket, orders in self.store.queue_buckets().items()
        }

    def summary(self) -> QueueSummary:
        return self.store.summary()

    def kitchen_view(self) -> list[dict]:
        now = self._clock()
        view = []
        for order in self.store.kitchen_orders():
            timer = self.timers.active_timer_for(order.order_id)
            view.append({
                "order": project_order(order, now, self.staff_id, self.thresholds),
                "timer": self.timers.describe(timer) if timer else None,
            })
        return view

    # =========================================================================
    # SINGLE-ORDER ACTIONS
    # =========================================================================

    async def update_status(self, order_id: str, new_status: OrderStatus, note: Optional[str] = None) -> TransitionResult:
        result = await self.state_machine.transition(self.staff_order(order_id), new_status, self.staff_id, note)
        if result.success:
            await self.refresh()
        return result

    async def assign(self, order_id: str, staff_id: Optional[str] = None) -> ActionResult:
        result = await self.state_machine.assign(self.staff_order(order_id), staff_id or self.staff_id)
        if result.success:
            await self.refresh()
        return result

    async def cancel(self, order_id: str, reason: str) -> ActionResult:
        result = await self.state_machine.cancel(self.staff_order(order_id), reason)
        if result.success:
            await self.refresh()
        return result

    # =========================================================================
    # TIMERS
    # =========================================================================

    def start_timer(self, order_id: str, estimated_minutes: int) -> TimerActionResult:
        return self.timers.start(self.staff_order(order_id), estimated_minutes, self.staff_id)

    def pause_timer(self, timer_id: str) -> TimerActionResult:
        return self.timers.pause(timer_id)

    def resume_timer(self, timer_id: str) -> TimerActionResult:
        return self.timers.resume(timer_id)

    def complete_timer(self, timer_id: str) -> TimerActionResult:
        return self.timers.complete(timer_id)

    # =========================================================================
    # SELECTION & BULK
    # =========================================================================

    @property
    def selection(self):
        return self.bulk.selection

    def select_all(self, filters: Optional[StaffOrderFilters] = None) -> list[str]:
        ids = [o.order_id for o in self.view(filters)]
        self.selection.select_all(ids)
        return ids

    async def run_bulk(
        self,
        action: BulkActionType,
        order_ids: Optional[list[str]] = None,
        options: Optional[BulkOptions] = None,
    ) -> BulkOperationResult:
        """Run a bulk action over ``order_ids`` or the current selection."""
        ids = list(order_ids) if order_ids is not None else self.selection.ids
        now = self._clock()

        orders: list[StaffOrder] = []
        missing: list[str] = []
        for order_id in ids:
            order = self.store.get(order_id)
            if order is None:
                missing.append(order_id)
            else:
                orders.append(project_order(order, now, self.staff_id, self.thresholds))

        result = await self.bulk.execute(action, orders, self.staff_id, options)
        if missing:
            result.failed_count += len(missing)
            result.errors.extend(f"Order {order_id}: not found" for order_id in missing)
            result.message = f"{result.processed_count} of {len(ids)} orders processed, {result.failed_count} failed"

        if result.success:
            self.selection.clear()
            await self.refresh()
        return result

    # =========================================================================
    # ALERTS & NOTIFICATIONS
    # =========================================================================

    def acknowledge_alert(self, alert_id: str, staff_id: Optional[str] = None) -> bool:
        return self.store.acknowledge_alert(alert_id, staff_id or self.staff_id)

    async def mark_notification_read(self, notification_id: Optional[str] = None) -> ActionResult:
        if not self.staff_id:
            return ActionResult(False, notification_id or "all", "mark_read", "No staff member identified")
        return await self.notifications.mark_read(self.staff_id, notification_id)

    def switch_staff(self, staff_id: str) -> None:
        """Hand the console over to another staff member."""
        previous = self.staff_id
        self.staff_id = staff_id
        self.selection.clear()
        self.notifications.reset()
        logger.info(f"Console switched from {previous} to {staff_id}")
