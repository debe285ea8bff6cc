"""
Notification Pipeline

Keeps the staff member's notification list in sync with the server and
pushes anything new through the alert channels.

- Server notifications are polled; each fetch is retried with exponential
  backoff and then reported as a recoverable error.
- The first successful fetch only primes the seen-set, so a console that
  starts up does not replay the backlog on every channel.
- Push events and locally raised notifications are de-duplicated by id.
- Read flags change optimistically; the next fetch reconciles them.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
import uuid
from collections import Counter
from typing import Awaitable, Callable, Optional

from staff_console.engine.clock import Clock, utcnow
from staff_console.engine.results import ActionResult, NotificationFetchResult
from staff_console.engine.retry import retry_with_backoff
from staff_console.models import NotificationPriority, NotificationType
from staff_console.schemas import NotificationData
from staff_console.services.alerts.dispatcher import AlertDispatcher
from staff_console.services.order_api.base import BaseOrderAPI, OrderAPIError

logger = logging.getLogger(__name__)

URGENT_PRIORITIES = frozenset({NotificationPriority.URGENT, NotificationPriority.EMERGENCY})
LOCAL_PREFIX = "local_"


class NotificationPipeline:
    """Notification list, seen-set and channel fan-out for one console."""

    def __init__(
        self,
        api: BaseOrderAPI,
        dispatcher: AlertDispatcher,
        max_retries: int = 3,
        base_delay: float = 1.0,
        clock: Clock = utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.api = api
        self.dispatcher = dispatcher
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._clock = clock
        self._sleep = sleep

        self._server: dict[str, NotificationData] = {}
        self._local: dict[str, NotificationData] = {}
        self._seen: set[str] = set()
        self._primed = False
        self.server_total = 0
        self.last_error: Optional[str] = None

    # =========================================================================
    # FETCH
    # =========================================================================

    async def fetch(self, staff_id: str, unread_only: bool = False, limit: Optional[int] = None) -> NotificationFetchResult:
        attempts = 0

        def count(attempt: int) -> None:
            nonlocal attempts
            attempts = attempt

        try:
            page = await retry_with_backoff(
                lambda: self.api.fetch_notifications(staff_id, unread_only=unread_only, limit=limit),
                max_retries=self.max_retries,
                base_delay=self.base_delay,
                sleep=self._sleep,
                label="Notification fetch",
                on_attempt=count,
            )
        except OrderAPIError as e:
            self.last_error = str(e)
            return NotificationFetchResult(success=False, attempts=attempts, error_message=str(e))

        self.last_error = None
        self._server = {n.notification_id: n for n in page.notifications}
        self.server_total = page.total_count
        if limit is None and not unread_only:
            # A full page lists every server id still alive
            self._seen &= set(self._server) | set(self._local)

        fresh = [n for n in page.notifications if n.notification_id not in self._seen]
        self._seen.update(n.notification_id for n in fresh)

        if not self._primed:
            self._primed = True
            logger.debug(f"Notification seen-set primed with {len(fresh)} ids")
            fresh = []
        else:
            for notification in sorted(fresh, key=lambda n: n.sent_at):
                if not notification.is_read:
                    await self._announce(notification)

        return NotificationFetchResult(
            success=True,
            new_notifications=fresh,
            unread_count=page.unread_count,
            total_count=page.total_count,
            attempts=attempts,
        )

    # =========================================================================
    # INBOUND
    # =========================================================================

    async def push(self, notification: NotificationData) -> bool:
        """Accept a pushed notification; False if it was already seen."""
        if notification.notification_id in self._seen:
            return False
        self._seen.add(notification.notification_id)
        if notification.notification_id.startswith(LOCAL_PREFIX):
            self._local[notification.notification_id] = notification
        else:
            self._server[notification.notification_id] = notification
            self.server_total += 1
        await self._announce(notification)
        return True

    async def notify_local(
        self,
        type: NotificationType,
        priority: NotificationPriority,
        title: str,
        message: str,
        related_order_id: Optional[str] = None,
    ) -> NotificationData:
        """Raise a console-side notification and push it through the channels."""
        notification = NotificationData(
            notification_id=f"{LOCAL_PREFIX}{uuid.uuid4().hex[:12]}",
            type=type,
            priority=priority,
            title=title,
            message=message,
            related_order_id=related_order_id,
            sent_at=self._clock(),
        )
        await self.push(notification)
        return notification

    async def _announce(self, notification: NotificationData) -> None:
        deliveries = await self.dispatcher.dispatch(notification)
        delivered = [d.channel for d in deliveries if d.delivered]
        logger.info(
            f"🔔 {notification.priority.value} {notification.type.value}: "
            f"{notification.title} -> {delivered or 'no channel'}"
        )

    # =========================================================================
    # READ STATE
    # =========================================================================

    async def mark_read(self, staff_id: str, notification_id: Optional[str] = None) -> ActionResult:
        """Mark one (or every) notification read, locally first."""
        target = notification_id or "all"
        if notification_id is not None and notification_id not in self._server and notification_id not in self._local:
            return ActionResult(False, target, "mark_read", f"Notification {notification_id} not found")

        self._local = self._marked(self._local, notification_id)
        self._server = self._marked(self._server, notification_id)

        if notification_id is not None and notification_id.startswith(LOCAL_PREFIX):
            return ActionResult(True, target, "mark_read")

        try:
            await self.api.mark_notification_read(staff_id, notification_id)
        except OrderAPIError as e:
            logger.warning(f"Mark read failed for {target}: {e}")
            return ActionResult(False, target, "mark_read", str(e))
        return ActionResult(True, target, "mark_read")

    @staticmethod
    def _marked(items: dict[str, NotificationData], notification_id: Optional[str]) -> dict[str, NotificationData]:
        return {
            key: n.model_copy(update={"is_read": True})
            if notification_id is None or key == notification_id
            else n
            for key, n in items.items()
        }

    # =========================================================================
    # SELECTORS
    # =========================================================================

    @property
    def notifications(self) -> list[NotificationData]:
        """Server and local notifications, newest first."""
        merged = list(self._server.values()) + list(self._local.values())
        return sorted(merged, key=lambda n: n.sent_at, reverse=True)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.is_read)

    def filter(
        self,
        type: Optional[NotificationType] = None,
        priority: Optional[NotificationPriority] = None,
        is_read: Optional[bool] = None,
    ) -> list[NotificationData]:
        return [
            n for n in self.notifications
            if (type is None or n.type == type)
            and (priority is None or n.priority == priority)
            and (is_read is None or n.is_read == is_read)
        ]

    def urgent(self) -> list[NotificationData]:
        return [n for n in self.notifications if n.priority in URGENT_PRIORITIES and not n.is_read]

    def stats(self) -> dict:
        items = self.notifications
        return {
            "total": len(items),
            "unread": sum(1 for n in items if not n.is_read),
            "byType": dict(Counter(n.type.value for n in items)),
            "byPriority": dict(Counter(n.priority.value for n in items)),
        }

    def reset(self) -> None:
        """Forget everything (used when another staff member takes over)."""
        self._server.clear()
        self._local.clear()
        self._seen.clear()
        self._primed = False
        self.server_total = 0
        self.last_error = None
