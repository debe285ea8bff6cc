"""
Order API Abstract Base Class

Defines the interface the console uses to talk to the remote restaurant
order API. Supports both Mock (development) and HTTP (production)
implementations.

Every failure is raised as ``OrderAPIError``; callers in the engine turn it
into a typed result instead of letting it propagate.

Author: Khalil Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from typing import Optional

from staff_console.models import OrderPriority, OrderStatus
from staff_console.schemas import NotificationList, Order, OrderQueueSnapshot


class OrderAPIError(Exception):
    """Remote call failed (transport error or non-2xx response)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Client errors (4xx) are never retried."""
        if self.status_code is None:
            return True
        return not 400 <= self.status_code < 500

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class BaseOrderAPI(ABC):
    """Abstract base class for order API clients."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def fetch_order_queue(self) -> OrderQueueSnapshot:
        """Fetch the full staff order queue snapshot."""
        pass

    @abstractmethod
    async def update_order_status(
        self,
        order_id: str,
        new_status: OrderStatus,
        staff_id: Optional[str],
        note: Optional[str] = None,
    ) -> Order:
        """Change an order's status; the note is kept as an audit entry."""
        pass

    @abstractmethod
    async def assign_order(self, order_id: str, staff_id: str) -> None:
        """Assign an order to a staff member."""
        pass

    @abstractmethod
    async def cancel_order(self, order_id: str, reason: str) -> None:
        """Cancel an order with a reason."""
        pass

    @abstractmethod
    async def update_priority(self, order_id: str, priority: OrderPriority) -> None:
        """Set the staff priority of an order."""
        pass

    @abstractmethod
    async def add_note(self, order_id: str, note: str, staff_id: Optional[str] = None) -> None:
        """Attach a staff note to an order."""
        pass

    @abstractmethod
    async def fetch_notifications(
        self,
        staff_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> NotificationList:
        """Fetch notifications addressed to a staff member."""
        pass

    @abstractmethod
    async def mark_notification_read(
        self,
        staff_id: str,
        notification_id: Optional[str] = None,
    ) -> None:
        """Mark one notification read, or all of them when no id is given."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        return None
