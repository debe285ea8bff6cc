"""
Typed results returned by engine operations.

Nothing in the engine raises for expected failures (illegal transitions,
remote errors, partial batches); callers inspect these instead.
"""

from dataclasses import dataclass, field
from typing import Optional

from staff_console.models import CookingTimer, OrderStatus
from staff_console.schemas import NotificationData, Order


@dataclass
class TransitionResult:
    """Result from a status transition attempt."""
    success: bool
    order_id: str
    from_status: OrderStatus
    to_status: OrderStatus
    rejected: bool = False
    order: Optional[Order] = None
    error_message: Optional[str] = None


@dataclass
class ActionResult:
    """Result from a single-order action (assign, cancel, priority, note)."""
    success: bool
    order_id: str
    action: str
    error_message: Optional[str] = None


@dataclass
class TimerActionResult:
    success: bool
    timer: Optional[CookingTimer] = None
    error_message: Optional[str] = None


@dataclass
class BulkOperationResult:
    """Aggregate outcome of a best-effort batch."""
    success: bool
    processed_count: int
    failed_count: int
    errors: list[str] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "processedCount": self.processed_count,
            "failedCount": self.failed_count,
            "errors": list(self.errors),
            "message": self.message,
        }


@dataclass
class NotificationFetchResult:
    """Result from one (retried) notification fetch."""
    success: bool
    new_notifications: list[NotificationData] = field(default_factory=list)
    unread_count: int = 0
    total_count: int = 0
    attempts: int = 0
    error_message: Optional[str] = None
