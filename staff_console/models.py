"""
Domain Models

Enumerations and mutable in-memory records owned by the staff console:
- Order lifecycle / priority / source enumerations
- Cooking timers (created by staff, independent of order status)
- Local order alerts raised on threshold crossings

Orders themselves are owned by the remote order API and are modelled as
immutable pydantic schemas in ``staff_console.schemas``.

Author: Khalil Bannouri
Version: 1.0.0
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


# =============================================================================
# ORDER ENUMS
# =============================================================================

class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    PREPARING = "PREPARING"
    READY = "READY"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"  # Set by the payment subsystem only


class OrderPriority(str, enum.Enum):
    """Staff-set order priority."""
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class OrderSource(str, enum.Enum):
    """Channel the order came in through."""
    DINE_IN = "DINE_IN"
    TAKEAWAY = "TAKEAWAY"
    DELIVERY = "DELIVERY"
    ONLINE = "ONLINE"
    APP = "APP"


class OrderItemStatus(str, enum.Enum):
    """Per-item kitchen tracking status."""
    PENDING = "PENDING"
    PREPARING = "PREPARING"
    COOKING = "COOKING"
    READY = "READY"
    SERVED = "SERVED"
    CANCELLED = "CANCELLED"


class UrgencyLevel(str, enum.Enum):
    """Derived severity combining staff priority and overdue detection."""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"
    EMERGENCY = "EMERGENCY"


class WaitBadge(str, enum.Enum):
    """Inline badge shown once an order has waited long enough."""
    WAITING = "WAITING"
    HIGH = "HIGH"
    URGENT = "URGENT"
    EMERGENCY = "EMERGENCY"


class SortField(str, enum.Enum):
    ORDER_TIME = "orderTime"
    PRIORITY = "priority"
    STATUS = "status"
    TABLE_NUMBER = "tableNumber"
    TOTAL_AMOUNT = "totalAmount"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class BulkActionType(str, enum.Enum):
    """Actions the bulk executor can apply to a selection."""
    ASSIGN_TO_SELF = "ASSIGN_TO_SELF"
    UPDATE_STATUS = "UPDATE_STATUS"
    SET_PRIORITY = "SET_PRIORITY"
    ADD_NOTE = "ADD_NOTE"
    PRINT_ORDERS = "PRINT_ORDERS"
    EXPORT_TO_CSV = "EXPORT_TO_CSV"


# =============================================================================
# ALERT / NOTIFICATION ENUMS
# =============================================================================

class TimerStatus(str, enum.Enum):
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


class AlertType(str, enum.Enum):
    """Kinds of locally raised order alerts."""
    OVERDUE = "OVERDUE"
    HIGH_PRIORITY = "HIGH_PRIORITY"
    KITCHEN_DELAY = "KITCHEN_DELAY"
    CUSTOMER_COMPLAINT = "CUSTOMER_COMPLAINT"
    PAYMENT_ISSUE = "PAYMENT_ISSUE"
    INVENTORY_LOW = "INVENTORY_LOW"
    SPECIAL_REQUEST = "SPECIAL_REQUEST"


class AlertSeverity(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class NotificationType(str, enum.Enum):
    NEW_ORDER = "NEW_ORDER"
    ORDER_STATUS_CHANGE = "ORDER_STATUS_CHANGE"
    ORDER_OVERDUE = "ORDER_OVERDUE"
    KITCHEN_ALERT = "KITCHEN_ALERT"
    STAFF_MESSAGE = "STAFF_MESSAGE"
    SYSTEM = "SYSTEM"
    SHIFT_START = "SHIFT_START"
    SHIFT_END = "SHIFT_END"
    EMERGENCY = "EMERGENCY"


class NotificationPriority(str, enum.Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"
    EMERGENCY = "EMERGENCY"


# =============================================================================
# COOKING TIMERS
# =============================================================================

@dataclass
class TimerAlerts:
    """One-way latches for the timer thresholds."""
    half_time: bool = False
    near_complete: bool = False
    overdue: bool = False


@dataclass
class CookingTimer:
    """
    Per-order cooking timer.

    Durations are in seconds. ``total_paused_duration`` only accumulates
    completed pause intervals; an in-progress pause is tracked by
    ``paused_time`` until the timer is resumed or completed.
    """
    timer_id: str
    order_id: str
    start_time: datetime
    estimated_duration: int
    staff_id: Optional[str] = None
    status: TimerStatus = TimerStatus.RUNNING
    total_paused_duration: float = 0.0
    paused_time: Optional[datetime] = None
    resume_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    actual_duration: Optional[float] = None
    alerts: TimerAlerts = field(default_factory=TimerAlerts)

    @property
    def is_active(self) -> bool:
        return self.status != TimerStatus.COMPLETED

    def to_dict(self) -> dict:
        return {
            "timerId": self.timer_id,
            "orderId": self.order_id,
            "staffId": self.staff_id,
            "startTime": self.start_time.isoformat(),
            "status": self.status.value,
            "estimatedDuration": self.estimated_duration,
            "totalPausedDuration": self.total_paused_duration,
            "pausedTime": self.paused_time.isoformat() if self.paused_time else None,
            "resumeTime": self.resume_time.isoformat() if self.resume_time else None,
            "endTime": self.end_time.isoformat() if self.end_time else None,
            "actualDuration": self.actual_duration,
            "alerts": {
                "halfTime": self.alerts.half_time,
                "nearComplete": self.alerts.near_complete,
                "overdue": self.alerts.overdue,
            },
        }


# =============================================================================
# ORDER ALERTS
# =============================================================================

@dataclass
class OrderAlert:
    """Locally raised alert. Never expires; cleared by ack or manual clear."""
    id: str
    order_id: str
    type: AlertType
    severity: AlertSeverity
    message: str
    created_at: datetime
    acknowledged: bool = False
    acknowledged_by: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "acknowledged": self.acknowledged,
            "acknowledgedBy": self.acknowledged_by,
            "createdAt": self.created_at.isoformat(),
        }
