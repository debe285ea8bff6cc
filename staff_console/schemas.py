"""
Pydantic Schemas

Wire models shared with the remote order API (camelCase on the wire,
snake_case in Python) plus the request bodies accepted by the console's
HTTP surface.

Orders, notifications and projected StaffOrders are frozen: the console
never patches a fetched record, it replaces it.

Author: Khalil Bannouri
Version: 1.0.0
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from staff_console.models import (
    NotificationPriority,
    NotificationType,
    OrderItemStatus,
    OrderPriority,
    OrderSource,
    OrderStatus,
    PaymentStatus,
    SortDirection,
    SortField,
    UrgencyLevel,
    WaitBadge,
    BulkActionType,
)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps from the API as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CamelModel(BaseModel):
    """Base for models exchanged with the order API."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class RequestModel(BaseModel):
    """Base for console request bodies (accepts camelCase or snake_case)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# ORDER SCHEMAS
# =============================================================================

class OrderItem(CamelModel):
    """Single line of an order, tracked individually by the kitchen."""
    item_id: str
    menu_item_id: Optional[str] = None
    name: str
    quantity: int = Field(default=1, ge=1)
    unit_price: float = 0.0
    total_price: float = 0.0
    special_requests: Optional[str] = None
    preparation_time: Optional[int] = None
    status: OrderItemStatus = OrderItemStatus.PENDING
    assigned_chef: Optional[str] = None
    allergens: List[str] = Field(default_factory=list)

    @field_validator("item_id", "menu_item_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if v is not None else v


class Order(CamelModel):
    """An order as returned by the staff queue endpoint."""
    order_id: str
    order_number: str
    table_number: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    items: List[OrderItem] = Field(default_factory=list)
    total_amount: float = 0.0
    status: OrderStatus
    priority: OrderPriority = OrderPriority.NORMAL
    payment_status: PaymentStatus = PaymentStatus.PENDING
    source: OrderSource = OrderSource.DINE_IN
    order_time: datetime
    estimated_complete_time: Optional[datetime] = None
    actual_complete_time: Optional[datetime] = None
    assigned_staff: Optional[str] = None
    is_overdue: bool = False
    overdue_minutes: int = 0
    special_instructions: Optional[str] = None

    @field_validator("order_id", "order_number", "table_number", "assigned_staff", mode="before")
    @classmethod
    def coerce_str(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("order_time", "estimated_complete_time", "actual_complete_time")
    @classmethod
    def normalize_tz(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else v

    def base_order(self) -> "Order":
        """Plain Order copy without any projected fields."""
        if type(self) is Order:
            return self
        return Order(**self.model_dump(include=set(Order.model_fields)))


class QueueSummary(CamelModel):
    """Aggregate figures shown above the queue."""
    pending_count: int = 0
    processing_count: int = 0
    urgent_count: int = 0
    overdue_count: int = 0
    average_wait_time: float = 0.0
    total_revenue: float = 0.0
    completion_rate: float = 0.0


class OrderQueueSnapshot(CamelModel):
    """Full snapshot returned by ``fetch_order_queue``."""
    orders: List[Order] = Field(default_factory=list)
    summary: Optional[QueueSummary] = None


class StaffOrder(Order):
    """
    Order plus the operational fields derived for the current staff member.

    Produced by ``engine.projector.project_order``; rebuilt every cycle and
    never sent back to the API.
    """
    urgency_level: UrgencyLevel
    can_assign_to_self: bool
    can_start_cooking: bool
    can_mark_ready: bool
    can_complete: bool
    can_accept: bool
    can_reject: bool
    actual_wait_time: int
    estimated_remaining_time: int
    delayed_minutes: int
    priority_reason: Optional[str] = None
    allergy_warnings: List[str] = Field(default_factory=list)
    has_special_requests: bool = False
    wait_badge: Optional[WaitBadge] = None


# =============================================================================
# NOTIFICATION SCHEMAS
# =============================================================================

class NotificationData(CamelModel):
    """Server-originated staff notification."""
    notification_id: str
    recipient_id: Optional[str] = None
    type: NotificationType
    priority: NotificationPriority = NotificationPriority.NORMAL
    title: str
    message: str
    related_order_id: Optional[str] = None
    is_read: bool = False
    sent_at: datetime
    expires_at: Optional[datetime] = None

    @field_validator("notification_id", "related_order_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("sent_at", "expires_at")
    @classmethod
    def normalize_tz(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else v


class NotificationList(CamelModel):
    notifications: List[NotificationData] = Field(default_factory=list)
    unread_count: int = 0
    total_count: int = 0


# =============================================================================
# FILTERS
# =============================================================================

class StaffOrderFilters(RequestModel):
    """
    Working-set filters for the staff queue.

    Every unset field is a pass-through; set fields are AND-combined.
    """
    search: Optional[str] = None
    status: Optional[List[OrderStatus]] = None
    priority: Optional[List[OrderPriority]] = None
    urgency: Optional[List[UrgencyLevel]] = None
    source: Optional[List[OrderSource]] = None
    assigned_to_me: bool = False
    is_overdue: bool = False
    is_delayed: bool = False
    has_special_requests: bool = False
    has_allergy_warnings: bool = False
    table_number: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    min_wait_time: Optional[int] = None
    max_wait_time: Optional[int] = None
    sort_by: SortField = SortField.ORDER_TIME
    sort_direction: SortDirection = SortDirection.ASC


# =============================================================================
# CONSOLE REQUEST SCHEMAS
# =============================================================================

class StatusUpdateRequest(RequestModel):
    new_status: OrderStatus
    note: Optional[str] = Field(None, max_length=500)


class AssignRequest(RequestModel):
    staff_id: Optional[str] = None


class CancelRequest(RequestModel):
    reason: str = Field(..., min_length=1, max_length=500)


class TimerStartRequest(RequestModel):
    order_id: str
    estimated_minutes: int = Field(..., ge=1, le=480)


class SelectionRequest(RequestModel):
    order_ids: List[str] = Field(default_factory=list)


class BulkActionRequest(RequestModel):
    """Bulk action over the given ids, or the current selection when omitted."""
    action: BulkActionType
    order_ids: Optional[List[str]] = None
    new_status: Optional[OrderStatus] = None
    priority: Optional[OrderPriority] = None
    note: Optional[str] = Field(None, max_length=500)


class AcknowledgeRequest(RequestModel):
    staff_id: Optional[str] = None


class MarkReadRequest(RequestModel):
    notification_id: Optional[str] = None


class ChannelSettingsUpdate(RequestModel):
    sound_enabled: Optional[bool] = None
    vibration_enabled: Optional[bool] = None
    desktop_enabled: Optional[bool] = None
    sound_volume: Optional[float] = Field(None, ge=0.0, le=1.0)


class StaffSwitchRequest(RequestModel):
    staff_id: str = Field(..., min_length=1)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    order_api: str
    redis: str
    environment: str
    timestamp: datetime
