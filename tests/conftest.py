"""
Shared fixtures for the staff console tests.

Settings are pinned through environment variables before anything reads
them: the mock order API never fails and never sleeps, and the periodic
loops are slow enough not to interfere with a test run.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock

import pytest

os.environ.setdefault("ENV_MODE", "development")
os.environ.setdefault("MOCK_FAILURE_RATE", "0")
os.environ.setdefault("MOCK_MIN_LATENCY", "0")
os.environ.setdefault("MOCK_MAX_LATENCY", "0")
os.environ.setdefault("REFRESH_INTERVAL_SECONDS", "3600")
os.environ.setdefault("CLOCK_TICK_SECONDS", "3600")
os.environ.setdefault("NOTIFICATION_POLL_SECONDS", "3600")
os.environ.setdefault("DATA_DIRECTORY", tempfile.mkdtemp(prefix="staff_console_"))
os.environ.setdefault("STAFF_ID", "staff-001")

from staff_console.core.config import Settings  # noqa: E402
from staff_console.engine.clock import ManualClock  # noqa: E402
from staff_console.engine.store import OrderSnapshotStore  # noqa: E402
from staff_console.models import (  # noqa: E402
    NotificationPriority,
    NotificationType,
    OrderPriority,
    OrderSource,
    OrderStatus,
)
from staff_console.schemas import NotificationData, Order, OrderItem, OrderQueueSnapshot  # noqa: E402
from staff_console.services.alerts.dispatcher import AlertDispatcher  # noqa: E402
from staff_console.services.export.base import BaseOrderExporter, ExportResult  # noqa: E402
from staff_console.services.order_api.mock import MockOrderAPI  # noqa: E402

NOW = datetime(2026, 3, 14, 18, 0, 0, tzinfo=timezone.utc)


def make_order(
    order_id: str = "ord-1",
    status: OrderStatus = OrderStatus.PENDING,
    priority: OrderPriority = OrderPriority.NORMAL,
    minutes_ago: int = 5,
    table_number: Optional[str] = "4",
    total_amount: float = 25.0,
    assigned_staff: Optional[str] = None,
    is_overdue: bool = False,
    overdue_minutes: int = 0,
    source: OrderSource = OrderSource.DINE_IN,
    customer_name: Optional[str] = "Jane Doe",
    estimated_in_minutes: Optional[int] = 20,
    special_instructions: Optional[str] = None,
    items: Optional[list[OrderItem]] = None,
    now: datetime = NOW,
) -> Order:
    """Build an order relative to ``now``."""
    return Order(
        order_id=order_id,
        order_number=order_id.replace("ord-", ""),
        table_number=table_number,
        customer_name=customer_name,
        items=items or [],
        total_amount=total_amount,
        status=status,
        priority=priority,
        source=source,
        order_time=now - timedelta(minutes=minutes_ago),
        estimated_complete_time=(
            now + timedelta(minutes=estimated_in_minutes) if estimated_in_minutes is not None else None
        ),
        assigned_staff=assigned_staff,
        is_overdue=is_overdue,
        overdue_minutes=overdue_minutes,
        special_instructions=special_instructions,
    )


def make_notification(
    notification_id: str = "n-1",
    type: NotificationType = NotificationType.NEW_ORDER,
    priority: NotificationPriority = NotificationPriority.NORMAL,
    is_read: bool = False,
    sent_at: datetime = NOW,
    recipient_id: Optional[str] = "staff-001",
) -> NotificationData:
    return NotificationData(
        notification_id=notification_id,
        recipient_id=recipient_id,
        type=type,
        priority=priority,
        title=f"{type.value} {notification_id}",
        message=f"Message for {notification_id}",
        is_read=is_read,
        sent_at=sent_at,
    )


class RecordingExporter(BaseOrderExporter):
    """Exporter that records calls and can be told to fail for some orders."""

    def __init__(self, failing: tuple[str, ...] = ()):
        self.failing = set(failing)
        self.exported: list[str] = []
        self.printed: list[str] = []

    @property
    def provider_name(self) -> str:
        return "recording"

    async def export_to_csv(self, order: Order) -> ExportResult:
        if order.order_id in self.failing:
            return ExportResult(False, order.order_id, "disk full", provider="recording")
        self.exported.append(order.order_id)
        return ExportResult(True, order.order_id, "exported", provider="recording")

    async def print_order(self, order: Order) -> ExportResult:
        if order.order_id in self.failing:
            return ExportResult(False, order.order_id, "printer offline", provider="recording")
        self.printed.append(order.order_id)
        return ExportResult(True, order.order_id, "printed", provider="recording")


@pytest.fixture
def clock():
    """Clock frozen at NOW until advanced."""
    return ManualClock(NOW)


@pytest.fixture
def settings(tmp_path):
    return Settings(data_directory=str(tmp_path), staff_id="staff-001")


@pytest.fixture
def mock_api():
    """In-memory order API without seeded data, latency or failures."""
    return MockOrderAPI(failure_rate=0.0, min_latency=0.0, max_latency=0.0, seed=False)


@pytest.fixture
def store(clock):
    return OrderSnapshotStore(clock)


@pytest.fixture
def populated_store(store):
    store.replace(OrderQueueSnapshot(orders=[
        make_order("ord-1", OrderStatus.PENDING),
        make_order("ord-2", OrderStatus.PREPARING, OrderPriority.HIGH),
        make_order("ord-3", OrderStatus.READY),
    ]))
    return store


@pytest.fixture
def dispatcher():
    """Dispatcher whose dispatch is observable."""
    mock = AlertDispatcher([])
    mock.dispatch = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def exporter():
    return RecordingExporter()
