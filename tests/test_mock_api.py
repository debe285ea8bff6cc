"""
Tests for the development mock order API.
"""

import pytest

from staff_console.models import NotificationType, OrderStatus
from staff_console.services.order_api import MockOrderAPI, OrderAPIError


@pytest.fixture
def api():
    return MockOrderAPI(failure_rate=0.0, min_latency=0.0, max_latency=0.0)


@pytest.mark.asyncio
async def test_seeded_queue_derives_overdue(api):
    snapshot = await api.fetch_order_queue()

    assert len(snapshot.orders) == 6
    assert snapshot.summary is None
    overdue = [o.order_number for o in snapshot.orders if o.is_overdue]
    assert overdue == ["1003"]


@pytest.mark.asyncio
async def test_status_update_notifies_staff(api):
    updated = await api.update_order_status("ord-1001", OrderStatus.CONFIRMED, "staff-001", note="VIP")

    assert updated.status == OrderStatus.CONFIRMED
    assert api.notes_for("ord-1001") == [{"note": "VIP", "staff_id": "staff-001"}]
    page = await api.fetch_notifications("staff-001", unread_only=True)
    assert page.notifications[0].type == NotificationType.ORDER_STATUS_CHANGE
    assert page.unread_count == 2


@pytest.mark.asyncio
async def test_notification_paging(api):
    for n in range(5):
        api.push_notification(None, NotificationType.NEW_ORDER, f"New {n}", "placed")
    page = await api.fetch_notifications("staff-001", limit=2, offset=1)
    assert len(page.notifications) == 2
    assert page.notifications[0].sent_at >= page.notifications[1].sent_at
    assert page.total_count == 6


@pytest.mark.asyncio
async def test_unknown_order_is_404(api):
    with pytest.raises(OrderAPIError) as exc_info:
        await api.assign_order("ord-0", "staff-001")
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_simulated_failure(api):
    api.failure_rate = 1.0
    with pytest.raises(OrderAPIError) as exc_info:
        await api.fetch_order_queue()
    assert exc_info.value.status_code == 503
