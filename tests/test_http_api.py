"""
Tests for the HTTP order API client against an httpx mock transport.
"""

import json

import httpx
import pytest

from staff_console.engine.bulk import BulkOperationExecutor, BulkOptions
from staff_console.engine.projector import project_orders
from staff_console.engine.state_machine import StatusStateMachine
from staff_console.models import BulkActionType, NotificationType, OrderPriority, OrderStatus
from staff_console.services.order_api.base import OrderAPIError
from staff_console.services.order_api.http import HttpOrderAPI

from tests.conftest import NOW, make_order

ORDER_JSON = {
    "orderId": 1042,
    "orderNumber": "1042",
    "tableNumber": "7",
    "customerName": "Bruno Costa",
    "items": [{"itemId": 1, "name": "Pizza", "quantity": 2, "allergens": ["gluten"]}],
    "totalAmount": 29.98,
    "status": "PREPARING",
    "priority": "HIGH",
    "paymentStatus": "PAID",
    "source": "DINE_IN",
    "orderTime": "2026-03-14T17:40:00",
    "estimatedCompleteTime": "2026-03-14T18:05:00Z",
    "isOverdue": False,
    "overdueMinutes": 0,
}


def make_api(handler):
    return HttpOrderAPI("http://orders.test/api", token="secret", transport=httpx.MockTransport(handler))


class TestRequests:
    @pytest.mark.asyncio
    async def test_fetch_queue_unwraps_envelope(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={
                "success": True,
                "data": {"orders": [ORDER_JSON], "summary": {"pendingCount": 3, "overdueCount": 1}},
            })

        api = make_api(handler)
        snapshot = await api.fetch_order_queue()
        await api.close()

        assert seen[0].url.path == "/api/staff/orders/queue"
        assert seen[0].headers["Authorization"] == "Bearer secret"
        [order] = snapshot.orders
        assert order.order_id == "1042"
        assert order.items[0].item_id == "1"
        assert order.status == OrderStatus.PREPARING
        assert order.order_time.tzinfo is not None
        assert snapshot.summary.pending_count == 3

    @pytest.mark.asyncio
    async def test_fetch_queue_accepts_bare_list(self):
        api = make_api(lambda request: httpx.Response(200, json={"success": True, "data": [ORDER_JSON]}))
        snapshot = await api.fetch_order_queue()
        assert len(snapshot.orders) == 1
        assert snapshot.summary is None

    @pytest.mark.asyncio
    async def test_update_status_payload(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": {**ORDER_JSON, "status": "READY"}})

        api = make_api(handler)
        order = await api.update_order_status("1042", OrderStatus.READY, "staff-001", note="plated")

        assert seen[0].method == "PUT"
        assert seen[0].url.path == "/api/staff/orders/1042/status"
        assert json.loads(seen[0].content) == {"newStatus": "READY", "staffId": "staff-001", "note": "plated"}
        assert order.status == OrderStatus.READY

    @pytest.mark.asyncio
    async def test_order_actions(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, json.loads(request.content or b"{}")))
            return httpx.Response(200, json={"success": True, "data": None})

        api = make_api(handler)
        await api.assign_order("1042", "staff-001")
        await api.cancel_order("1042", "customer left")
        await api.update_priority("1042", OrderPriority.URGENT)
        await api.add_note("1042", "allergy check", "staff-001")

        assert seen == [
            ("POST", "/api/staff/orders/1042/assign", {"staffId": "staff-001"}),
            ("POST", "/api/staff/orders/1042/cancel", {"reason": "customer left"}),
            ("PUT", "/api/staff/orders/1042/priority", {"priority": "URGENT"}),
            ("POST", "/api/staff/orders/1042/notes", {"note": "allergy check", "staffId": "staff-001"}),
        ]

    @pytest.mark.asyncio
    async def test_notifications(self):
        seen = []

        def handler(request):
            seen.append(request)
            if request.url.path.endswith("mark-read"):
                return httpx.Response(200, json={"success": True})
            return httpx.Response(200, json={"success": True, "data": {
                "notifications": [{
                    "notificationId": 77,
                    "recipientId": "staff-001",
                    "type": "NEW_ORDER",
                    "priority": "HIGH",
                    "title": "New order",
                    "message": "Order #1042 placed",
                    "isRead": False,
                    "sentAt": "2026-03-14T18:00:00Z",
                }],
                "unreadCount": 1,
                "totalCount": 5,
            }})

        api = make_api(handler)
        page = await api.fetch_notifications("staff-001", unread_only=True, limit=20)
        await api.mark_notification_read("staff-001", "77")

        assert seen[0].url.path == "/api/staff/notifications/staff-001"
        assert seen[0].url.params["unreadOnly"] == "true"
        assert seen[0].url.params["limit"] == "20"
        assert page.notifications[0].notification_id == "77"
        assert page.notifications[0].type == NotificationType.NEW_ORDER
        assert page.total_count == 5
        assert json.loads(seen[1].content) == {"notificationId": "77"}


class TestErrors:
    @pytest.mark.asyncio
    async def test_http_error_carries_status_and_message(self):
        api = make_api(lambda request: httpx.Response(404, json={"success": False, "message": "Order not found"}))
        with pytest.raises(OrderAPIError) as exc_info:
            await api.assign_order("999", "staff-001")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Order not found"
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_unsuccessful_envelope(self):
        api = make_api(lambda request: httpx.Response(200, json={"success": False, "message": "Order locked"}))
        with pytest.raises(OrderAPIError, match="Order locked"):
            await api.cancel_order("1042", "dup")

    @pytest.mark.asyncio
    async def test_server_error_without_json(self):
        api = make_api(lambda request: httpx.Response(502, text="Bad gateway"))
        with pytest.raises(OrderAPIError) as exc_info:
            await api.fetch_order_queue()
        assert exc_info.value.status_code == 502
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_transport_error_is_retryable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        api = make_api(handler)
        with pytest.raises(OrderAPIError) as exc_info:
            await api.fetch_order_queue()
        assert exc_info.value.status_code is None
        assert exc_info.value.retryable
        assert await api.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check(self):
        api = make_api(lambda request: httpx.Response(200, json={"status": "UP"}))
        assert await api.health_check() is True

    def test_base_url_required(self):
        with pytest.raises(ValueError):
            HttpOrderAPI("")


class TestInvalidPayloads:
    @pytest.mark.asyncio
    async def test_null_order_becomes_api_error(self):
        api = make_api(lambda request: httpx.Response(200, json={"success": True, "data": None}))
        with pytest.raises(OrderAPIError, match="invalid response"):
            await api.update_order_status("1042", OrderStatus.CONFIRMED, "staff-001")

    @pytest.mark.asyncio
    async def test_malformed_queue_and_notifications(self):
        api = make_api(lambda request: httpx.Response(200, json={
            "success": True,
            "data": {"orders": [{"orderId": "1"}], "notifications": [{"title": None}]},
        }))
        with pytest.raises(OrderAPIError, match="invalid response"):
            await api.fetch_order_queue()
        with pytest.raises(OrderAPIError, match="invalid response"):
            await api.fetch_notifications("staff-001")

    @pytest.mark.asyncio
    async def test_bulk_status_update_survives_malformed_replies(self, store, exporter):
        api = make_api(lambda request: httpx.Response(200, json={"success": True, "data": None}))
        orders = project_orders(
            [make_order(f"ord-{n}", OrderStatus.PENDING) for n in (1, 2, 3)], NOW, "staff-001"
        )
        executor = BulkOperationExecutor(api, StatusStateMachine(api, store), exporter)

        result = await executor.execute(
            BulkActionType.UPDATE_STATUS, orders, "staff-001", BulkOptions(new_status=OrderStatus.CONFIRMED)
        )

        assert result.success is False
        assert result.processed_count == 0
        assert result.failed_count == 3
        assert all("invalid response" in error for error in result.errors)
