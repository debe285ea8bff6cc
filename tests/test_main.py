"""
Tests for the FastAPI application running on the seeded mock order API.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from staff_console.main import app
from staff_console.services.export import reset_order_exporter
from staff_console.services.order_api import reset_order_api


@pytest.fixture
def client():
    reset_order_api()
    reset_order_exporter()
    with TestClient(app) as test_client:
        yield test_client
    reset_order_api()
    reset_order_exporter()


class TestRootAndHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["health"] == "/health"

    def test_health(self, client):
        with patch("staff_console.main.check_redis", return_value="healthy"):
            response = client.get("/health")
        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "operational"
        assert body["order_api"] == "healthy"
        assert body["environment"] == "development"

    def test_health_degraded_without_redis(self, client):
        with patch("staff_console.main.check_redis", return_value="unhealthy: connection refused"):
            body = client.get("/health").json()
        assert body["status"] == "degraded"


class TestOrders:
    def test_list_orders(self, client):
        body = client.get("/api/console/orders").json()
        assert body["success"]
        assert len(body["data"]) == 6
        first = body["data"][0]
        assert {"orderId", "urgencyLevel", "canStartCooking", "actualWaitTime"} <= set(first)

    def test_filter_by_status_and_sort(self, client):
        body = client.get(
            "/api/console/orders",
            params=[("status", "PENDING"), ("sort_by", "tableNumber"), ("sort_direction", "desc")],
        ).json()
        assert [o["orderNumber"] for o in body["data"]] == ["1001", "1006"]

    def test_search_body(self, client):
        body = client.post("/api/console/orders/search", json={"search": "chen"}).json()
        assert [o["orderNumber"] for o in body["data"]] == ["1003"]

    def test_get_order_and_not_found(self, client):
        assert client.get("/api/console/orders/ord-1002").json()["data"]["priority"] == "HIGH"
        response = client.get("/api/console/orders/ord-9999")
        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_queue(self, client):
        data = client.get("/api/console/queue").json()["data"]
        assert len(data["buckets"]["pending"]) == 3
        assert data["summary"]["pendingCount"] == 3
        assert data["version"] >= 1

    def test_status_change(self, client):
        rejected = client.put("/api/console/orders/ord-1005/status", json={"newStatus": "CONFIRMED"})
        assert rejected.status_code == 409

        accepted = client.put("/api/console/orders/ord-1001/status", json={"newStatus": "CONFIRMED"})
        assert accepted.status_code == 200
        assert accepted.json()["data"]["toStatus"] == "CONFIRMED"
        assert client.get("/api/console/orders/ord-1001").json()["data"]["status"] == "CONFIRMED"

    def test_assign_and_cancel(self, client):
        assert client.post("/api/console/orders/ord-1006/assign", json={}).status_code == 200
        assert client.get("/api/console/orders/ord-1006").json()["data"]["assignedStaff"] == "staff-001"
        assert client.post("/api/console/orders/ord-1005/cancel", json={"reason": "walked out"}).status_code == 409
        assert client.post("/api/console/orders/ord-1006/cancel", json={"reason": "walked out"}).status_code == 200


class TestTimers:
    def test_timer_lifecycle(self, client):
        started = client.post("/api/console/timers", json={"orderId": "ord-1002", "estimatedMinutes": 15})
        assert started.status_code == 200
        timer_id = started.json()["data"]["timerId"]

        assert client.post(f"/api/console/timers/{timer_id}/pause").status_code == 200
        assert client.post(f"/api/console/timers/{timer_id}/pause").status_code == 409
        assert client.post(f"/api/console/timers/{timer_id}/resume").status_code == 200
        completed = client.post(f"/api/console/timers/{timer_id}/complete")
        assert completed.json()["data"]["status"] == "COMPLETED"

        assert client.post(f"/api/console/timers/{timer_id}/rewind").status_code == 404
        assert client.post("/api/console/timers/timer_missing/pause").status_code == 404

    def test_timer_rejected_for_pending_order(self, client):
        response = client.post("/api/console/timers", json={"orderId": "ord-1001", "estimatedMinutes": 15})
        assert response.status_code == 409

    def test_timer_minutes_validated(self, client):
        response = client.post("/api/console/timers", json={"orderId": "ord-1002", "estimatedMinutes": 0})
        assert response.status_code == 422


class TestBulk:
    def test_selection_endpoints(self, client):
        client.put("/api/console/selection", json={"orderIds": ["ord-1001", "ord-1002"]})
        data = client.post("/api/console/selection/ord-1002/toggle").json()["data"]
        assert data["orderIds"] == ["ord-1001"]

        data = client.post("/api/console/selection/all").json()["data"]
        assert data["count"] == 6 and data["allSelected"]

        assert client.delete("/api/console/selection").json()["data"]["count"] == 0

    def test_bulk_partial_failure(self, client):
        body = client.post("/api/console/bulk", json={
            "action": "UPDATE_STATUS",
            "orderIds": ["ord-1003", "ord-1001"],
            "newStatus": "READY",
        }).json()

        assert body["success"] is True
        assert body["processedCount"] == 1
        assert body["failedCount"] == 1
        assert body["message"] == "1 of 2 orders processed, 1 failed"

    def test_bulk_empty_selection(self, client):
        body = client.post("/api/console/bulk", json={"action": "ASSIGN_TO_SELF"}).json()
        assert body["success"] is False
        assert body["message"] == "No orders selected"


class TestAlertsAndNotifications:
    def test_overdue_seed_raises_alert(self, client):
        alerts = client.get("/api/console/alerts").json()["data"]
        overdue = [a for a in alerts if a["type"] == "OVERDUE"]
        assert [a["orderId"] for a in overdue] == ["ord-1003"]

        alert_id = overdue[0]["id"]
        assert client.post(f"/api/console/alerts/{alert_id}/acknowledge", json={}).status_code == 200
        assert client.post("/api/console/alerts/alert_missing/acknowledge", json={}).status_code == 404
        assert client.delete(f"/api/console/alerts/{alert_id}").status_code == 200

    def test_notifications(self, client):
        data = client.get("/api/console/notifications").json()["data"]
        assert data["unreadCount"] >= 1
        assert data["lastError"] is None

        assert client.post("/api/console/notifications/refresh").status_code == 200
        marked = client.post("/api/console/notifications/mark-read", json={}).json()
        assert marked["data"]["unreadCount"] == 0

    def test_mark_unknown_notification_read_is_404(self, client):
        response = client.post("/api/console/notifications/mark-read", json={"notificationId": "ntf_missing"})
        assert response.status_code == 404

        assert client.post(
            "/api/console/notifications/mark-read", json={"notificationId": "ntf_seed_shift"}
        ).status_code == 200

    def test_channel_settings(self, client):
        body = client.put("/api/console/notifications/settings", json={"vibrationEnabled": False, "soundVolume": 0.3})
        assert body.json()["data"] == {"sound": True, "vibration": False, "desktop": True}
        assert client.get("/api/console/notifications/settings").json()["data"]["vibration"] is False

    def test_switch_staff(self, client):
        response = client.put("/api/console/staff", json={"staffId": "staff-002"})
        assert response.json()["data"]["staffId"] == "staff-002"
