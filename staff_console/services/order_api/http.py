"""
HTTP Order API Client

Production implementation talking to the restaurant order API over HTTP.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - ORDER_API_BASE_URL must point at the API root (e.g. https://host/api)
    - ORDER_API_TOKEN must hold a staff bearer token

Responses use the envelope ``{"success": bool, "data": ..., "message": str}``.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Any, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from staff_console.models import OrderPriority, OrderStatus
from staff_console.schemas import NotificationList, Order, OrderQueueSnapshot
from staff_console.services.order_api.base import BaseOrderAPI, OrderAPIError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class HttpOrderAPI(BaseOrderAPI):
    """
    Order API client backed by ``httpx.AsyncClient``.

    Example:
        >>> api = HttpOrderAPI("http://localhost:8081/api", token="...")
        >>> snapshot = await api.fetch_order_queue()
        >>> len(snapshot.orders)
        12
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not base_url:
            raise ValueError(
                "ORDER_API_BASE_URL is required for production mode. "
                "Set it in your .env file or environment variables."
            )

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        logger.info(f"HttpOrderAPI initialized ({base_url})")

    @property
    def provider_name(self) -> str:
        return "http"

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Send a request and unwrap the response envelope."""
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} transport error: {e}")
            raise OrderAPIError(f"{method} {path} failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            raise OrderAPIError(
                message or f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )

        if isinstance(body, dict) and "success" in body:
            if not body["success"]:
                raise OrderAPIError(
                    body.get("message") or f"{method} {path} was rejected",
                    status_code=response.status_code,
                )
            return body.get("data")
        return body

    @staticmethod
    def _parse(model: Type[ModelT], data: Any, label: str) -> ModelT:
        """Validate a response payload; malformed data becomes an OrderAPIError."""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"{label} returned an invalid {model.__name__}: {e.error_count()} errors")
            raise OrderAPIError(f"{label} invalid response: {e}") from e

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def fetch_order_queue(self) -> OrderQueueSnapshot:
        data = await self._request("GET", "/staff/orders/queue")
        if isinstance(data, list):
            data = {"orders": data}
        return self._parse(OrderQueueSnapshot, data or {}, "GET /staff/orders/queue")

    async def update_order_status(
        self,
        order_id: str,
        new_status: OrderStatus,
        staff_id: Optional[str],
        note: Optional[str] = None,
    ) -> Order:
        payload = {"newStatus": new_status.value, "staffId": staff_id}
        if note:
            payload["note"] = note
        data = await self._request("PUT", f"/staff/orders/{order_id}/status", json=payload)
        return self._parse(Order, data, f"PUT /staff/orders/{order_id}/status")

    async def assign_order(self, order_id: str, staff_id: str) -> None:
        await self._request("POST", f"/staff/orders/{order_id}/assign", json={"staffId": staff_id})

    async def cancel_order(self, order_id: str, reason: str) -> None:
        await self._request("POST", f"/staff/orders/{order_id}/cancel", json={"reason": reason})

    async def update_priority(self, order_id: str, priority: OrderPriority) -> None:
        await self._request(
            "PUT", f"/staff/orders/{order_id}/priority", json={"priority": priority.value}
        )

    async def add_note(self, order_id: str, note: str, staff_id: Optional[str] = None) -> None:
        await self._request(
            "POST", f"/staff/orders/{order_id}/notes", json={"note": note, "staffId": staff_id}
        )

    # =========================================================================
    # NOTIFICATIONS
    # =========================================================================

    async def fetch_notifications(
        self,
        staff_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> NotificationList:
        params: dict[str, Any] = {}
        if unread_only:
            params["unreadOnly"] = "true"
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        data = await self._request("GET", f"/staff/notifications/{staff_id}", params=params)
        return self._parse(NotificationList, data or {}, f"GET /staff/notifications/{staff_id}")

    async def mark_notification_read(
        self,
        staff_id: str,
        notification_id: Optional[str] = None,
    ) -> None:
        payload = {"notificationId": notification_id} if notification_id else {}
        await self._request("POST", f"/staff/notifications/{staff_id}/mark-read", json=payload)

    async def health_check(self) -> bool:
        try:
            response = await self._client.get("/health")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"Order API health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
