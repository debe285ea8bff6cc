"""
FastAPI Application Entry Point

Staff Order Console - hosts the order lifecycle engine behind an HTTP API.
Uses the mock order API in development and the real one in production.

Endpoints:
    - GET  /api/console/orders: Filtered, sorted working set
    - GET  /api/console/queue: Queue buckets and summary
    - GET  /api/console/kitchen: Orders being cooked with their timers
    - PUT  /api/console/orders/{id}/status: Guarded status change
    - POST /api/console/bulk: Bulk action over the selection
    - GET  /api/console/notifications: Staff notifications
    - GET  /health: System health check

Run:
    uvicorn staff_console.main:app --port 8002

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, List, Optional

import redis
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from staff_console.core.config import get_settings, setup_logging
from staff_console.engine.bulk import BulkOptions
from staff_console.engine.console import OrderNotFoundError, StaffConsole
from staff_console.models import (
    NotificationPriority,
    NotificationType,
    OrderPriority,
    OrderSource,
    OrderStatus,
    SortDirection,
    SortField,
    UrgencyLevel,
)
from staff_console.schemas import (
    AcknowledgeRequest,
    AssignRequest,
    BulkActionRequest,
    CancelRequest,
    ChannelSettingsUpdate,
    HealthResponse,
    MarkReadRequest,
    SelectionRequest,
    StaffOrder,
    StaffOrderFilters,
    StaffSwitchRequest,
    StatusUpdateRequest,
    TimerStartRequest,
)
from staff_console.services.alerts.channels import SoundChannel
from staff_console.services.export import get_order_exporter
from staff_console.services.order_api import get_order_api

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the console at startup and stop its periodic work at shutdown.
    """
    current = get_settings()

    logger.info("=" * 60)
    logger.info(f"🚀 Starting {current.app_name}")
    logger.info(f"   Version: {current.app_version}")
    logger.info(f"   Environment: {current.env_mode.value}")
    logger.info(f"   Staff: {current.staff_id}")
    logger.info("=" * 60)

    if current.use_real_services:
        missing = current.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    api = get_order_api()
    exporter = get_order_exporter()
    logger.info(f"✅ Order API: {api.provider_name}")
    logger.info(f"✅ Exporter: {exporter.provider_name}")

    console = StaffConsole(api, settings=current, exporter=exporter)
    app.state.console = console
    await console.start()

    logger.info("✅ Console ready!")

    yield

    logger.info("Shutting down...")
    await console.stop()
    await api.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Staff-side order lifecycle and queue management: guarded status "
        "changes, cooking timers, bulk actions and multi-channel alerts."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_console(request: Request) -> StaffConsole:
    return request.app.state.console


def envelope(data: Any = None, message: str = "", success: bool = True) -> dict[str, Any]:
    return {"success": success, "data": data, "message": message}


def dump_order(order: StaffOrder) -> dict[str, Any]:
    return order.model_dump(mode="json", by_alias=True)


def dump_orders(orders: List[StaffOrder]) -> list[dict[str, Any]]:
    return [dump_order(o) for o in orders]


def order_filters(
    search: Optional[str] = Query(None),
    status: Optional[List[OrderStatus]] = Query(None),
    priority: Optional[List[OrderPriority]] = Query(None),
    urgency: Optional[List[UrgencyLevel]] = Query(None),
    source: Optional[List[OrderSource]] = Query(None),
    assigned_to_me: bool = Query(False),
    is_overdue: bool = Query(False),
    is_delayed: bool = Query(False),
    has_special_requests: bool = Query(False),
    has_allergy_warnings: bool = Query(False),
    table_number: Optional[str] = Query(None),
    min_amount: Optional[float] = Query(None, ge=0),
    max_amount: Optional[float] = Query(None, ge=0),
    min_wait_time: Optional[int] = Query(None, ge=0),
    max_wait_time: Optional[int] = Query(None, ge=0),
    sort_by: SortField = Query(SortField.ORDER_TIME),
    sort_direction: SortDirection = Query(SortDirection.ASC),
) -> StaffOrderFilters:
    return StaffOrderFilters(
        search=search,
        status=status,
        priority=priority,
        urgency=urgency,
        source=source,
        assigned_to_me=assigned_to_me,
        is_overdue=is_overdue,
        is_delayed=is_delayed,
        has_special_requests=has_special_requests,
        has_allergy_warnings=has_allergy_warnings,
        table_number=table_number,
        min_amount=min_amount,
        max_amount=max_amount,
        min_wait_time=min_wait_time,
        max_wait_time=max_wait_time,
        sort_by=sort_by,
        sort_direction=sort_direction,
    )


def check_redis(url: str) -> str:
    try:
        client = redis.Redis.from_url(url, socket_timeout=2)
        client.ping()
        client.close()
        return "healthy"
    except redis.RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        return f"unhealthy: {e}"


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍽️ Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"], summary="System Health Check")
async def health_check(console: StaffConsole = Depends(get_console)) -> HealthResponse:
    """Verify the order API and the Redis broker are reachable."""
    order_api_status = "healthy" if await console.api.health_check() else "unhealthy"
    redis_status = await asyncio.to_thread(check_redis, console.settings.redis_url)

    overall = "operational" if order_api_status == "healthy" and redis_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall,
        order_api=order_api_status,
        redis=redis_status,
        environment=console.settings.env_mode.value,
        timestamp=datetime.now(),
    )


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@app.get("/api/console/orders", tags=["Orders"], summary="Working Set")
async def list_orders(
    filters: StaffOrderFilters = Depends(order_filters),
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    """Filtered and sorted orders for the current staff member."""
    orders = console.view(filters)
    return envelope(dump_orders(orders), f"{len(orders)} orders")


@app.post("/api/console/orders/search", tags=["Orders"])
async def search_orders(
    filters: StaffOrderFilters,
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    orders = console.view(filters)
    return envelope(dump_orders(orders), f"{len(orders)} orders")


@app.get("/api/console/orders/{order_id}", tags=["Orders"])
async def get_order(order_id: str, console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    return envelope(dump_order(console.staff_order(order_id)))


@app.get("/api/console/queue", tags=["Orders"])
async def get_queue(console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    """Orders grouped by lifecycle bucket, plus the queue summary."""
    buckets = {name: dump_orders(orders) for name, orders in console.queue().items()}
    return envelope({
        "buckets": buckets,
        "summary": console.summary().model_dump(mode="json", by_alias=True),
        "lastRefreshed": console.store.last_refreshed.isoformat() if console.store.last_refreshed else None,
        "version": console.store.version,
    })


@app.get("/api/console/kitchen", tags=["Orders"])
async def get_kitchen_view(console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    view = [
        {"order": dump_order(entry["order"]), "timer": entry["timer"]}
        for entry in console.kitchen_view()
    ]
    return envelope(view)


@app.post("/api/console/refresh", tags=["Orders"])
async def refresh_orders(console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    refreshed = await console.refresh()
    if not refreshed and console.last_refresh_error:
        raise HTTPException(status_code=502, detail=console.last_refresh_error)
    message = "Snapshot refreshed" if refreshed else "Refresh already in progress"
    return envelope({"version": console.store.version, "orders": len(console.store.orders)}, message)


@app.put("/api/console/orders/{order_id}/status", tags=["Orders"])
async def update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    result = await console.update_status(order_id, body.new_status, body.note)
    if result.rejected:
        raise HTTPException(status_code=409, detail=result.error_message)
    if not result.success:
        raise HTTPException(status_code=502, detail=result.error_message)
    return envelope(
        {"orderId": order_id, "fromStatus": result.from_status.value, "toStatus": result.to_status.value},
        f"Order moved to {result.to_status.value}",
    )


@app.post("/api/console/orders/{order_id}/assign", tags=["Orders"])
async def assign_order(
    order_id: str,
    body: AssignRequest,
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    result = await console.assign(order_id, body.staff_id)
    if not result.success:
        raise HTTPException(status_code=409, detail=result.error_message)
    return envelope({"orderId": order_id}, "Order assigned")


@app.post("/api/console/orders/{order_id}/cancel", tags=["Orders"])
async def cancel_order(
    order_id: str,
    body: CancelRequest,
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    result = await console.cancel(order_id, body.reason)
    if not result.success:
        raise HTTPException(status_code=409, detail=result.error_message)
    return envelope({"orderId": order_id}, "Order cancelled")


# =============================================================================
# TIMER ENDPOINTS
# =============================================================================

@app.get("/api/console/timers", tags=["Timers"])
async def list_timers(
    active_only: bool = Query(True),
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    timers = console.timers.active_timers() if active_only else console.timers.timers
    return envelope([console.timers.describe(t) for t in timers])


@app.post("/api/console/timers", tags=["Timers"])
async def start_timer(body: TimerStartRequest, console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    result = console.start_timer(body.order_id, body.estimated_minutes)
    if not result.success:
        raise HTTPException(status_code=409, detail=result.error_message)
    return envelope(console.timers.describe(result.timer), "Timer started")


@app.post("/api/console/timers/{timer_id}/{action}", tags=["Timers"])
async def timer_action(timer_id: str, action: str, console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    handlers = {
        "pause": console.pause_timer,
        "resume": console.resume_timer,
        "complete": console.complete_timer,
    }
    if action not in handlers:
        raise HTTPException(status_code=404, detail=f"Unknown timer action: {action}")
    if console.timers.get(timer_id) is None:
        raise HTTPException(status_code=404, detail=f"Timer {timer_id} not found")

    result = handlers[action](timer_id)
    if not result.success:
        raise HTTPException(status_code=409, detail=result.error_message)
    return envelope(console.timers.describe(result.timer), f"Timer {action}d")


# =============================================================================
# SELECTION & BULK ENDPOINTS
# =============================================================================

@app.get("/api/console/selection", tags=["Bulk"])
async def get_selection(console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    return envelope(console.selection.to_dict())


@app.put("/api/console/selection", tags=["Bulk"])
async def set_selection(body: SelectionRequest, console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    console.selection.replace(body.order_ids)
    return envelope(console.selection.to_dict())


@app.post("/api/console/selection/all", tags=["Bulk"])
async def select_all(
    filters: Optional[StaffOrderFilters] = None,
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    console.select_all(filters)
    return envelope(console.selection.to_dict())


@app.post("/api/console/selection/{order_id}/toggle", tags=["Bulk"])
async def toggle_selection(order_id: str, console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    console.selection.toggle(order_id)
    return envelope(console.selection.to_dict())


@app.delete("/api/console/selection", tags=["Bulk"])
async def clear_selection(console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    console.selection.clear()
    return envelope(console.selection.to_dict(), "Selection cleared")


@app.post("/api/console/bulk", tags=["Bulk"], summary="Bulk Action")
async def bulk_action(body: BulkActionRequest, console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    """Apply one action to the given orders (or the selection); partial failure is reported, not raised."""
    options = BulkOptions(new_status=body.new_status, priority=body.priority, note=body.note)
    result = await console.run_bulk(body.action, body.order_ids, options)
    return result.to_dict()


# =============================================================================
# ALERT ENDPOINTS
# =============================================================================

@app.get("/api/console/alerts", tags=["Alerts"])
async def list_alerts(
    unacknowledged_only: bool = Query(False),
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    alerts = console.store.unacknowledged_alerts() if unacknowledged_only else console.store.alerts
    return envelope([a.to_dict() for a in alerts])


@app.post("/api/console/alerts/{alert_id}/acknowledge", tags=["Alerts"])
async def acknowledge_alert(
    alert_id: str,
    body: AcknowledgeRequest,
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    if not console.acknowledge_alert(alert_id, body.staff_id):
        raise HTTPException(status_code=404, detail=f"Alert {alert_id} not found")
    return envelope({"alertId": alert_id}, "Alert acknowledged")


@app.delete("/api/console/alerts/{alert_id}", tags=["Alerts"])
async def clear_alert(alert_id: str, console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    if not console.store.clear_alert(alert_id):
        raise HTTPException(status_code=404, detail=f"Alert {alert_id} not found")
    return envelope({"alertId": alert_id}, "Alert cleared")


@app.delete("/api/console/alerts", tags=["Alerts"])
async def clear_all_alerts(console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    cleared = console.store.clear_all_alerts()
    return envelope({"cleared": cleared}, f"{cleared} alerts cleared")


# =============================================================================
# NOTIFICATION ENDPOINTS
# =============================================================================

@app.get("/api/console/notifications", tags=["Notifications"])
async def list_notifications(
    type: Optional[NotificationType] = Query(None),
    priority: Optional[NotificationPriority] = Query(None),
    is_read: Optional[bool] = Query(None),
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    pipeline = console.notifications
    items = pipeline.filter(type=type, priority=priority, is_read=is_read)
    return envelope({
        "notifications": [n.model_dump(mode="json", by_alias=True) for n in items],
        "unreadCount": pipeline.unread_count,
        "urgentCount": len(pipeline.urgent()),
        "stats": pipeline.stats(),
        "lastError": pipeline.last_error,
    })


@app.post("/api/console/notifications/refresh", tags=["Notifications"])
async def refresh_notifications(console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    result = await console.poll_notifications()
    if result is None:
        raise HTTPException(status_code=400, detail="No staff member identified")
    if not result.success:
        raise HTTPException(status_code=503, detail=result.error_message)
    return envelope(
        {"new": len(result.new_notifications), "unreadCount": result.unread_count, "attempts": result.attempts}
    )


@app.post("/api/console/notifications/mark-read", tags=["Notifications"])
async def mark_notifications_read(
    body: MarkReadRequest,
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    known = {n.notification_id for n in console.notifications.notifications}
    if body.notification_id is not None and body.notification_id not in known:
        raise HTTPException(status_code=404, detail=f"Notification {body.notification_id} not found")

    result = await console.mark_notification_read(body.notification_id)
    if not result.success:
        raise HTTPException(status_code=502, detail=result.error_message)
    return envelope({"unreadCount": console.notifications.unread_count}, "Marked as read")


@app.get("/api/console/notifications/settings", tags=["Notifications"])
async def get_channel_settings(console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    return envelope(console.dispatcher.settings())


@app.put("/api/console/notifications/settings", tags=["Notifications"])
async def update_channel_settings(
    body: ChannelSettingsUpdate,
    console: StaffConsole = Depends(get_console),
) -> dict[str, Any]:
    toggles = {
        "sound": body.sound_enabled,
        "vibration": body.vibration_enabled,
        "desktop": body.desktop_enabled,
    }
    for name, enabled in toggles.items():
        if enabled is not None:
            console.dispatcher.set_enabled(name, enabled)

    sound = console.dispatcher.channel("sound")
    if body.sound_volume is not None and isinstance(sound, SoundChannel):
        sound.volume = body.sound_volume
    return envelope(console.dispatcher.settings(), "Settings updated")


# =============================================================================
# STAFF ENDPOINTS
# =============================================================================

@app.put("/api/console/staff", tags=["Staff"])
async def switch_staff(body: StaffSwitchRequest, console: StaffConsole = Depends(get_console)) -> dict[str, Any]:
    console.switch_staff(body.staff_id)
    await console.poll_notifications()
    return envelope({"staffId": console.staff_id}, "Staff switched")


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(OrderNotFoundError)
async def order_not_found_handler(request: Request, exc: OrderNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"success": False, "error": "Not Found", "detail": str(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )
