"""
Queued order exporter: hands exports to the Celery worker over Redis.
"""

import asyncio
import logging

from staff_console.schemas import Order
from staff_console.services.export.base import BaseOrderExporter, ExportResult
from staff_console.tasks import export_order_to_csv, print_order_ticket

logger = logging.getLogger(__name__)


class QueuedOrderExporter(BaseOrderExporter):
    """Enqueues export / print tasks; success means the task was accepted."""

    @property
    def provider_name(self) -> str:
        return "celery"

    async def _enqueue(self, task, order: Order, label: str) -> ExportResult:
        try:
            async_result = await asyncio.to_thread(task.delay, order.model_dump(mode="json"))
        except Exception as e:
            logger.error(f"Could not queue {label} for order {order.order_id}: {e}")
            return ExportResult(
                success=False,
                order_id=order.order_id,
                message=f"Could not queue {label}: {e}",
                provider=self.provider_name,
            )

        logger.info(f"📋 Queued {label} for order {order.order_id} (task {async_result.id})")
        return ExportResult(
            success=True,
            order_id=order.order_id,
            message=f"{label.capitalize()} queued",
            task_id=async_result.id,
            provider=self.provider_name,
        )

    async def export_to_csv(self, order: Order) -> ExportResult:
        return await self._enqueue(export_order_to_csv, order, "csv export")

    async def print_order(self, order: Order) -> ExportResult:
        return await self._enqueue(print_order_ticket, order, "print")
