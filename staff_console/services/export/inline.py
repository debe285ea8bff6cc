"""
Inline order exporter: writes CSV rows and tickets from the console process.
"""

import asyncio
import logging

from staff_console.schemas import Order
from staff_console.services.export.base import BaseOrderExporter, ExportResult
from staff_console.services.export_manager import OrderExportManager

logger = logging.getLogger(__name__)


class InlineOrderExporter(BaseOrderExporter):
    """Runs the export manager in a worker thread."""

    def __init__(self, manager: OrderExportManager):
        self.manager = manager

    @property
    def provider_name(self) -> str:
        return "inline"

    async def export_to_csv(self, order: Order) -> ExportResult:
        result = await asyncio.to_thread(self.manager.export_order, order.model_dump(mode="json"))
        return ExportResult(
            success=result["success"],
            order_id=order.order_id,
            message=result["message"],
            provider=self.provider_name,
        )

    async def print_order(self, order: Order) -> ExportResult:
        result = await asyncio.to_thread(self.manager.print_ticket, order.model_dump(mode="json"))
        return ExportResult(
            success=result["success"],
            order_id=order.order_id,
            message=result["message"],
            provider=self.provider_name,
        )
