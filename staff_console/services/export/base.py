"""
Order Exporter Abstract Base Class

Trigger points for the PRINT_ORDERS and EXPORT_TO_CSV bulk actions.
Implementations either write the files inline or queue them on the Celery
worker.

Author: Khalil Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from staff_console.schemas import Order


@dataclass
class ExportResult:
    """Result from exporting or printing one order."""
    success: bool
    order_id: str
    message: str = ""
    task_id: Optional[str] = None
    provider: str = "unknown"


class BaseOrderExporter(ABC):
    """Abstract base class for order exporters."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def export_to_csv(self, order: Order) -> ExportResult:
        """Append the order to the CSV export."""
        pass

    @abstractmethod
    async def print_order(self, order: Order) -> ExportResult:
        """Send a kitchen ticket for the order to the printer spool."""
        pass
