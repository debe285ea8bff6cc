"""
Order Exporter Factory

Returns the inline or Celery-backed exporter based on EXPORT_BACKEND.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from staff_console.core.config import ExportBackend, get_settings
from staff_console.services.export.base import BaseOrderExporter, ExportResult
from staff_console.services.export.inline import InlineOrderExporter
from staff_console.services.export.queued import QueuedOrderExporter
from staff_console.services.export_manager import OrderExportManager

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_exporter() -> BaseOrderExporter:
    """Get the configured order exporter."""
    settings = get_settings()

    if settings.export_backend == ExportBackend.CELERY:
        logger.info("Order Exporter: Using QueuedOrderExporter (celery)")
        return QueuedOrderExporter()

    logger.info("Order Exporter: Using InlineOrderExporter")
    return InlineOrderExporter(
        OrderExportManager(settings.data_directory, settings.export_lock_timeout)
    )


def reset_order_exporter() -> None:
    """Clear the cached exporter instance."""
    get_order_exporter.cache_clear()


__all__ = [
    "get_order_exporter",
    "reset_order_exporter",
    "BaseOrderExporter",
    "ExportResult",
    "InlineOrderExporter",
    "QueuedOrderExporter",
]
