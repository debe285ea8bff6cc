"""
Celery Tasks
Background export and print jobs queued by the bulk executor.
"""

import logging
import time
from datetime import datetime

from staff_console.celery_worker import celery_app
from staff_console.core.config import get_settings
from staff_console.services.export_manager import OrderExportManager

logger = logging.getLogger(__name__)


def _manager() -> OrderExportManager:
    settings = get_settings()
    return OrderExportManager(settings.data_directory, settings.export_lock_timeout)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def export_order_to_csv(self, order_data: dict) -> dict:
    """
    Append an order to the CSV export.

    Args:
        order_data: Order serialized with ``model_dump(mode="json")``

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_id = order_data.get('order_id', 'unknown')

    logger.info(f"📋 Task {task_id}: exporting order {order_id}")
    start_time = time.time()

    result = _manager().export_order(order_data)

    elapsed = round(time.time() - start_time, 3)
    result['task_id'] = task_id
    result['processing_time_seconds'] = elapsed

    if result['success']:
        logger.info(f"✅ Task {task_id}: order {order_id} exported in {elapsed}s")
    else:
        logger.warning(f"⚠️ Task {task_id}: order {order_id} failed - {result['message']}")

    return result


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(OSError,),
    retry_backoff=True
)
def print_order_ticket(self, order_data: dict) -> dict:
    """Spool a kitchen ticket for an order."""
    task_id = self.request.id
    result = _manager().print_ticket(order_data)
    result['task_id'] = task_id
    return result


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now().isoformat()
    }


@celery_app.task
def clear_csv_export() -> dict:
    """
    Clear the CSV export (for testing/reset purposes).
    """
    success = _manager().clear_exports()
    return {
        'success': success,
        'message': 'CSV export cleared' if success else 'Failed to clear CSV export',
        'timestamp': datetime.now().isoformat()
    }
