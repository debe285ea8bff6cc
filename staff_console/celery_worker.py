"""
Celery Worker Configuration
Sets up Celery with Redis as message broker and result backend for the
console's print and CSV export jobs.

Run:
    celery -A staff_console.celery_worker worker --loglevel=info
"""

from celery import Celery

from staff_console.core.config import get_settings

REDIS_URL = get_settings().redis_url

celery_app = Celery(
    'staff_console_worker',
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=['staff_console.tasks']
)

celery_app.conf.update(
    # Task settings
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=2,  # Single CSV file, keep lock contention low

    # Result settings
    result_expires=3600,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    broker_connection_retry_on_startup=True,
)


if __name__ == '__main__':
    celery_app.start()
