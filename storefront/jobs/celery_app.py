"""Celery worker for post-commit order jobs"""

from celery import Celery
from storefront.config import settings

NOTIFICATIONS_QUEUE = "notifications"

celery_app = Celery("storefront", broker=settings.redis_url, backend=settings.redis_url)
celery_app.conf.include = ["storefront.jobs.tasks"]

# Staff SMS goes out once per order; results are only kept long enough to debug
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    result_expires=3600,
    timezone="UTC",
    enable_utc=True,
    task_default_queue=NOTIFICATIONS_QUEUE,
    task_routes={"notify_order_created": {"queue": NOTIFICATIONS_QUEUE}},
    task_time_limit=60,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
)
