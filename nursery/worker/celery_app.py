# nursery/worker/celery_app.py
"""
Celery application configuration for the nursery import worker.
"""
from celery import Celery
from celery.signals import worker_ready
import logging
from nursery.core.config import settings

logger = logging.getLogger(__name__)

# Create Celery app
celery_app = Celery(
    "nursery",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "nursery.worker.tasks.imports",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_time_limit=6 * 3600,  # a full catalog scrape runs for hours
    task_soft_time_limit=6 * 3600 - 300,
    task_routes={
        "import:*": {"queue": "imports"},
    },
)


@worker_ready.connect
def at_worker_ready(sender, **kwargs):
    """Log when worker is ready."""
    logger.info("Celery worker is ready.")


if __name__ == "__main__":
    celery_app.start()
