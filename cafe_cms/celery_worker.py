"""
Celery Worker Configuration
Sets up Celery with Redis as message broker and result backend, and
schedules periodic backup snapshots.

Run:
    celery -A cafe_cms.celery_worker worker --beat --loglevel=info
"""

from datetime import timedelta

from celery import Celery

from cafe_cms.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "cafe_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["cafe_cms.tasks"],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Worker settings
    worker_prefetch_multiplier=1,  # Process one task at a time
    worker_concurrency=2,

    # Result settings
    result_expires=3600,  # Results expire after 1 hour

    # Task execution settings
    task_acks_late=True,  # Acknowledge task after completion
    task_reject_on_worker_lost=True,  # Requeue task if worker dies

    broker_connection_retry_on_startup=True,

    beat_schedule={
        "backup-snapshot": {
            "task": "cafe_cms.tasks.create_backup_snapshot",
            "schedule": timedelta(hours=settings.backup_snapshot_interval_hours),
        },
    },
)


if __name__ == "__main__":
    celery_app.start()
