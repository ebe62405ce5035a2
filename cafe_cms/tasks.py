"""
Celery Tasks
Background backup snapshots written to the backup directory.
"""

import asyncio
import logging
import time
from datetime import datetime

from cafe_cms.celery_worker import celery_app
from cafe_cms.database import async_session_maker, engine
from cafe_cms.services.backup import (
    BackupPayload,
    BackupService,
    get_snapshot_store,
    get_uploads_store,
)

logger = logging.getLogger(__name__)


async def export_backup_payload() -> BackupPayload:
    """Build a backup payload outside of a request."""
    try:
        async with async_session_maker() as session:
            return await BackupService(session, get_uploads_store()).create_backup()
    finally:
        # Each task runs its own event loop; pooled connections must not outlive it
        await engine.dispose()


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=30,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def create_backup_snapshot(self) -> dict:
    """
    Export a backup and store it as a snapshot file.
    Runs on the beat schedule and on demand from the admin API.

    Returns:
        dict: Snapshot name, size and timing
    """
    task_id = self.request.id
    logger.info(f"Task {task_id}: creating backup snapshot")
    start_time = time.time()

    payload = asyncio.run(export_backup_payload())
    path = get_snapshot_store().write(payload)

    elapsed = round(time.time() - start_time, 3)
    logger.info(f"Task {task_id}: snapshot {path.name} stored in {elapsed}s")

    return {
        "success": True,
        "task_id": task_id,
        "snapshot": path.name,
        "size_bytes": path.stat().st_size,
        "files": len(payload.files),
        "processing_time_seconds": elapsed,
    }


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        "status": "healthy",
        "worker": "celery",
        "timestamp": datetime.now().isoformat()
    }
