"""
Backup Service Package

Usage:
    from cafe_cms.services.backup import BackupService, get_uploads_store

    service = BackupService(db, get_uploads_store())
    payload = await service.create_backup()
"""

import logging
from functools import lru_cache

from cafe_cms.core.config import get_settings
from cafe_cms.services.backup.files import (
    UploadsStore,
    normalize_upload_path,
    relative_upload_path,
)
from cafe_cms.services.backup.schemas import (
    BACKUP_TYPE,
    BACKUP_VERSION,
    BackupData,
    BackupFile,
    BackupPayload,
    RestoredCounts,
    RestoreSummary,
    parse_backup_payload,
)
from cafe_cms.services.backup.service import BackupService
from cafe_cms.services.backup.snapshots import SnapshotStore, SnapshotInfo, backup_filename

logger = logging.getLogger(__name__)


@lru_cache()
def get_uploads_store() -> UploadsStore:
    """Uploads store over the configured candidate roots."""
    settings = get_settings()
    store = UploadsStore(settings.uploads_dirs_list)
    logger.info(f"Uploads roots: {[str(c) for c in store.candidates]}")
    return store


@lru_cache()
def get_snapshot_store() -> SnapshotStore:
    settings = get_settings()
    return SnapshotStore(
        directory=settings.backup_directory,
        retention=settings.backup_retention,
        lock_timeout=settings.backup_lock_timeout,
    )


def reset_backup_stores() -> None:
    """Clear cached stores, e.g. after configuration changes in tests."""
    get_uploads_store.cache_clear()
    get_snapshot_store.cache_clear()


__all__ = [
    "BACKUP_TYPE",
    "BACKUP_VERSION",
    "BackupData",
    "BackupFile",
    "BackupPayload",
    "BackupService",
    "RestoredCounts",
    "RestoreSummary",
    "SnapshotInfo",
    "SnapshotStore",
    "UploadsStore",
    "backup_filename",
    "get_snapshot_store",
    "get_uploads_store",
    "normalize_upload_path",
    "parse_backup_payload",
    "relative_upload_path",
    "reset_backup_stores",
]
