"""
Stored Backup Snapshots

Writes backup payloads to the backup directory as
cms-backup-<timestamp>.json and keeps only the newest N. Writers
serialize on a file lock so a scheduled snapshot and a manual one cannot
interleave their pruning.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from filelock import FileLock, Timeout

from cafe_cms.services.backup.schemas import BackupPayload

logger = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "cms-backup-"
SNAPSHOT_SUFFIX = ".json"


def backup_filename(created_at: datetime) -> str:
    """cms-backup-2024-05-01T10-15-30-123Z.json style name, safe on every OS."""
    stamp = created_at.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    stamp = stamp.replace("+00:00", "Z").replace(":", "-").replace(".", "-")
    return f"{SNAPSHOT_PREFIX}{stamp}{SNAPSHOT_SUFFIX}"


@dataclass
class SnapshotInfo:
    """A stored snapshot file."""
    name: str
    size_bytes: int
    modified_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "size_bytes": self.size_bytes,
            "modified_at": self.modified_at.isoformat(),
        }


class SnapshotStore:
    """File-locked snapshot directory with count-based retention."""

    def __init__(self, directory: Path, retention: int = 7, lock_timeout: int = 30):
        self.directory = Path(directory)
        self.retention = retention
        self.lock_timeout = lock_timeout
        self.lock_path = self.directory / ".snapshots.lock"

    def _ensure_directory(self) -> None:
        if not self.directory.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created backup directory: {self.directory}")

    def _snapshot_files(self) -> list[Path]:
        """Snapshot files, newest first."""
        if not self.directory.exists():
            return []
        files = [
            p for p in self.directory.glob(f"{SNAPSHOT_PREFIX}*{SNAPSHOT_SUFFIX}")
            if p.is_file()
        ]
        return sorted(files, key=lambda p: p.name, reverse=True)

    def write(self, payload: BackupPayload) -> Path:
        """
        Store a payload and prune old snapshots.

        Raises:
            Timeout: the directory lock could not be acquired in time
        """
        self._ensure_directory()
        path = self.directory / backup_filename(payload.created_at)
        document = payload.model_dump(mode="json", by_alias=True)

        try:
            with FileLock(str(self.lock_path), timeout=self.lock_timeout):
                path.write_text(json.dumps(document), encoding="utf-8")
                removed = self.prune()
        except Timeout:
            logger.error(f"Snapshot lock timeout ({self.lock_timeout}s)")
            raise

        logger.info(
            f"Snapshot stored: {path.name} ({path.stat().st_size:,} bytes, "
            f"{removed} pruned)"
        )
        return path

    def prune(self) -> int:
        """Delete snapshots beyond the retention count. Caller holds the lock."""
        removed = 0
        for stale in self._snapshot_files()[self.retention:]:
            stale.unlink()
            removed += 1
            logger.debug(f"Pruned snapshot {stale.name}")
        return removed

    def list_snapshots(self) -> list[SnapshotInfo]:
        return [
            SnapshotInfo(
                name=p.name,
                size_bytes=p.stat().st_size,
                modified_at=datetime.fromtimestamp(p.stat().st_mtime, tz=timezone.utc),
            )
            for p in self._snapshot_files()
        ]
