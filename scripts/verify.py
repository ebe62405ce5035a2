"""
Backup Verification Script

Verifies the integrity of a cms-backup JSON file before it is restored.
Run from project root: python scripts/verify.py backups/cms-backup-....json

Without an argument the newest snapshot in BACKUP_DIRECTORY is checked.
"""

import base64
import binascii
import json
import sys
from datetime import datetime
from pathlib import Path

import pandas as pd

from cafe_cms.core.config import get_settings
from cafe_cms.core.exceptions import BackupValidationError
from cafe_cms.services.backup import SnapshotStore, parse_backup_payload
from cafe_cms.services.backup.files import relative_upload_path

COLLECTIONS = ["users", "menu_items", "tables", "orders", "order_items", "payments"]


def latest_snapshot() -> Path | None:
    settings = get_settings()
    snapshots = SnapshotStore(settings.backup_directory).list_snapshots()
    if not snapshots:
        return None
    return Path(settings.backup_directory) / snapshots[0].name


def verify_backup(path: Path) -> bool:
    """Verify a backup file. Returns True when no problems were found."""

    print("=" * 60)
    print("BACKUP VERIFICATION REPORT")
    print("=" * 60)
    print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"File: {path}")
    print("=" * 60)

    if not path.exists():
        print("\nBackup file not found!")
        print("   Download one from /api/admin/backup or queue a snapshot first")
        return False

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        backup = parse_backup_payload(raw)
        print("\nFile loaded successfully!")
    except (ValueError, BackupValidationError) as e:
        print(f"\nCould not read backup file: {e}")
        return False

    problems = 0

    print("\nSTATISTICS:")
    print(f"   Version: {backup.version}")
    print(f"   Created: {backup.created_at.isoformat()}")
    print(f"   Settings: {'yes' if backup.data.settings else 'no'}")
    print(f"   WhatsApp settings: {'yes' if backup.data.whatsapp_settings else 'no'}")

    frames = {
        name: pd.DataFrame(getattr(backup.data, name)) for name in COLLECTIONS
    }
    for name, df in frames.items():
        print(f"   {name}: {len(df)} rows")

    # Check duplicate ids
    for name, df in frames.items():
        if "id" not in df.columns:
            continue
        duplicates = int(df["id"].duplicated().sum())
        if duplicates > 0:
            print(f"\n{duplicates} duplicate ids in {name}!")
            problems += 1

    # Orphaned order lines
    orders, order_items = frames["orders"], frames["order_items"]
    if len(order_items) and "order_id" in order_items.columns:
        known = set(orders["id"]) if "id" in orders.columns else set()
        orphans = int((~order_items["order_id"].isin(known)).sum())
        if orphans > 0:
            print(f"\n{orphans} order items reference missing orders!")
            problems += 1

    # Files
    files = pd.DataFrame(
        [{"path": f.path, "content_base64": f.content_base64} for f in backup.files],
        columns=["path", "content_base64"],
    )
    print("\nFILES:")
    print(f"   Count: {len(files)}")

    sizes = []
    for row in files.itertuples(index=False):
        if ".." in Path(relative_upload_path(row.path)).parts:
            print(f"   Unsafe path: {row.path}")
            problems += 1
            sizes.append(0)
            continue
        try:
            sizes.append(len(base64.b64decode(row.content_base64, validate=True)))
        except (binascii.Error, ValueError):
            print(f"   Undecodable content: {row.path}")
            problems += 1
            sizes.append(0)

    if len(files) > 0:
        files["size_bytes"] = sizes
        print(f"   Total size: {files['size_bytes'].sum():,} bytes")
        print("-" * 60)
        print(files[["path", "size_bytes"]].tail(5).to_string(index=False))

    print("\n" + "=" * 60)
    if problems:
        print(f"VERIFICATION FAILED ({problems} problem(s))")
    else:
        print("VERIFICATION COMPLETE")
    print("=" * 60)

    return problems == 0


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else latest_snapshot()
    if target is None:
        print("No backup file given and no snapshots found.")
        sys.exit(1)
    sys.exit(0 if verify_backup(target) else 1)
