"""
Uploads File Store

Translates between upload references stored in the database
("/uploads/menu/latte.png") and files on disk, for backup export and
restore.

The uploads root is looked up in an ordered list of candidate directories
(the app may run from its own directory or from the repository root); the
first one that exists wins.
"""

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Sequence

import aiofiles
import aiofiles.os

from cafe_cms.core.exceptions import BackupSecurityError, BackupValidationError
from cafe_cms.services.backup.schemas import BackupFile

logger = logging.getLogger(__name__)

UPLOADS_PREFIX = "/uploads/"
_PREFIX_RE = re.compile(r"^/?uploads[\\/]")


def normalize_upload_path(upload_path: Optional[str]) -> Optional[str]:
    """Return the reference with forward slashes, or None if it is not an upload."""
    if not upload_path or not upload_path.startswith(UPLOADS_PREFIX):
        return None
    return upload_path.replace("\\", "/")


def relative_upload_path(upload_path: str) -> str:
    """Strip the "/uploads/" (or "uploads/") prefix."""
    return _PREFIX_RE.sub("", upload_path, count=1)


def _is_inside(root: Path, candidate: Path) -> bool:
    return candidate != root and candidate.is_relative_to(root)


class UploadsStore:
    """
    Reads and writes upload files under the configured roots.

    Args:
        candidates: Upload root candidates, in priority order
    """

    def __init__(self, candidates: Sequence[Path]):
        if not candidates:
            raise ValueError("UploadsStore needs at least one candidate root")
        self.candidates = [Path(c) for c in candidates]

    def resolve_roots(self) -> list[Path]:
        """Existing candidate roots, in configured order."""
        return [c for c in self.candidates if c.is_dir()]

    def primary_root(self) -> Path:
        """Root that restores write into: first existing, else first configured."""
        roots = self.resolve_roots()
        return roots[0] if roots else self.candidates[0]

    async def collect(self, upload_paths: Iterable[str]) -> list[BackupFile]:
        """
        Read every referenced file that can be found.

        Missing files are logged and skipped; export is best-effort for files.
        """
        roots = self.resolve_roots()
        if not roots:
            logger.warning("Uploads directory not found. Backup will exclude files.")
            return []

        resolved_roots = [root.resolve() for root in roots]
        files: list[BackupFile] = []

        for upload_path in upload_paths:
            normalized = normalize_upload_path(upload_path)
            if not normalized:
                continue

            relative = relative_upload_path(normalized)
            candidates = [(root, (root / relative).resolve()) for root in resolved_roots]
            if not all(_is_inside(root, candidate) for root, candidate in candidates):
                logger.warning(f"Backup skipped file outside uploads root: {normalized}")
                continue

            found: Optional[Path] = None
            for _, candidate in candidates:
                if await aiofiles.os.path.isfile(candidate):
                    found = candidate
                    break

            if found is None:
                logger.warning(f"Backup skipped missing file: {normalized}")
                continue

            async with aiofiles.open(found, "rb") as f:
                content = await f.read()

            files.append(
                BackupFile(
                    path=normalized,
                    content_base64=base64.b64encode(content).decode("ascii"),
                )
            )
            logger.debug(f"Collected {normalized} ({len(content):,} bytes)")

        return files

    def _plan_restore(self, files: Sequence[BackupFile]) -> list[tuple[Path, bytes]]:
        """
        Resolve destinations and decode contents for every file.

        Nothing is written here, so one bad entry rejects the whole batch.
        """
        root = self.primary_root().resolve()
        plan: list[tuple[Path, bytes]] = []

        for file in files:
            normalized = normalize_upload_path(file.path)
            if not normalized:
                continue

            destination = (root / relative_upload_path(normalized)).resolve()
            if not _is_inside(root, destination):
                raise BackupSecurityError(f"Invalid backup file path: {file.path}")

            try:
                content = base64.b64decode(file.content_base64, validate=True)
            except (binascii.Error, ValueError) as e:
                raise BackupValidationError(
                    f"Invalid file content in backup: {file.path}"
                ) from e

            plan.append((destination, content))

        return plan

    async def restore(self, files: Sequence[BackupFile]) -> int:
        """
        Write backup files into the primary uploads root, overwriting.

        Returns:
            Number of files written

        Raises:
            BackupSecurityError: a path escapes the uploads root (nothing written)
            BackupValidationError: undecodable content (nothing written)
        """
        if not files:
            return 0

        plan = self._plan_restore(files)

        for destination, content in plan:
            await aiofiles.os.makedirs(destination.parent, exist_ok=True)
            async with aiofiles.open(destination, "wb") as f:
                await f.write(content)

        logger.info(f"Restored {len(plan)} upload file(s) into {self.primary_root()}")
        return len(plan)
