"""Tests for the uploads file store."""

import base64

import pytest

from cafe_cms.core.exceptions import BackupSecurityError, BackupValidationError
from cafe_cms.services.backup import (
    BackupFile,
    UploadsStore,
    normalize_upload_path,
    relative_upload_path,
)


def _file(path: str, content: bytes) -> BackupFile:
    return BackupFile(path=path, content_base64=base64.b64encode(content).decode("ascii"))


# =============================================================================
# PATH HELPERS
# =============================================================================

def test_normalize_upload_path():
    assert normalize_upload_path("/uploads/menu/latte.png") == "/uploads/menu/latte.png"
    assert normalize_upload_path("/uploads/menu\\latte.png") == "/uploads/menu/latte.png"
    assert normalize_upload_path("https://cdn.example.com/a.png") is None
    assert normalize_upload_path("uploads/a.png") is None
    assert normalize_upload_path("") is None
    assert normalize_upload_path(None) is None


def test_relative_upload_path():
    assert relative_upload_path("/uploads/menu/latte.png") == "menu/latte.png"
    assert relative_upload_path("uploads/menu/latte.png") == "menu/latte.png"
    assert relative_upload_path("/uploads\\qr.svg") == "qr.svg"


# =============================================================================
# ROOTS
# =============================================================================

def test_store_requires_candidates():
    with pytest.raises(ValueError):
        UploadsStore([])


def test_primary_root_is_first_existing_candidate(tmp_path):
    missing = tmp_path / "missing"
    second = tmp_path / "second"
    second.mkdir()
    third = tmp_path / "third"
    third.mkdir()

    store = UploadsStore([missing, second, third])

    assert store.resolve_roots() == [second, third]
    assert store.primary_root() == second


def test_primary_root_falls_back_to_first_candidate(tmp_path):
    store = UploadsStore([tmp_path / "a", tmp_path / "b"])
    assert store.resolve_roots() == []
    assert store.primary_root() == tmp_path / "a"


# =============================================================================
# COLLECT
# =============================================================================

@pytest.mark.asyncio
async def test_collect_reads_and_encodes(uploads_root, uploads_store):
    (uploads_root / "menu").mkdir()
    (uploads_root / "menu" / "latte.png").write_bytes(b"\x00latte\xff")

    files = await uploads_store.collect(["/uploads/menu/latte.png"])

    assert len(files) == 1
    assert files[0].path == "/uploads/menu/latte.png"
    assert base64.b64decode(files[0].content_base64) == b"\x00latte\xff"


@pytest.mark.asyncio
async def test_collect_skips_missing_and_foreign_references(uploads_root, uploads_store, caplog):
    (uploads_root / "a.png").write_bytes(b"a")

    files = await uploads_store.collect([
        "/uploads/a.png",
        "/uploads/gone.png",
        "https://cdn.example.com/b.png",
    ])

    assert [f.path for f in files] == ["/uploads/a.png"]
    assert "Backup skipped missing file: /uploads/gone.png" in caplog.text


@pytest.mark.asyncio
async def test_collect_skips_traversal(tmp_path, uploads_store):
    (tmp_path / "secret.txt").write_text("do not export")

    files = await uploads_store.collect(["/uploads/../secret.txt"])

    assert files == []


@pytest.mark.asyncio
async def test_collect_without_roots_returns_nothing(tmp_path, caplog):
    store = UploadsStore([tmp_path / "nowhere"])

    files = await store.collect(["/uploads/a.png"])

    assert files == []
    assert "Uploads directory not found" in caplog.text


@pytest.mark.asyncio
async def test_collect_probes_roots_in_order(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    (second / "only-here.png").write_bytes(b"second")
    (first / "both.png").write_bytes(b"first")
    (second / "both.png").write_bytes(b"second")

    files = await UploadsStore([first, second]).collect([
        "/uploads/only-here.png",
        "/uploads/both.png",
    ])

    contents = {f.path: base64.b64decode(f.content_base64) for f in files}
    assert contents == {"/uploads/only-here.png": b"second", "/uploads/both.png": b"first"}


# =============================================================================
# RESTORE
# =============================================================================

@pytest.mark.asyncio
async def test_restore_writes_byte_exact(uploads_root, uploads_store):
    content = bytes(range(256))

    written = await uploads_store.restore([_file("/uploads/nested/dir/blob.bin", content)])

    assert written == 1
    assert (uploads_root / "nested" / "dir" / "blob.bin").read_bytes() == content


@pytest.mark.asyncio
async def test_restore_overwrites_existing(uploads_root, uploads_store):
    (uploads_root / "a.txt").write_bytes(b"old")

    await uploads_store.restore([_file("/uploads/a.txt", b"new")])

    assert (uploads_root / "a.txt").read_bytes() == b"new"


@pytest.mark.asyncio
async def test_restore_creates_missing_root(tmp_path):
    root = tmp_path / "fresh-uploads"
    store = UploadsStore([root])

    written = await store.restore([_file("/uploads/a.txt", b"a")])

    assert written == 1
    assert (root / "a.txt").read_bytes() == b"a"


@pytest.mark.asyncio
async def test_restore_ignores_non_upload_paths(uploads_root, uploads_store):
    written = await uploads_store.restore([_file("https://cdn.example.com/a.png", b"a")])
    assert written == 0
    assert list(uploads_root.iterdir()) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path",
    [
        "/uploads/../../etc/passwd",
        "/uploads/../escape.txt",
        "/uploads/menu/../../escape.txt",
        "/uploads/..",
        "/uploads/",
    ],
)
async def test_restore_rejects_paths_outside_root(tmp_path, uploads_root, uploads_store, path):
    files = [
        _file("/uploads/safe-first.txt", b"would be written first"),
        _file(path, b"pwned"),
    ]

    with pytest.raises(BackupSecurityError, match="Invalid backup file path"):
        await uploads_store.restore(files)

    # Nothing written, not even the entries before the bad one
    assert list(uploads_root.iterdir()) == []
    assert not (tmp_path / "escape.txt").exists()


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["abc", "@@@@", "YWJj$$$$", "YW Jj"])
async def test_restore_rejects_undecodable_content(uploads_root, uploads_store, content):
    files = [
        _file("/uploads/ok.txt", b"ok"),
        BackupFile(path="/uploads/bad.txt", content_base64=content),
    ]

    with pytest.raises(BackupValidationError):
        await uploads_store.restore(files)

    assert list(uploads_root.iterdir()) == []


@pytest.mark.asyncio
async def test_restore_invalid_content_keeps_existing_file(uploads_root, uploads_store):
    (uploads_root / "x.bin").write_bytes(b"original")

    with pytest.raises(BackupValidationError, match="/uploads/x.bin"):
        await uploads_store.restore([BackupFile(path="/uploads/x.bin", content_base64="@@@@")])

    assert (uploads_root / "x.bin").read_bytes() == b"original"


def test_factory_reads_configured_roots():
    from cafe_cms.core.config import get_settings
    from cafe_cms.services.backup import get_uploads_store, reset_backup_stores

    reset_backup_stores()
    try:
        assert get_uploads_store().candidates == get_settings().uploads_dirs_list
    finally:
        reset_backup_stores()
