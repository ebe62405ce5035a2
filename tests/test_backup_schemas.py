"""Tests for backup payload parsing."""

from datetime import datetime, timezone

import pytest

from cafe_cms.core.exceptions import BackupValidationError
from cafe_cms.services.backup import BackupPayload, parse_backup_payload


@pytest.mark.parametrize(
    "raw",
    [
        None,
        [],
        "cms-backup",
        {},
        {"type": "other-backup", "data": {}},
        {"type": "CMS-BACKUP"},
    ],
)
def test_parse_rejects_non_backup(raw):
    with pytest.raises(BackupValidationError, match="Invalid backup file."):
        parse_backup_payload(raw)


def test_parse_type_tag_only_gives_empty_backup():
    backup = parse_backup_payload({"type": "cms-backup"})

    assert backup.version == 1
    assert isinstance(backup.created_at, datetime)
    assert backup.tenant is None
    assert backup.data.settings is None
    assert backup.data.whatsapp_settings is None
    assert backup.data.users == []
    assert backup.data.menu_items == []
    assert backup.data.order_items == []
    assert backup.files == []


def test_parse_normalizes_mistyped_collections():
    backup = parse_backup_payload({
        "type": "cms-backup",
        "version": "not-a-number",
        "tenant": "acme",
        "data": {
            "settings": ["not", "a", "record"],
            "users": {"id": "user-1"},
            "menuItems": [{"id": "menu-1"}, "junk", 42, None],
            "orders": None,
            "whatsappSettings": {"id": "whatsapp-1"},
        },
    })

    assert backup.version == 1
    assert backup.tenant is None
    assert backup.data.settings is None
    assert backup.data.users == []
    assert backup.data.menu_items == [{"id": "menu-1"}]
    assert backup.data.orders == []
    assert backup.data.whatsapp_settings == {"id": "whatsapp-1"}


def test_parse_non_object_data_becomes_empty():
    backup = parse_backup_payload({"type": "cms-backup", "data": "oops"})
    assert backup.data.tables == []
    assert backup.data.payments == []


def test_parse_drops_incomplete_files():
    backup = parse_backup_payload({
        "type": "cms-backup",
        "files": [
            {"path": "/uploads/a.png", "contentBase64": "YQ=="},
            {"path": "/uploads/b.png"},
            {"contentBase64": "Yg=="},
            {"path": "", "contentBase64": "Yw=="},
            {"path": "/uploads/d.png", "contentBase64": ""},
            "not-a-file",
        ],
    })

    assert [f.path for f in backup.files] == ["/uploads/a.png"]
    assert backup.files[0].content_base64 == "YQ=="


def test_parse_non_list_files_becomes_empty():
    backup = parse_backup_payload({"type": "cms-backup", "files": {"path": "x"}})
    assert backup.files == []


def test_parse_reads_created_at():
    backup = parse_backup_payload({"type": "cms-backup", "createdAt": "2026-10-01T08:00:00.000Z"})
    assert backup.created_at.year == 2026
    assert backup.created_at.utcoffset().total_seconds() == 0


@pytest.mark.parametrize("created_at", ["not a date", "yesterday-ish", ["2026"], {"at": 1}])
def test_parse_unparseable_created_at_falls_back_to_now(created_at):
    before = datetime.now(timezone.utc)

    backup = parse_backup_payload({"type": "cms-backup", "createdAt": created_at})

    assert backup.created_at >= before
    assert backup.created_at.tzinfo is not None


def test_wire_format_uses_camel_case():
    payload = BackupPayload.model_validate({
        "type": "cms-backup",
        "data": {"menuItems": [{"id": "menu-1"}], "orderItems": [], "whatsappSettings": None},
        "files": [{"path": "/uploads/a.png", "contentBase64": "YQ=="}],
    })

    document = payload.model_dump(mode="json", by_alias=True)

    assert document["type"] == "cms-backup"
    assert document["version"] == 1
    assert "createdAt" in document
    assert document["tenant"] is None
    assert set(document["data"]) == {
        "settings", "users", "menuItems", "tables", "orders",
        "orderItems", "payments", "whatsappSettings",
    }
    assert document["data"]["menuItems"] == [{"id": "menu-1"}]
    assert document["files"] == [{"path": "/uploads/a.png", "contentBase64": "YQ=="}]
