"""
Backup Payload Schemas

Typed form of the "cms-backup" JSON document. Wire keys are camelCase
(menuItems, contentBase64, ...); attributes are snake_case.

Parsing tolerates snapshots written by other versions: absent or mistyped
collections default to empty. Only a missing payload or a wrong type tag is
rejected outright.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from cafe_cms.core.exceptions import BackupValidationError

BACKUP_TYPE = "cms-backup"
BACKUP_VERSION = 1

Record = dict[str, Any]

_DATETIME = TypeAdapter(datetime)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BackupFile(BaseModel):
    """One file under the uploads tree, carried as base64."""
    model_config = ConfigDict(populate_by_name=True)

    path: str
    content_base64: str = Field(alias="contentBase64")


class BackupData(BaseModel):
    """Entity collections. Records are column mappings owned by the models."""
    model_config = ConfigDict(populate_by_name=True)

    settings: Optional[Record] = None
    users: list[Record] = Field(default_factory=list)
    menu_items: list[Record] = Field(default_factory=list, alias="menuItems")
    tables: list[Record] = Field(default_factory=list)
    orders: list[Record] = Field(default_factory=list)
    order_items: list[Record] = Field(default_factory=list, alias="orderItems")
    payments: list[Record] = Field(default_factory=list)
    whatsapp_settings: Optional[Record] = Field(default=None, alias="whatsappSettings")

    @field_validator("settings", "whatsapp_settings", mode="before")
    @classmethod
    def single_record(cls, v: Any) -> Optional[Record]:
        return v if isinstance(v, dict) else None

    @field_validator(
        "users", "menu_items", "tables", "orders", "order_items", "payments",
        mode="before",
    )
    @classmethod
    def record_list(cls, v: Any) -> list[Record]:
        if not isinstance(v, list):
            return []
        return [record for record in v if isinstance(record, dict)]


class BackupPayload(BaseModel):
    """
    Complete snapshot of business data and referenced upload files.

    Serialize with ``model_dump(mode="json", by_alias=True)`` to get the
    wire format.
    """
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["cms-backup"] = BACKUP_TYPE
    version: int = BACKUP_VERSION
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    tenant: Optional[Record] = None
    data: BackupData = Field(default_factory=BackupData)
    files: list[BackupFile] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def default_version(cls, v: Any) -> int:
        if isinstance(v, bool):
            return BACKUP_VERSION
        try:
            return int(v) or BACKUP_VERSION
        except (TypeError, ValueError):
            return BACKUP_VERSION

    @field_validator("created_at", mode="before")
    @classmethod
    def default_created_at(cls, v: Any) -> datetime:
        if not v:
            return utcnow()
        try:
            return _DATETIME.validate_python(v)
        except ValidationError:
            return utcnow()

    @field_validator("tenant", mode="before")
    @classmethod
    def default_tenant(cls, v: Any) -> Optional[Record]:
        return v if isinstance(v, dict) else None

    @field_validator("data", mode="before")
    @classmethod
    def default_data(cls, v: Any) -> Any:
        if isinstance(v, (dict, BackupData)):
            return v
        return {}

    @field_validator("files", mode="before")
    @classmethod
    def complete_files(cls, v: Any) -> list:
        """Keep only entries with both a path and content."""
        if not isinstance(v, list):
            return []
        kept = []
        for entry in v:
            if isinstance(entry, BackupFile):
                kept.append(entry)
                continue
            if not isinstance(entry, dict):
                continue
            path = entry.get("path")
            content = entry.get("contentBase64", entry.get("content_base64"))
            if isinstance(path, str) and path and isinstance(content, str) and content:
                kept.append(entry)
        return kept


class RestoredCounts(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    settings: int = 0
    users: int = 0
    menu_items: int = Field(default=0, alias="menuItems")
    tables: int = 0
    orders: int = 0
    order_items: int = Field(default=0, alias="orderItems")
    payments: int = 0
    whatsapp_settings: int = Field(default=0, alias="whatsappSettings")
    files: int = 0


class RestoreSummary(BaseModel):
    """Response of a successful restore."""
    restored: RestoredCounts


def parse_backup_payload(raw: Any) -> BackupPayload:
    """
    Validate an untrusted backup document.

    Raises:
        BackupValidationError: payload missing, not an object, wrong type
            tag, or a present field of the wrong shape
    """
    if not isinstance(raw, dict) or raw.get("type") != BACKUP_TYPE:
        raise BackupValidationError("Invalid backup file.")

    try:
        return BackupPayload.model_validate(raw)
    except ValidationError as e:
        raise BackupValidationError(
            f"Invalid backup file: {e.error_count()} malformed field(s)."
        ) from e
