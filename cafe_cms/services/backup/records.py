"""
Row <-> record conversion for backups.

A record is the plain column mapping of a row (attribute name -> value).
On restore, values arrive as JSON scalars and are coerced back to each
column's Python type; keys a model does not know are dropped so snapshots
from other versions still load.
"""

from functools import lru_cache
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import JSON, inspect
from sqlalchemy.schema import Column

from cafe_cms.core.exceptions import BackupValidationError
from cafe_cms.services.backup.schemas import Record

TENANT_FIELDS = ("tenant_id", "tenantId")


def row_to_record(row: Any) -> Record:
    """Column values of an ORM instance, keyed by attribute name."""
    mapper = inspect(row).mapper
    return {attr.key: getattr(row, attr.key) for attr in mapper.column_attrs}


def strip_tenant_id(record: Record) -> Record:
    """Drop tenant identifiers; tenancy is disabled on this deployment."""
    return {k: v for k, v in record.items() if k not in TENANT_FIELDS}


@lru_cache(maxsize=None)
def _adapter(python_type: type) -> TypeAdapter:
    return TypeAdapter(python_type)


def _python_type(column: Column) -> Optional[type]:
    if isinstance(column.type, JSON):
        return None
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def record_to_values(model: type, record: Record) -> dict[str, Any]:
    """
    Insert values for ``model`` built from a backup record.

    Raises:
        BackupValidationError: a value cannot be converted to its column type
    """
    values: dict[str, Any] = {}

    for attr in inspect(model).column_attrs:
        if attr.key not in record:
            continue

        value = record[attr.key]
        python_type = _python_type(attr.columns[0])
        if value is not None and python_type is not None:
            try:
                value = _adapter(python_type).validate_python(value)
            except ValidationError as e:
                raise BackupValidationError(
                    f"Invalid value for {model.__tablename__}.{attr.key} in backup"
                ) from e

        values[attr.key] = value

    return values
