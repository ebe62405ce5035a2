"""
Backup Service

Exports all business data plus referenced upload files into a single
"cms-backup" snapshot, and restores such a snapshot over the current data.

Restore order:
    1. Parse and coerce the snapshot (rejects before any side effect)
    2. Write upload files (rejects traversal before any write)
    3. One transaction: delete current rows children-first, insert snapshot rows

Files written in step 2 are not rolled back if step 3 fails.
"""

import logging
from typing import Any, Iterable, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from cafe_cms.models import (
    CafeSettings,
    CafeTable,
    MenuItem,
    Order,
    OrderItem,
    Payment,
    User,
    WhatsAppLog,
    WhatsAppSettings,
)
from cafe_cms.services.backup.files import UPLOADS_PREFIX, UploadsStore
from cafe_cms.services.backup.records import (
    record_to_values,
    row_to_record,
    strip_tenant_id,
)
from cafe_cms.services.backup.schemas import (
    BACKUP_VERSION,
    BackupData,
    BackupPayload,
    RestoredCounts,
    RestoreSummary,
    parse_backup_payload,
    utcnow,
)

logger = logging.getLogger(__name__)

SETTINGS_UPLOAD_FIELDS = ("logo_url", "app_icon_url", "og_image_url")

# (collection, model, strip tenant id) in insert order
RESTORE_ORDER = (
    ("settings", CafeSettings, True),
    ("users", User, True),
    ("menu_items", MenuItem, True),
    ("tables", CafeTable, True),
    ("orders", Order, True),
    ("order_items", OrderItem, False),
    ("payments", Payment, True),
    ("whatsapp_settings", WhatsAppSettings, True),
)

SINGLE_RECORD_COLLECTIONS = ("settings", "whatsapp_settings")

# Deleted after order-scoped rows, before inserts
DELETE_ORDER = (
    Order,
    MenuItem,
    CafeTable,
    User,
    CafeSettings,
    WhatsAppLog,
    WhatsAppSettings,
)


def collect_upload_references(
    settings: Optional[CafeSettings],
    menu_items: Iterable[MenuItem],
    tables: Iterable[CafeTable],
    payments: Iterable[Payment],
) -> list[str]:
    """Distinct "/uploads/..." references, in first-seen order."""
    references: dict[str, None] = {}

    def add(value: Optional[str]) -> None:
        if value and value.startswith(UPLOADS_PREFIX):
            references.setdefault(value)

    if settings is not None:
        for field in SETTINGS_UPLOAD_FIELDS:
            add(getattr(settings, field))
    for item in menu_items:
        add(item.image_url)
    for table in tables:
        add(table.qr_code)
    for payment in payments:
        add(payment.payment_proof)

    return list(references)


class BackupService:
    """
    Backup export/restore over one database session.

    Args:
        db: Session to read and write through
        uploads: Store used to read and write upload files
    """

    def __init__(self, db: AsyncSession, uploads: UploadsStore):
        self.db = db
        self.uploads = uploads

    # =========================================================================
    # EXPORT
    # =========================================================================

    async def _first(self, model: type) -> Any:
        result = await self.db.execute(select(model).limit(1))
        return result.scalars().first()

    async def _all(self, model: type) -> list:
        result = await self.db.execute(select(model))
        return list(result.scalars().all())

    async def _for_orders(self, model: type, order_ids: list[str]) -> list:
        result = await self.db.execute(select(model).where(model.order_id.in_(order_ids)))
        return list(result.scalars().all())

    async def create_backup(self) -> BackupPayload:
        """Snapshot every business record and the upload files they reference."""
        settings = await self._first(CafeSettings)
        users = await self._all(User)
        menu_items = await self._all(MenuItem)
        tables = await self._all(CafeTable)
        orders = await self._all(Order)

        order_ids = [order.id for order in orders]
        order_items = await self._for_orders(OrderItem, order_ids) if order_ids else []
        payments = await self._for_orders(Payment, order_ids) if order_ids else []

        whatsapp_settings = await self._first(WhatsAppSettings)

        references = collect_upload_references(settings, menu_items, tables, payments)
        files = await self.uploads.collect(references)

        payload = BackupPayload(
            version=BACKUP_VERSION,
            created_at=utcnow(),
            tenant=None,
            data=BackupData(
                settings=row_to_record(settings) if settings else None,
                users=[row_to_record(u) for u in users],
                menu_items=[row_to_record(m) for m in menu_items],
                tables=[row_to_record(t) for t in tables],
                orders=[row_to_record(o) for o in orders],
                order_items=[row_to_record(i) for i in order_items],
                payments=[row_to_record(p) for p in payments],
                whatsapp_settings=(
                    row_to_record(whatsapp_settings) if whatsapp_settings else None
                ),
            ),
            files=files,
        )

        logger.info(
            f"Backup created: {len(orders)} orders, {len(menu_items)} menu items, "
            f"{len(files)}/{len(references)} files"
        )
        return payload

    # =========================================================================
    # RESTORE
    # =========================================================================

    @staticmethod
    def _prepare_rows(data: BackupData) -> list[tuple[str, type, list[dict[str, Any]]]]:
        """Coerce snapshot records into insert values, in insert order."""
        prepared = []
        for collection, model, strip in RESTORE_ORDER:
            value = getattr(data, collection)
            if collection in SINGLE_RECORD_COLLECTIONS:
                records = [value] if value is not None else []
            else:
                records = value
            if strip:
                records = [strip_tenant_id(r) for r in records]
            prepared.append(
                (collection, model, [record_to_values(model, r) for r in records])
            )
        return prepared

    async def _delete_current(self) -> None:
        result = await self.db.execute(select(Order.id))
        existing_order_ids = list(result.scalars().all())

        if existing_order_ids:
            await self.db.execute(
                delete(OrderItem).where(OrderItem.order_id.in_(existing_order_ids))
            )
            await self.db.execute(
                delete(Payment).where(Payment.order_id.in_(existing_order_ids))
            )

        for model in DELETE_ORDER:
            await self.db.execute(delete(model))

    async def _insert(self, collection: str, model: type, rows: list[dict[str, Any]]) -> None:
        if not rows:
            return
        if collection in SINGLE_RECORD_COLLECTIONS:
            self.db.add(model(**rows[0]))
            await self.db.flush()
        else:
            await self.db.execute(insert(model), rows)

    async def restore_backup(self, raw: Any) -> RestoreSummary:
        """
        Replace all business data with the snapshot in ``raw``.

        Raises:
            BackupValidationError: not a cms-backup, or unconvertible values
            BackupSecurityError: a file path escapes the uploads root
        """
        backup = parse_backup_payload(raw)
        prepared = self._prepare_rows(backup.data)

        files_written = await self.uploads.restore(backup.files)

        # End any transaction autobegun by earlier reads on this session
        if self.db.in_transaction():
            await self.db.commit()

        async with self.db.begin():
            await self._delete_current()
            for collection, model, rows in prepared:
                await self._insert(collection, model, rows)

        counts = {collection: len(rows) for collection, _, rows in prepared}
        summary = RestoreSummary(restored=RestoredCounts(**counts, files=files_written))

        logger.info(f"Backup restored: {summary.restored.model_dump()}")
        return summary
