"""Shared test data for the backup and settings tests."""

import base64
from datetime import datetime
from pathlib import Path

from cafe_cms.models import (
    CafeSettings,
    CafeTable,
    Language,
    MenuCategory,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentStatus,
    User,
    UserRole,
    WhatsAppSettings,
)

LOGO_BYTES = b"\x89PNG\r\n\x1a\nlogo"
LATTE_BYTES = b"\x89PNG\r\n\x1a\nlatte\x00\xff"
QR_BYTES = b"<svg>table-1</svg>"
PROOF_BYTES = b"%PDF-1.4 transfer receipt"


def write_upload_files(root: Path) -> dict[str, bytes]:
    """Create the files the seeded rows reference. Returns reference -> bytes."""
    files = {
        "/uploads/branding/logo.png": LOGO_BYTES,
        "/uploads/menu/latte.png": LATTE_BYTES,
        "/uploads/qr/table-1.svg": QR_BYTES,
        "/uploads/payments/proof-1.pdf": PROOF_BYTES,
    }
    for reference, content in files.items():
        path = root / reference.removeprefix("/uploads/")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return files


async def seed_cafe(session) -> dict[str, str]:
    """One of everything, with upload references and tenant ids. Returns ids."""
    settings = CafeSettings(
        id="settings-1",
        tenant_id="tenant-a",
        business_name="Kopi Senja",
        business_name_id="Kopi Senja",
        logo_url="/uploads/branding/logo.png",
        og_image_url="https://cdn.example.com/og.png",
        tax_rate=10.0,
        currency="IDR",
    )
    user = User(
        id="user-1",
        tenant_id="tenant-a",
        email="owner@kopisenja.test",
        password="$2b$12$hash",
        full_name="Dewi Lestari",
        role=UserRole.ADMIN,
    )
    latte = MenuItem(
        id="menu-1",
        tenant_id="tenant-a",
        name="Iced Latte",
        name_id="Es Kopi Susu",
        price=28000.0,
        category=MenuCategory.DRINKS,
        image_url="/uploads/menu/latte.png",
        sizes=[{"label": "Regular", "price": 28000}, {"label": "Large", "price": 34000}],
    )
    table = CafeTable(
        id="table-1",
        tenant_id="tenant-a",
        table_number="T1",
        qr_code="/uploads/qr/table-1.svg",
    )
    order = Order(
        id="order-1",
        tenant_id="tenant-a",
        order_number="ORD-0001",
        customer_name="Budi",
        customer_phone="+628123456789",
        language=Language.INDONESIAN,
        table_id="table-1",
        total_amount=56000.0,
        status=OrderStatus.COMPLETED,
        payment_status=PaymentStatus.PAID,
    )
    order_item = OrderItem(
        id="item-1",
        order_id="order-1",
        menu_item_id="menu-1",
        quantity=2,
        unit_price=28000.0,
        subtotal=56000.0,
        size_label="Regular",
    )
    payment = Payment(
        id="payment-1",
        tenant_id="tenant-a",
        order_id="order-1",
        amount=56000.0,
        method="BANK_TRANSFER",
        status=PaymentStatus.PAID,
        payment_proof="/uploads/payments/proof-1.pdf",
        paid_at=datetime(2026, 10, 1, 9, 30),
    )
    whatsapp = WhatsAppSettings(
        id="whatsapp-1",
        tenant_id="tenant-a",
        enabled=False,
        phone_number_id="1234567890",
        default_country_code="+62",
    )

    session.add_all([settings, user, latte, table, order, order_item, payment, whatsapp])
    await session.commit()

    return {
        "settings": settings.id,
        "user": user.id,
        "menu_item": latte.id,
        "table": table.id,
        "order": order.id,
        "order_item": order_item.id,
        "payment": payment.id,
        "whatsapp": whatsapp.id,
    }


def b64(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


def minimal_backup(**data) -> dict:
    """A wire-format backup document with the given data collections."""
    return {
        "type": "cms-backup",
        "version": 1,
        "createdAt": "2026-10-01T08:00:00.000Z",
        "tenant": None,
        "data": data,
        "files": [],
    }
