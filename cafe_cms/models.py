"""
SQLAlchemy Database Models

Cafe point-of-sale data model:
- Business settings and staff users
- Menu, tables (with QR codes) and orders
- Payments with uploaded transfer proofs
- WhatsApp Cloud API settings and message log

Upload references (logo_url, image_url, qr_code, payment_proof, ...) are
stored as "/uploads/..." paths pointing into the uploads root.

tenant_id columns are kept for compatibility with older exports; tenancy is
disabled and nothing reads them.
"""

import enum
import uuid

from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Text,
    Enum,
    Boolean,
    JSON,
    ForeignKey,
)
from sqlalchemy.sql import func

from cafe_cms.database import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    """Staff roles."""
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"
    KITCHEN = "KITCHEN"


class Language(str, enum.Enum):
    ENGLISH = "ENGLISH"
    INDONESIAN = "INDONESIAN"


class MenuCategory(str, enum.Enum):
    DRINKS = "DRINKS"
    MAIN_FOODS = "MAIN_FOODS"
    SNACKS = "SNACKS"
    CABINET_FOOD = "CABINET_FOOD"
    CAKES = "CAKES"
    GIFTS = "GIFTS"


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    WAITING = "WAITING"
    PENDING = "PENDING"
    PAID = "PAID"
    COOKING = "COOKING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class WhatsAppMessageDirection(str, enum.Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class CafeSettings(Base):
    """
    Business settings. A single row is expected; see
    cafe_cms.services.settings.get_or_create_cafe_settings.
    """
    __tablename__ = "settings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), nullable=True)

    # =========================================================================
    # BUSINESS IDENTITY
    # =========================================================================
    business_name = Column(String(200), nullable=False, default="My Cafe")
    business_name_id = Column(String(200), nullable=True)
    business_address = Column(Text, nullable=True)
    business_phone = Column(String(50), nullable=True)
    business_whatsapp = Column(String(50), nullable=True)
    business_email = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # =========================================================================
    # BRANDING (upload references)
    # =========================================================================
    logo_url = Column(String(500), nullable=True)
    app_icon_url = Column(String(500), nullable=True)
    og_image_url = Column(String(500), nullable=True)
    theme_color = Column(String(20), nullable=True, default="#4F46E5")

    # =========================================================================
    # BANK TRANSFER
    # =========================================================================
    bank_name = Column(String(100), nullable=True)
    bank_account_holder = Column(String(200), nullable=True)
    bank_account_number = Column(String(100), nullable=True)
    bank_payment_instructions = Column(Text, nullable=True)

    # =========================================================================
    # OPERATIONS
    # =========================================================================
    opening_hours = Column(Text, nullable=True)  # JSON string keyed by weekday
    default_language = Column(Enum(Language), nullable=False, default=Language.ENGLISH)
    enable_english = Column(Boolean, default=True)
    enable_indonesian = Column(Boolean, default=True)
    tax_rate = Column(Float, nullable=False, default=0.0)
    service_charge_rate = Column(Float, nullable=False, default=0.0)
    order_approval_mode = Column(String(20), nullable=False, default="AUTO")
    currency = Column(String(10), nullable=False, default="IDR")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<CafeSettings {self.business_name}>"


class User(Base):
    """Dashboard staff account."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash
    full_name = Column(String(200), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.STAFF)
    is_active = Column(Boolean, default=True)
    is_demo = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<User {self.email} - {self.role.value}>"


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), nullable=True)
    name = Column(String(200), nullable=False)
    name_id = Column(String(200), nullable=True)  # Indonesian name
    description = Column(Text, nullable=True)
    description_id = Column(Text, nullable=True)
    price = Column(Float, nullable=True)  # null when priced by size
    category = Column(Enum(MenuCategory), nullable=False, index=True)
    image_url = Column(String(500), nullable=True)
    stock_qty = Column(Integer, nullable=True)  # cabinet food only
    is_available = Column(Boolean, default=True)
    sizes = Column(JSON, nullable=True)  # [{"label": "Large", "price": 30000}]

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<MenuItem {self.name} - {self.category.value}>"


class CafeTable(Base):
    """Dining table with its ordering QR code."""
    __tablename__ = "tables"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), nullable=True)
    table_number = Column(String(20), nullable=False, unique=True)
    qr_code = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<CafeTable {self.table_number}>"


class Order(Base):
    """Customer order placed at a table, at the counter, or via QR."""
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), nullable=True)
    order_number = Column(String(30), nullable=False, index=True)

    # =========================================================================
    # CUSTOMER INFORMATION
    # =========================================================================
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(30), nullable=False, index=True)
    language = Column(Enum(Language), nullable=False, default=Language.ENGLISH)

    # =========================================================================
    # ORDER DETAILS
    # =========================================================================
    table_id = Column(String(36), ForeignKey("tables.id"), nullable=True)
    notes = Column(Text, nullable=True)
    total_amount = Column(Float, nullable=False, default=0.0)
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.WAITING,
        nullable=False,
        index=True
    )
    payment_status = Column(
        Enum(PaymentStatus),
        default=PaymentStatus.PENDING,
        nullable=False
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Order {self.order_number} - {self.customer_name} - {self.status.value}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(String(36), ForeignKey("menu_items.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Float, nullable=False)
    subtotal = Column(Float, nullable=False)
    size_label = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), nullable=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    method = Column(String(30), nullable=False, default="CASH")
    status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    payment_proof = Column(String(500), nullable=True)  # bank transfer screenshot
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Payment {self.amount} for {self.order_id} - {self.status.value}>"


class WhatsAppSettings(Base):
    """WhatsApp Cloud API credentials. A single row is expected."""
    __tablename__ = "whatsapp_settings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), nullable=True)
    enabled = Column(Boolean, nullable=False, default=False)
    phone_number_id = Column(String(100), nullable=True)
    business_account_id = Column(String(100), nullable=True)
    access_token = Column(Text, nullable=True)
    webhook_verify_token = Column(String(200), nullable=True)
    default_country_code = Column(String(10), nullable=True)
    last_updated_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<WhatsAppSettings enabled={self.enabled}>"


class WhatsAppLog(Base):
    """Inbound webhook bodies and outbound message payloads."""
    __tablename__ = "whatsapp_logs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    whatsapp_settings_id = Column(
        String(36),
        ForeignKey("whatsapp_settings.id"),
        nullable=False,
        index=True
    )
    direction = Column(Enum(WhatsAppMessageDirection), nullable=False)
    payload = Column(JSON, nullable=True)
    status_code = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<WhatsAppLog {self.direction.value} {self.status_code}>"
