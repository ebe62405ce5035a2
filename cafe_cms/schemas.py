"""
Pydantic Schemas for Request/Response Validation

Covers the admin API surface:
- Cafe business settings
- WhatsApp Cloud API settings and messages
- Backup snapshots
- Health and error responses

The backup document itself is defined in cafe_cms.services.backup.schemas.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cafe_cms.models import Language


# =============================================================================
# CAFE SETTINGS
# =============================================================================

class CafeSettingsUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""
    model_config = ConfigDict(extra="forbid")

    business_name: Optional[str] = Field(None, min_length=1, max_length=200)
    business_name_id: Optional[str] = Field(None, max_length=200)
    business_address: Optional[str] = None
    business_phone: Optional[str] = Field(None, max_length=50)
    business_whatsapp: Optional[str] = Field(None, max_length=50)
    business_email: Optional[str] = Field(None, max_length=255)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    logo_url: Optional[str] = Field(None, max_length=500)
    app_icon_url: Optional[str] = Field(None, max_length=500)
    og_image_url: Optional[str] = Field(None, max_length=500)
    theme_color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    bank_name: Optional[str] = Field(None, max_length=100)
    bank_account_holder: Optional[str] = Field(None, max_length=200)
    bank_account_number: Optional[str] = Field(None, max_length=100)
    bank_payment_instructions: Optional[str] = None
    opening_hours: Optional[str] = None
    default_language: Optional[Language] = None
    enable_english: Optional[bool] = None
    enable_indonesian: Optional[bool] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    service_charge_rate: Optional[float] = Field(None, ge=0, le=100)
    order_approval_mode: Optional[Literal["AUTO", "MANUAL"]] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=10)


class CafeSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    business_name: str
    business_name_id: Optional[str]
    business_address: Optional[str]
    business_phone: Optional[str]
    business_whatsapp: Optional[str]
    business_email: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    logo_url: Optional[str]
    app_icon_url: Optional[str]
    og_image_url: Optional[str]
    theme_color: Optional[str]
    bank_name: Optional[str]
    bank_account_holder: Optional[str]
    bank_account_number: Optional[str]
    bank_payment_instructions: Optional[str]
    opening_hours: Optional[str]
    default_language: Language
    enable_english: Optional[bool]
    enable_indonesian: Optional[bool]
    tax_rate: float
    service_charge_rate: float
    order_approval_mode: str
    currency: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


# =============================================================================
# WHATSAPP
# =============================================================================

class WhatsAppSettingsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: Optional[bool] = None
    phone_number_id: Optional[str] = None
    business_account_id: Optional[str] = None
    access_token: Optional[str] = None
    webhook_verify_token: Optional[str] = None
    default_country_code: Optional[str] = Field(None, pattern=r"^\+?\d{1,4}$")


class WhatsAppSettingsResponse(BaseModel):
    """Settings with the access token masked."""
    id: str
    enabled: bool
    phone_number_id: Optional[str] = None
    business_account_id: Optional[str] = None
    webhook_verify_token: Optional[str] = None
    default_country_code: Optional[str] = None
    last_updated_at: Optional[datetime] = None
    access_token_masked: Optional[str] = None
    has_access_token: bool = False


class WhatsAppMessage(BaseModel):
    """Outbound WhatsApp message request."""
    to: str = Field(..., min_length=1)
    type: Literal["text", "template", "media"]
    text: Optional[str] = None
    template_name: Optional[str] = None
    template_params: Optional[dict[str, str]] = None
    template_language_code: Optional[str] = None
    media_url: Optional[str] = None
    media_type: Optional[Literal["image", "document"]] = None
    caption: Optional[str] = None


class SendTestMessageRequest(BaseModel):
    test_phone: str = Field(..., min_length=5, max_length=30, examples=["+6281234567890"])
    message: Optional[str] = Field(None, max_length=1000)

    @field_validator("test_phone")
    @classmethod
    def strip_phone(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("test_phone must not be blank")
        return v


class SendMessageResponse(BaseModel):
    success: bool


class WebhookReceivedResponse(BaseModel):
    received: bool = True


# =============================================================================
# BACKUP SNAPSHOTS
# =============================================================================

class SnapshotResponse(BaseModel):
    name: str
    size_bytes: int
    modified_at: datetime


class SnapshotListResponse(BaseModel):
    total: int
    snapshots: list[SnapshotResponse]


class SnapshotQueuedResponse(BaseModel):
    success: bool
    task_id: str
    message: str


# =============================================================================
# COMMON
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[Any] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    whatsapp_service: str
    timestamp: datetime
