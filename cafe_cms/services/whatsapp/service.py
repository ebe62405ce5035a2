"""
WhatsApp Service

Settings management and outbound messaging for the WhatsApp Cloud API
integration. Every inbound webhook and every outbound attempt (successful
or not) is recorded in whatsapp_logs.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cafe_cms.core.exceptions import WhatsAppError
from cafe_cms.models import WhatsAppLog, WhatsAppMessageDirection, WhatsAppSettings
from cafe_cms.schemas import (
    WhatsAppMessage,
    WhatsAppSettingsResponse,
    WhatsAppSettingsUpdate,
)
from cafe_cms.services.settings import (
    get_or_create_cafe_settings,
    get_or_create_whatsapp_settings,
)
from cafe_cms.services.whatsapp.base import BaseWhatsAppClient
from cafe_cms.services.whatsapp.messages import (
    build_message_payload,
    mask_token,
    normalize_phone_number,
)

logger = logging.getLogger(__name__)

# Required before the integration may be enabled
REQUIRED_FIELDS = (
    "phone_number_id",
    "business_account_id",
    "webhook_verify_token",
    "access_token",
)


class WhatsAppService:
    """
    WhatsApp integration over one database session.

    Args:
        db: Database session
        client: Transport that delivers message bodies
    """

    def __init__(self, db: AsyncSession, client: BaseWhatsAppClient):
        self.db = db
        self.client = client

    async def get_settings(self) -> WhatsAppSettings:
        return await get_or_create_whatsapp_settings(self.db)

    @staticmethod
    def sanitize_settings(settings: WhatsAppSettings) -> WhatsAppSettingsResponse:
        """Settings safe to show in the dashboard (token masked)."""
        return WhatsAppSettingsResponse(
            id=settings.id,
            enabled=settings.enabled,
            phone_number_id=settings.phone_number_id,
            business_account_id=settings.business_account_id,
            webhook_verify_token=settings.webhook_verify_token,
            default_country_code=settings.default_country_code,
            last_updated_at=settings.last_updated_at,
            access_token_masked=mask_token(settings.access_token),
            has_access_token=bool(settings.access_token),
        )

    async def update_settings(self, update: WhatsAppSettingsUpdate) -> WhatsAppSettingsResponse:
        """
        Apply a settings update.

        Raises:
            WhatsAppError: enabling without the required credentials
        """
        existing = await self.get_settings()
        changes = update.model_dump(exclude_unset=True)
        next_enabled = changes.get("enabled")
        if next_enabled is None:
            next_enabled = existing.enabled

        if next_enabled:
            missing = [
                field for field in REQUIRED_FIELDS
                if not changes.get(field) and not getattr(existing, field)
            ]
            if missing:
                raise WhatsAppError(
                    f"Missing required fields for enabling WhatsApp: {', '.join(missing)}"
                )

        was_enabled = existing.enabled

        for field in ("phone_number_id", "business_account_id",
                      "webhook_verify_token", "default_country_code"):
            if changes.get(field) is not None:
                setattr(existing, field, changes[field])
        # Token is write-only: only replaced when a new one is supplied
        if changes.get("access_token"):
            existing.access_token = changes["access_token"]
        existing.enabled = next_enabled
        existing.last_updated_at = datetime.now(timezone.utc)

        await self.db.commit()
        await self.db.refresh(existing)

        if not was_enabled and existing.enabled:
            logger.info("WhatsApp integration enabled")

        return self.sanitize_settings(existing)

    async def _log_message(
        self,
        settings_id: str,
        direction: WhatsAppMessageDirection,
        payload: Any,
        status_code: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> None:
        self.db.add(
            WhatsAppLog(
                whatsapp_settings_id=settings_id,
                direction=direction,
                payload=payload,
                status_code=status_code,
                error_message=error_message,
            )
        )
        await self.db.commit()

    async def send_message(self, message: WhatsAppMessage) -> None:
        """
        Send one message through the configured business number.

        Raises:
            WhatsAppError: integration disabled or incomplete, invalid
                recipient or content, or the API rejected the message
        """
        settings = await self.get_settings()

        if not settings.enabled:
            raise WhatsAppError("WhatsApp messaging is disabled.")

        if not settings.phone_number_id or not settings.access_token:
            raise WhatsAppError("WhatsApp configuration is incomplete.")

        recipient = normalize_phone_number(message.to, settings.default_country_code)
        if not recipient:
            raise WhatsAppError("Invalid recipient phone number.")

        payload = build_message_payload(message, recipient)
        result = await self.client.send(settings.phone_number_id, settings.access_token, payload)
        logger.debug(f"WhatsApp send result: {result.to_dict()}")

        await self._log_message(
            settings.id,
            WhatsAppMessageDirection.OUTBOUND,
            payload,
            status_code=result.status_code,
            error_message=None if result.success else result.error_message,
        )

        if not result.success:
            logger.error(
                f"Failed to send WhatsApp message: {result.status_code or ''} "
                f"{result.error_message}"
            )
            raise WhatsAppError("Failed to send WhatsApp message.")

        logger.info(f"WhatsApp message sent to {recipient} ({message.type})")

    async def send_test_message(self, test_phone: str, text: Optional[str] = None) -> None:
        if not text:
            cafe = await get_or_create_cafe_settings(self.db)
            text = f"Test message from {cafe.business_name} WhatsApp integration."
        await self.send_message(WhatsAppMessage(to=test_phone, type="text", text=text))

    async def log_inbound_webhook(self, payload: Any) -> None:
        settings = await self.get_settings()
        await self._log_message(settings.id, WhatsAppMessageDirection.INBOUND, payload)

    async def verify_webhook(
        self,
        mode: Optional[str],
        token: Optional[str],
        challenge: Optional[str],
    ) -> Optional[str]:
        """Return the challenge if the subscription request is valid, else None."""
        settings = await self.get_settings()
        if mode == "subscribe" and token and token == settings.webhook_verify_token:
            return challenge or ""
        return None
