"""
WhatsApp Service Factory

Returns the Mock or Cloud transport based on ENV_MODE.

Environment Switching:
    - ENV_MODE=development → MockWhatsAppClient (no API calls)
    - ENV_MODE=staging/production → CloudWhatsAppClient
"""

import logging
from functools import lru_cache

from cafe_cms.core.config import get_settings
from cafe_cms.services.whatsapp.base import BaseWhatsAppClient, SendResult
from cafe_cms.services.whatsapp.cloud import CloudWhatsAppClient
from cafe_cms.services.whatsapp.messages import (
    build_message_payload,
    mask_token,
    normalize_phone_number,
)
from cafe_cms.services.whatsapp.mock import MockWhatsAppClient
from cafe_cms.services.whatsapp.service import WhatsAppService

logger = logging.getLogger(__name__)


@lru_cache()
def get_whatsapp_client() -> BaseWhatsAppClient:
    """Get the configured WhatsApp transport."""
    settings = get_settings()

    if settings.is_development:
        logger.info("WhatsApp Service: Using MockWhatsAppClient (development mode)")
        return MockWhatsAppClient()
    else:
        logger.info(f"WhatsApp Service: Using CloudWhatsAppClient ({settings.env_mode.value} mode)")
        return CloudWhatsAppClient()


def reset_whatsapp_client() -> None:
    """Clear the cached transport instance."""
    get_whatsapp_client.cache_clear()


__all__ = [
    "get_whatsapp_client",
    "reset_whatsapp_client",
    "BaseWhatsAppClient",
    "CloudWhatsAppClient",
    "MockWhatsAppClient",
    "SendResult",
    "WhatsAppService",
    "build_message_payload",
    "mask_token",
    "normalize_phone_number",
]
