"""
Business Settings Accessors

The settings and WhatsApp settings tables each hold a single row. These
accessors return that row, creating it with defaults on first use. The
session is always passed in; nothing is cached between requests.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cafe_cms.models import CafeSettings, WhatsAppSettings
from cafe_cms.schemas import CafeSettingsUpdate

logger = logging.getLogger(__name__)

DEFAULT_BUSINESS_NAME = "My Cafe"
DEFAULT_BUSINESS_NAME_ID = "Kafe Saya"


async def get_or_create_cafe_settings(db: AsyncSession) -> CafeSettings:
    """Return the settings row, creating the default one if none exists."""
    result = await db.execute(select(CafeSettings).limit(1))
    settings = result.scalars().first()

    if settings is None:
        settings = CafeSettings(
            business_name=DEFAULT_BUSINESS_NAME,
            business_name_id=DEFAULT_BUSINESS_NAME_ID,
        )
        db.add(settings)
        await db.commit()
        await db.refresh(settings)
        logger.info("Default cafe settings created")

    return settings


async def update_cafe_settings(db: AsyncSession, update: CafeSettingsUpdate) -> CafeSettings:
    """Apply the fields present in ``update`` to the settings row."""
    settings = await get_or_create_cafe_settings(db)

    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(settings, field, value)

    await db.commit()
    await db.refresh(settings)
    return settings


async def get_or_create_whatsapp_settings(db: AsyncSession) -> WhatsAppSettings:
    """Return the WhatsApp settings row, creating a disabled one if none exists."""
    result = await db.execute(select(WhatsAppSettings).limit(1))
    settings = result.scalars().first()

    if settings is None:
        settings = WhatsAppSettings(enabled=False)
        db.add(settings)
        await db.commit()
        await db.refresh(settings)
        logger.info("Default WhatsApp settings created")

    return settings
