"""
Core module initialization.
Exports configuration, logging utilities and exceptions.
"""

from cafe_cms.core.config import get_settings, Settings, EnvironmentMode
from cafe_cms.core.exceptions import (
    CafeError,
    BadRequestError,
    BackupValidationError,
    BackupSecurityError,
    WhatsAppError,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "CafeError",
    "BadRequestError",
    "BackupValidationError",
    "BackupSecurityError",
    "WhatsAppError",
]
