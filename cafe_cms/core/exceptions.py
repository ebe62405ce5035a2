"""
Application Exceptions

Services raise these; the FastAPI app renders them with their status code.
"""


class CafeError(Exception):
    """Base exception for Cafe CMS errors."""
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(CafeError):
    """Client-side problem, recoverable by resubmitting a corrected request."""
    status_code = 400


class BackupValidationError(BadRequestError):
    """Backup payload is missing, malformed, or not a cms-backup."""


class BackupSecurityError(BadRequestError):
    """A backup file path resolves outside the uploads root."""


class WhatsAppError(BadRequestError):
    """WhatsApp integration is disabled, misconfigured, or the send failed."""
