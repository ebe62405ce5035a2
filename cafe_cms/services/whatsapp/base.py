"""
WhatsApp Transport Abstract Base Class

Defines the interface for delivering a prepared Cloud API message body.
MockWhatsAppClient (development) and CloudWhatsAppClient (staging,
production) both implement it, so WhatsAppService behaves the same
regardless of which one is active.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class SendResult:
    """
    Standardized result from sending a message.

    Attributes:
        success: Whether the API accepted the message
        status_code: HTTP status returned by the API, if a response arrived
        message_id: WhatsApp message id (wamid...) on success
        error_message: Error body or transport error on failure
        provider: Transport name ("mock", "cloud")
    """
    success: bool
    status_code: Optional[int] = None
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "status_code": self.status_code,
            "message_id": self.message_id,
            "error_message": self.error_message,
            "provider": self.provider,
        }


class BaseWhatsAppClient(ABC):
    """Abstract base class for WhatsApp transports."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the transport name."""
        pass

    @abstractmethod
    async def send(
        self,
        phone_number_id: str,
        access_token: str,
        payload: dict[str, Any],
    ) -> SendResult:
        """
        Send one message body from the given business phone number.

        Transport failures are reported in the result, not raised.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check transport availability."""
        pass
