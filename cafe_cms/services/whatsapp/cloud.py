"""
WhatsApp Cloud API Transport

Production implementation posting to the Graph API:
    POST {graph_url}/{api_version}/{phone_number_id}/messages

API Documentation:
    https://developers.facebook.com/docs/whatsapp/cloud-api/reference/messages
"""

import json
import logging
from typing import Any, Optional

import httpx

from cafe_cms.core.config import get_settings
from cafe_cms.services.whatsapp.base import BaseWhatsAppClient, SendResult

logger = logging.getLogger(__name__)


class CloudWhatsAppClient(BaseWhatsAppClient):
    """
    WhatsApp Cloud API transport over httpx.

    Args:
        graph_url: API base URL (defaults to settings)
        api_version: Graph API version (defaults to settings)
        timeout: Request timeout in seconds (defaults to settings)
        transport: Optional httpx transport, e.g. httpx.MockTransport in tests
    """

    def __init__(
        self,
        graph_url: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.graph_url = (graph_url or settings.whatsapp_graph_url).rstrip("/")
        self.api_version = api_version or settings.whatsapp_api_version
        self.timeout = timeout or settings.whatsapp_timeout_seconds
        self._transport = transport
        logger.info(f"CloudWhatsAppClient initialized ({self.graph_url}, {self.api_version})")

    @property
    def provider_name(self) -> str:
        return "cloud"

    def messages_url(self, phone_number_id: str) -> str:
        return f"{self.graph_url}/{self.api_version}/{phone_number_id}/messages"

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            return json.dumps(response.json())
        except ValueError:
            return response.text

    async def send(
        self,
        phone_number_id: str,
        access_token: str,
        payload: dict[str, Any],
    ) -> SendResult:
        """Post a message body to the Cloud API."""
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.messages_url(phone_number_id),
                    json=payload,
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error(f"WhatsApp transport error: {e}")
            return SendResult(success=False, error_message=str(e), provider="cloud")

        if response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = {}
            messages = body.get("messages") or [{}]
            return SendResult(
                success=True,
                status_code=response.status_code,
                message_id=messages[0].get("id"),
                provider="cloud",
            )

        error_text = self._error_text(response)
        logger.error(f"WhatsApp API error: {response.status_code} {error_text}")
        return SendResult(
            success=False,
            status_code=response.status_code,
            error_message=error_text,
            provider="cloud",
        )

    async def health_check(self) -> bool:
        """Check that the Graph API host answers."""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(self.graph_url)
            return response.status_code < 500
        except httpx.HTTPError:
            return False
