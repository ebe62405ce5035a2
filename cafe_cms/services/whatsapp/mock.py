"""
Mock WhatsApp Transport

Simulates the Cloud API for development. Nothing leaves the machine;
messages are logged and kept in memory for inspection.
"""

import asyncio
import logging
import random
import uuid
from typing import Any

from cafe_cms.services.whatsapp.base import BaseWhatsAppClient, SendResult

logger = logging.getLogger(__name__)


class MockWhatsAppClient(BaseWhatsAppClient):
    """Mock transport for development and tests."""

    def __init__(self, failure_rate: float = 0.0, latency: float = 0.0):
        self.failure_rate = failure_rate
        self.latency = latency
        self.sent: list[dict[str, Any]] = []
        logger.info(f"MockWhatsAppClient initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send(
        self,
        phone_number_id: str,
        access_token: str,
        payload: dict[str, Any],
    ) -> SendResult:
        """Simulate sending a message."""
        if self.latency:
            await asyncio.sleep(self.latency)

        if self._should_fail():
            logger.warning(f"Mock WhatsApp send failed (simulated) to {payload.get('to')}")
            return SendResult(
                success=False,
                status_code=500,
                error_message="Simulated WhatsApp failure",
                provider="mock",
            )

        message_id = f"wamid.mock_{uuid.uuid4().hex[:16]}"
        self.sent.append(payload)
        logger.info(
            f"Mock WhatsApp {payload.get('type')} message to {payload.get('to')} "
            f"(ID: {message_id})"
        )

        return SendResult(
            success=True,
            status_code=200,
            message_id=message_id,
            provider="mock",
        )

    async def health_check(self) -> bool:
        return True
