"""
WhatsApp Cloud API message helpers.

Pure functions: phone normalization, token masking, and request body
construction for text, template and media messages.
"""

import re
from typing import Any, Optional

from cafe_cms.core.exceptions import WhatsAppError
from cafe_cms.schemas import WhatsAppMessage

_NON_DIAL_CHARS = re.compile(r"[^\d+]")

DEFAULT_TEMPLATE_LANGUAGE = "en_US"


def normalize_phone_number(
    phone: Optional[str],
    default_country_code: Optional[str] = None,
) -> Optional[str]:
    """
    Normalize a phone number to international form.

    "0812-3456-789" with default code "+62" becomes "+628123456789";
    "0062812..." becomes "+62812...". Local numbers without a default
    country code cannot be normalized and return None.

    Example:
        >>> normalize_phone_number("(0812) 3456 789", "+62")
        '+628123456789'
    """
    if not phone:
        return None

    normalized = _NON_DIAL_CHARS.sub("", phone)
    if normalized.startswith("00"):
        normalized = f"+{normalized[2:]}"

    if not normalized.startswith("+"):
        if not default_country_code:
            return None
        stripped = normalized[1:] if normalized.startswith("0") else normalized
        normalized = f"{default_country_code}{stripped}"

    return normalized


def mask_token(token: Optional[str]) -> Optional[str]:
    """Mask an access token for display, keeping a few characters."""
    if not token:
        return None
    if len(token) <= 6:
        return f"{'*' * (len(token) - 1)}{token[-1]}"
    return f"{token[:3]}****{token[-3:]}"


def build_message_payload(message: WhatsAppMessage, to: str) -> dict[str, Any]:
    """
    Build the Cloud API request body for ``message`` sent to ``to``.

    Raises:
        WhatsAppError: required content for the message type is missing
    """
    base = {"messaging_product": "whatsapp", "to": to}

    if message.type == "text":
        if not message.text:
            raise WhatsAppError("Text message requires text content.")
        return {**base, "type": "text", "text": {"body": message.text}}

    if message.type == "template":
        if not message.template_name:
            raise WhatsAppError("Template messages require template_name.")
        template: dict[str, Any] = {
            "name": message.template_name,
            "language": {
                "code": message.template_language_code or DEFAULT_TEMPLATE_LANGUAGE,
            },
        }
        if message.template_params:
            template["components"] = [
                {
                    "type": "body",
                    "parameters": [
                        {"type": "text", "text": value}
                        for value in message.template_params.values()
                    ],
                }
            ]
        return {**base, "type": "template", "template": template}

    if message.type == "media":
        if not message.media_url:
            raise WhatsAppError("Media messages require media_url.")
        if message.media_type == "document":
            return {
                **base,
                "type": "document",
                "document": {"link": message.media_url, "caption": message.caption},
            }
        return {
            **base,
            "type": "image",
            "image": {
                "link": message.media_url,
                "caption": message.caption or message.text,
            },
        }

    raise WhatsAppError(f"Unsupported message type: {message.type}")
