from typing import Optional, Sequence

import httpx

from nutribot.logging_config import get_logger, mask_phone
from nutribot.services.intent_service import MenuItem

logger = get_logger("whatsapp_service")


class WhatsAppService:
    """Service for sending messages through the WhatsApp Cloud API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        phone_number_id: str,
        access_token: str,
        api_base: str = "https://graph.facebook.com/v20.0",
    ):
        self.http_client = http_client
        self.phone_number_id = phone_number_id
        self.access_token = access_token
        self.messages_url = f"{api_base.rstrip('/')}/{phone_number_id}/messages"

    @property
    def is_configured(self) -> bool:
        return bool(self.phone_number_id and self.access_token)

    async def _post(self, payload: dict, kind: str) -> bool:
        """POST to the messages endpoint. Returns True on a 2xx response."""
        if not self.is_configured:
            logger.warning(f"WhatsApp not configured, dropping {kind}")
            return False

        try:
            response = await self.http_client.post(
                self.messages_url,
                headers={
                    "Authorization": f"Bearer {self.access_token}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.error(f"WhatsApp API error ({kind}): {e}")
            return False

        if not response.is_success:
            logger.error(
                "WhatsApp send failed",
                extra={
                    "context": {
                        "kind": kind,
                        "status": response.status_code,
                        "body": response.text[:500],
                    }
                },
            )
            return False
        return True

    @staticmethod
    def _recipient(to: str) -> str:
        return to.lstrip("+")

    async def send_text(self, to: str, body: str) -> bool:
        """Send plain text message."""
        logger.debug(f"Sending text to {mask_phone(to)}")
        return await self._post(
            {
                "messaging_product": "whatsapp",
                "to": self._recipient(to),
                "type": "text",
                "text": {"body": body, "preview_url": False},
            },
            kind="text",
        )

    async def send_list(
        self,
        to: str,
        body: str,
        button_label: str,
        items: Sequence[MenuItem],
        section_title: str = "Options",
        header: Optional[str] = None,
        footer: Optional[str] = None,
    ) -> bool:
        """Send a single-select list (one section)."""
        interactive = {
            "type": "list",
            "body": {"text": body},
            "action": {
                "button": button_label,
                "sections": [
                    {
                        "title": section_title,
                        "rows": [
                            {"id": item.id, "title": item.title, "description": item.description or ""}
                            for item in items
                        ],
                    }
                ],
            },
        }
        if header:
            interactive["header"] = {"type": "text", "text": header}
        if footer:
            interactive["footer"] = {"text": footer}

        return await self._post(
            {
                "messaging_product": "whatsapp",
                "to": self._recipient(to),
                "type": "interactive",
                "interactive": interactive,
            },
            kind="list",
        )

    async def mark_read(self, message_id: str) -> bool:
        """Mark an inbound message as read. Best effort."""
        return await self._post(
            {
                "messaging_product": "whatsapp",
                "status": "read",
                "message_id": message_id,
            },
            kind="read_receipt",
        )
