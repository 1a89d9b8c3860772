from typing import Optional

from nutribot.logging_config import get_logger
from nutribot.services.collaborator import CollaboratorClient

logger = get_logger("chat_service")


class ChatClient(CollaboratorClient):
    """Forwards free text to the chat-completion proxy."""

    service_name = "chat_service"

    async def ask(self, message: str) -> Optional[str]:
        """Return the model reply, or None when the proxy answered without one."""
        response = await self._request("POST", "/chat/message", json={"message": message})
        data = self._json(response)
        if not isinstance(data, dict):
            return None
        reply = data.get("reply") or data.get("text")
        if not isinstance(reply, str) or not reply.strip():
            logger.warning("Chat proxy returned no reply")
            return None
        return reply.strip()
