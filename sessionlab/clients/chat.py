"""Client for the remote chat API."""

from __future__ import annotations

from typing import Any, Protocol

from sessionlab.core.models import Conversation, Message
from sessionlab.errors import ChatServiceError

from .base import ApiClient


class ConversationCreator(Protocol):
    """What the session lifecycle needs from the chat service."""

    async def create_conversation(self, title: str) -> str: ...


class ChatClient(ApiClient):
    """Chat API: conversations, messages and history."""

    error_class = ChatServiceError
    service_name = "Chat service"

    async def create_conversation(self, title: str) -> str:
        """Create a remote conversation and return its id."""
        data = await self._request(
            "POST",
            "/api/Chat/conversation",
            json={"userId": self.settings.user_id, "title": title},
        )
        conversation_id = data.get("conversationId") if isinstance(data, dict) else None
        if not conversation_id:
            raise ChatServiceError("Chat service response is missing conversationId")
        return str(conversation_id)

    async def send_message(
        self,
        message: str,
        conversation_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        body: dict[str, Any] = {"userId": self.settings.user_id, "message": message}
        if conversation_id:
            body["conversationId"] = conversation_id
        if metadata:
            body["metadata"] = metadata
        data = await self._request("POST", "/api/Chat/send", json=body)
        return Message.model_validate(data)

    async def get_conversation_history(
        self, conversation_id: str, limit: int = 50
    ) -> list[Message]:
        data = await self._request(
            "GET",
            f"/api/Chat/history/{conversation_id}",
            params={"limit": limit, "userId": self.settings.user_id},
        )
        return [Message.model_validate(item) for item in data]

    async def get_user_conversations(self, limit: int = 10) -> list[Conversation]:
        data = await self._request(
            "GET",
            "/api/Chat/conversations",
            params={"limit": limit, "userId": self.settings.user_id},
        )
        return [Conversation.model_validate(item) for item in data]
