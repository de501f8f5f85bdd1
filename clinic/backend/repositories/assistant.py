"""
Assistant Repositories.

Data access for assistant conversations, messages and settings.
"""

from sqlalchemy import delete, select

from clinic.backend.models.assistant import (
    SETTINGS_ROW_ID,
    AssistantConversation,
    AssistantMessage,
    AssistantSettings,
)
from clinic.backend.repositories.base import BaseRepository


class ConversationRepository(BaseRepository[AssistantConversation]):
    """Repository for AssistantConversation model."""

    model = AssistantConversation

    async def list_recent(self, limit: int = 50) -> list[AssistantConversation]:
        """Conversations ordered by most recent activity."""
        result = await self.session.execute(
            select(AssistantConversation)
            .order_by(AssistantConversation.last_message_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


class MessageRepository(BaseRepository[AssistantMessage]):
    """Repository for AssistantMessage model."""

    model = AssistantMessage

    async def list_for_conversation(self, conversation_id: str) -> list[AssistantMessage]:
        """All messages of a conversation, oldest first."""
        result = await self.session.execute(
            select(AssistantMessage)
            .where(AssistantMessage.conversation_id == conversation_id)
            .order_by(AssistantMessage.created_at)
        )
        return list(result.scalars().all())

    async def list_recent(self, conversation_id: str, limit: int) -> list[AssistantMessage]:
        """The last `limit` messages of a conversation, oldest first."""
        result = await self.session.execute(
            select(AssistantMessage)
            .where(AssistantMessage.conversation_id == conversation_id)
            .order_by(AssistantMessage.created_at.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))

    async def delete_for_conversation(self, conversation_id: str) -> None:
        """Remove every message of a conversation."""
        await self.session.execute(
            delete(AssistantMessage)
            .where(AssistantMessage.conversation_id == conversation_id)
            .execution_options(synchronize_session="fetch")
        )


class AssistantSettingsRepository(BaseRepository[AssistantSettings]):
    """Repository for the single AssistantSettings row."""

    model = AssistantSettings

    async def get_current(self) -> AssistantSettings | None:
        """The stored settings row, or None before the first configuration."""
        return await self.get_by_id_or_none(SETTINGS_ROW_ID)
