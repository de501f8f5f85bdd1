"""
Assistant Models.

Persisted assistant conversations, their messages, and the single settings
row that holds the configured model.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinic.backend.core.utils import utc_now
from clinic.backend.models.base import Base, TimestampMixin, UUIDMixin

DEFAULT_CONVERSATION_NAME = "New conversation"
SETTINGS_ROW_ID = "default"


class AssistantConversation(UUIDMixin, TimestampMixin, Base):
    """A chat thread with the clinical assistant."""

    __tablename__ = "assistant_conversations"

    name: Mapped[str] = mapped_column(
        String(255),
        default=DEFAULT_CONVERSATION_NAME,
        nullable=False,
    )
    last_message_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
        index=True,
    )

    messages: Mapped[list["AssistantMessage"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="AssistantMessage.created_at",
    )

    def __repr__(self) -> str:
        return f"<AssistantConversation(id={self.id}, name={self.name!r})>"


class AssistantMessage(UUIDMixin, TimestampMixin, Base):
    """
    One message in a conversation.

    Assistant replies that ran a data query keep the query and its rows in
    `query_result` so the UI can show them next to the answer.
    """

    __tablename__ = "assistant_messages"

    conversation_id: Mapped[str] = mapped_column(
        ForeignKey("assistant_conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    query_result: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    conversation: Mapped["AssistantConversation"] = relationship(back_populates="messages")

    def __repr__(self) -> str:
        return f"<AssistantMessage(id={self.id}, role={self.role!r})>"


class AssistantSettings(TimestampMixin, Base):
    """Model configuration for the assistant. Exactly one row, id "default"."""

    __tablename__ = "assistant_settings"

    id: Mapped[str] = mapped_column(String(20), primary_key=True, default=SETTINGS_ROW_ID)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    temperature: Mapped[float] = mapped_column(Float, nullable=False)
    max_tokens: Mapped[int] = mapped_column(Integer, nullable=False)
    read_only: Mapped[bool] = mapped_column(default=True, nullable=False)
