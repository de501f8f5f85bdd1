"""
Assistant Schemas.

Request/response schemas for assistant settings, status and conversations.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MessageRole = Literal["user", "assistant", "system"]


class AssistantSettingsUpdate(BaseModel):
    """
    Schema for configuring the assistant.

    API keys are read from config/.env and cannot be set here.
    """

    model: str | None = Field(
        default=None,
        min_length=3,
        max_length=100,
        pattern=r"^[\w.-]+:[\w.:/-]+$",
        description="Provider-prefixed model name",
        examples=["openai:gpt-4o"],
    )
    temperature: float | None = Field(default=None, ge=0, le=2)
    max_tokens: int | None = Field(default=None, ge=1, le=32000)
    read_only: bool | None = None


class AssistantSettingsResponse(BaseModel):
    model: str
    temperature: float
    max_tokens: int
    read_only: bool

    model_config = ConfigDict(from_attributes=True)


class AssistantStatusResponse(BaseModel):
    """Whether the assistant can be used right now."""

    enabled: bool
    is_configured: bool
    connection_valid: bool | None = Field(
        default=None,
        description="Result of a live model call; only set when requested",
    )
    model: str


class QueryResult(BaseModel):
    """A data query run to answer a question."""

    query: str | None = None
    columns: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    row_count: int = 0
    error: str | None = None


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    role: str
    content: str
    query_result: QueryResult | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationCreate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)


class ConversationUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ConversationResponse(BaseModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    last_message_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationDetailResponse(ConversationResponse):
    """A conversation with its full message history."""

    messages: list[MessageResponse]


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)


class SendMessageResponse(BaseModel):
    """The stored question and the assistant's reply."""

    user_message: MessageResponse
    assistant_message: MessageResponse
