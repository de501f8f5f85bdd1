"""
Assistant API Endpoints.

REST API endpoints for the clinical assistant: status, settings,
conversations and questions.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from clinic.backend.agents.vertical.clinical.assistant.agent import (
    ClinicalAssistant,
    get_clinical_assistant,
)
from clinic.backend.core.dependencies import DbSession, RequestId
from clinic.backend.schemas.assistant import (
    AssistantSettingsResponse,
    AssistantSettingsUpdate,
    AssistantStatusResponse,
    ConversationCreate,
    ConversationDetailResponse,
    ConversationResponse,
    ConversationUpdate,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from clinic.backend.schemas.base import ApiResponse
from clinic.backend.services.assistant import AssistantService

router = APIRouter()

Assistant = Annotated[ClinicalAssistant, Depends(get_clinical_assistant)]


@router.get(
    "/status",
    response_model=ApiResponse[AssistantStatusResponse],
    summary="Assistant status",
    description="Whether the assistant is enabled and configured, optionally with a live model check.",
)
async def get_status(
    db: DbSession,
    request_id: RequestId,
    assistant: Assistant,
    check_connection: bool = Query(
        default=False,
        description="Make a live model call to verify the connection",
    ),
) -> ApiResponse[AssistantStatusResponse]:
    """Get the assistant status."""
    service = AssistantService(db, assistant)
    status = await service.get_status(check_connection=check_connection)
    return ApiResponse(data=status)


@router.get(
    "/settings",
    response_model=ApiResponse[AssistantSettingsResponse],
    summary="Get assistant settings",
)
async def get_settings(
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AssistantSettingsResponse]:
    """Get the assistant settings."""
    service = AssistantService(db)
    settings = await service.get_settings()
    return ApiResponse(data=settings)


@router.put(
    "/settings",
    response_model=ApiResponse[AssistantSettingsResponse],
    summary="Configure the assistant",
    description="Set the model and sampling options. API keys come from config/.env only.",
)
async def update_settings(
    data: AssistantSettingsUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AssistantSettingsResponse]:
    """Update the assistant settings."""
    service = AssistantService(db)
    settings = await service.update_settings(data)
    return ApiResponse(data=settings)


# =============================================================================
# Conversations
# =============================================================================


@router.get(
    "/conversations",
    response_model=ApiResponse[list[ConversationResponse]],
    summary="List conversations",
    description="Conversations ordered by most recent activity.",
)
async def list_conversations(
    db: DbSession,
    request_id: RequestId,
    limit: int = Query(default=50, ge=1, le=100, description="Maximum number of conversations"),
) -> ApiResponse[list[ConversationResponse]]:
    """List conversations."""
    service = AssistantService(db)
    conversations = await service.list_conversations(limit=limit)
    return ApiResponse(data=[ConversationResponse.model_validate(c) for c in conversations])


@router.post(
    "/conversations",
    response_model=ApiResponse[ConversationResponse],
    status_code=201,
    summary="Start a conversation",
)
async def create_conversation(
    data: ConversationCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[ConversationResponse]:
    """Create a conversation."""
    service = AssistantService(db)
    conversation = await service.create_conversation(data)
    return ApiResponse(data=ConversationResponse.model_validate(conversation))


@router.get(
    "/conversations/{conversation_id}",
    response_model=ApiResponse[ConversationDetailResponse],
    summary="Get a conversation with its messages",
)
async def get_conversation(
    conversation_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[ConversationDetailResponse]:
    """Get a conversation and its message history."""
    service = AssistantService(db)
    conversation, messages = await service.get_conversation(conversation_id)
    return ApiResponse(
        data=ConversationDetailResponse(
            **ConversationResponse.model_validate(conversation).model_dump(),
            messages=[MessageResponse.model_validate(m) for m in messages],
        )
    )


@router.put(
    "/conversations/{conversation_id}",
    response_model=ApiResponse[ConversationResponse],
    summary="Rename a conversation",
)
async def rename_conversation(
    conversation_id: str,
    data: ConversationUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[ConversationResponse]:
    """Rename a conversation."""
    service = AssistantService(db)
    conversation = await service.rename_conversation(conversation_id, data)
    return ApiResponse(data=ConversationResponse.model_validate(conversation))


@router.delete(
    "/conversations/{conversation_id}",
    status_code=204,
    summary="Delete a conversation",
)
async def delete_conversation(
    conversation_id: str,
    db: DbSession,
    request_id: RequestId,
) -> None:
    """Delete a conversation and its messages."""
    service = AssistantService(db)
    await service.delete_conversation(conversation_id)


@router.post(
    "/conversations/{conversation_id}/clear",
    response_model=ApiResponse[ConversationResponse],
    summary="Clear a conversation",
    description="Remove all messages while keeping the conversation.",
)
async def clear_conversation(
    conversation_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[ConversationResponse]:
    """Clear a conversation's messages."""
    service = AssistantService(db)
    conversation = await service.clear_conversation(conversation_id)
    return ApiResponse(data=ConversationResponse.model_validate(conversation))


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=ApiResponse[SendMessageResponse],
    status_code=201,
    summary="Ask the assistant",
    description=(
        "Send a question. Data questions may be answered through a read-only "
        "query over clinic data; the query and its rows are returned with the reply."
    ),
)
async def send_message(
    conversation_id: str,
    data: SendMessageRequest,
    db: DbSession,
    request_id: RequestId,
    assistant: Assistant,
) -> ApiResponse[SendMessageResponse]:
    """Send a message and get the assistant's reply."""
    service = AssistantService(db, assistant)
    user_message, assistant_message = await service.send_message(conversation_id, data.content)
    return ApiResponse(
        data=SendMessageResponse(
            user_message=MessageResponse.model_validate(user_message),
            assistant_message=MessageResponse.model_validate(assistant_message),
        )
    )
