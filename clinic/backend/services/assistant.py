"""
Assistant Service.

Conversation persistence, assistant settings and the question-answering
flow. Model calls go through ClinicalAssistant; generated SQL is checked by
the query guard and, in read-only mode, runs inside a savepoint that is
always rolled back.
"""

from pydantic_core import to_jsonable_python
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.backend.agents.vertical.clinical.assistant.agent import (
    ClinicalAssistant,
    ModelOptions,
    build_history,
    build_query_context,
    is_configured,
    provider_of,
)
from clinic.backend.agents.vertical.clinical.assistant.query_guard import (
    UnsafeQueryError,
    friendly_error,
    sanitize_query,
)
from clinic.backend.core.config import get_app_config
from clinic.backend.core.exceptions import ServiceUnavailableError
from clinic.backend.core.utils import utc_now
from clinic.backend.models.assistant import (
    DEFAULT_CONVERSATION_NAME,
    SETTINGS_ROW_ID,
    AssistantConversation,
    AssistantMessage,
)
from clinic.backend.repositories.assistant import (
    AssistantSettingsRepository,
    ConversationRepository,
    MessageRepository,
)
from clinic.backend.schemas.assistant import (
    AssistantSettingsResponse,
    AssistantSettingsUpdate,
    AssistantStatusResponse,
    ConversationCreate,
    ConversationUpdate,
    QueryResult,
)
from clinic.backend.services.base import BaseService

CONVERSATION_NAME_LENGTH = 50


def conversation_name_from(question: str) -> str:
    """Name a conversation after the first line of its opening question."""
    lines = question.strip().splitlines()
    first_line = lines[0].strip() if lines else ""
    if not first_line:
        return DEFAULT_CONVERSATION_NAME
    if len(first_line) <= CONVERSATION_NAME_LENGTH:
        return first_line
    return first_line[: CONVERSATION_NAME_LENGTH - 3].rstrip() + "..."


def unique_column_names(columns: list[str]) -> list[str]:
    """
    Suffix repeated result column names so every row key is distinct.

    >>> unique_column_names(["name", "name", "id"])
    ['name', 'name_2', 'id']
    """
    seen: set[str] = set()
    unique = []
    for column in columns:
        candidate, counter = column, 1
        while candidate in seen:
            counter += 1
            candidate = f"{column}_{counter}"
        seen.add(candidate)
        unique.append(candidate)
    return unique


class AssistantService(BaseService):
    """Service for the clinical assistant."""

    def __init__(
        self,
        session: AsyncSession,
        assistant: ClinicalAssistant | None = None,
    ) -> None:
        super().__init__(session)
        self.assistant = assistant or ClinicalAssistant()
        self.conversation_repo = ConversationRepository(session)
        self.message_repo = MessageRepository(session)
        self.settings_repo = AssistantSettingsRepository(session)

    # -------------------------------------------------------------------------
    # Settings and status
    # -------------------------------------------------------------------------

    async def get_settings(self) -> AssistantSettingsResponse:
        """Stored settings, or the agent.yaml defaults before the first configuration."""
        stored = await self.settings_repo.get_current()
        if stored is not None:
            return AssistantSettingsResponse.model_validate(stored)

        defaults = get_app_config().assistant
        return AssistantSettingsResponse(
            model=defaults.model,
            temperature=defaults.temperature,
            max_tokens=defaults.max_tokens,
            read_only=defaults.read_only,
        )

    async def update_settings(self, data: AssistantSettingsUpdate) -> AssistantSettingsResponse:
        """
        Configure the assistant. Only supplied fields change.

        Raises:
            ValidationError: If a field is explicitly null
        """
        update_data = self._update_payload(
            data,
            required=("model", "temperature", "max_tokens", "read_only"),
        )
        stored = await self.settings_repo.get_current()
        self._log_operation("Updating assistant settings", fields=list(update_data))

        if stored is None:
            values = (await self.get_settings()).model_dump()
            values.update(update_data)
            stored = await self._execute_db_operation(
                "create_assistant_settings",
                self.settings_repo.create(id=SETTINGS_ROW_ID, **values),
            )
        elif update_data:
            stored = await self._execute_db_operation(
                "update_assistant_settings",
                self.settings_repo.update(SETTINGS_ROW_ID, **update_data),
            )
        return AssistantSettingsResponse.model_validate(stored)

    async def get_status(self, check_connection: bool = False) -> AssistantStatusResponse:
        """
        Whether the assistant is enabled and has an API key for its model.

        Args:
            check_connection: Also make a live model call
        """
        settings = await self.get_settings()
        enabled = get_app_config().features.assistant_enabled
        configured = is_configured(settings.model)

        connection_valid = None
        if check_connection and enabled and configured:
            connection_valid = await self.assistant.check_connection(self._options(settings))

        return AssistantStatusResponse(
            enabled=enabled,
            is_configured=configured,
            connection_valid=connection_valid,
            model=settings.model,
        )

    @staticmethod
    def _options(settings: AssistantSettingsResponse) -> ModelOptions:
        return ModelOptions(
            model=settings.model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    async def list_conversations(self, limit: int = 50) -> list[AssistantConversation]:
        """Conversations ordered by most recent activity."""
        return await self.conversation_repo.list_recent(limit=limit)

    async def create_conversation(self, data: ConversationCreate) -> AssistantConversation:
        """Start a new conversation."""
        conversation = await self._execute_db_operation(
            "create_conversation",
            self.conversation_repo.create(
                name=data.name or DEFAULT_CONVERSATION_NAME,
                last_message_at=utc_now(),
            ),
        )
        self._log_operation("Conversation created", conversation_id=conversation.id)
        return conversation

    async def get_conversation(
        self,
        conversation_id: str,
    ) -> tuple[AssistantConversation, list[AssistantMessage]]:
        """
        A conversation with its messages, oldest first.

        Raises:
            NotFoundError: If conversation not found
        """
        conversation = await self.conversation_repo.get_by_id(conversation_id)
        messages = await self.message_repo.list_for_conversation(conversation_id)
        return conversation, messages

    async def rename_conversation(
        self,
        conversation_id: str,
        data: ConversationUpdate,
    ) -> AssistantConversation:
        """Rename a conversation."""
        self._log_operation("Renaming conversation", conversation_id=conversation_id)
        return await self._execute_db_operation(
            "rename_conversation",
            self.conversation_repo.update(conversation_id, name=data.name),
        )

    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation and its messages."""
        self._log_operation("Deleting conversation", conversation_id=conversation_id)
        await self._execute_db_operation(
            "delete_conversation",
            self.conversation_repo.delete(conversation_id),
        )

    async def clear_conversation(self, conversation_id: str) -> AssistantConversation:
        """Remove every message of a conversation, keeping the conversation."""
        conversation = await self.conversation_repo.get_by_id(conversation_id)
        self._log_operation("Clearing conversation", conversation_id=conversation_id)
        await self._execute_db_operation(
            "clear_conversation",
            self.message_repo.delete_for_conversation(conversation_id),
        )
        return conversation

    # -------------------------------------------------------------------------
    # Question answering
    # -------------------------------------------------------------------------

    async def _run_data_query(
        self,
        question: str,
        options: ModelOptions,
        read_only: bool,
    ) -> QueryResult:
        """
        Generate, check and run a query for a data question.

        Rejected or failing queries produce a QueryResult carrying a friendly
        error instead of raising.
        """
        max_rows = get_app_config().assistant.max_rows
        raw_query = await self.assistant.generate_query(question, options)

        try:
            query = sanitize_query(raw_query, read_only=read_only, max_rows=max_rows)
        except UnsafeQueryError as e:
            self._logger.warning(
                "Generated query rejected",
                extra={"error": str(e), "read_only": read_only},
            )
            return QueryResult(query=raw_query, error=friendly_error(e))

        savepoint = await self.session.begin_nested()
        try:
            result = await self.session.execute(text(query))
            columns = unique_column_names(list(result.keys())) if result.returns_rows else []
            rows = [dict(zip(columns, row)) for row in result.all()] if columns else []
        except SQLAlchemyError as e:
            await savepoint.rollback()
            self._logger.warning(
                "Generated query failed",
                extra={"error": str(e), "query": query},
            )
            return QueryResult(query=query, error=friendly_error(getattr(e, "orig", None) or e))

        if read_only:
            await savepoint.rollback()
        else:
            await savepoint.commit()

        self._log_debug("Data query executed", row_count=len(rows), read_only=read_only)
        return QueryResult(
            query=query,
            columns=columns,
            rows=to_jsonable_python(rows),
            row_count=len(rows),
        )

    async def send_message(
        self,
        conversation_id: str,
        content: str,
    ) -> tuple[AssistantMessage, AssistantMessage]:
        """
        Ask the assistant a question within a conversation.

        Args:
            conversation_id: Conversation to add the exchange to
            content: The user's question

        Returns:
            Tuple of (stored user message, stored assistant reply)

        Raises:
            NotFoundError: If conversation not found
            ServiceUnavailableError: If the assistant is disabled or has no API key
            ExternalServiceError: If the model call fails or times out
        """
        conversation = await self.conversation_repo.get_by_id(conversation_id)
        features = get_app_config().features
        settings = await self.get_settings()

        if not features.assistant_enabled:
            raise ServiceUnavailableError("The assistant is disabled")
        if not is_configured(settings.model):
            raise ServiceUnavailableError(
                f"No API key configured for provider '{provider_of(settings.model)}'"
            )

        self._log_operation("Assistant question received", conversation_id=conversation_id)
        user_message = await self._execute_db_operation(
            "create_user_message",
            self.message_repo.create(
                conversation_id=conversation_id,
                role="user",
                content=content,
            ),
        )

        history_limit = get_app_config().assistant.history_limit
        recent = await self.message_repo.list_recent(conversation_id, limit=history_limit + 1)
        history = build_history(
            [(m.role, m.content) for m in recent if m.id != user_message.id][-history_limit:]
        )

        options = self._options(settings)
        query_result = None
        query_context = None
        if features.assistant_sql_enabled and await self.assistant.is_data_question(content, options):
            query_result = await self._run_data_query(content, options, settings.read_only)
            query_context = build_query_context(
                query_result.query, query_result.rows, query_result.error
            )

        answer = await self.assistant.answer(
            content,
            options,
            history=history,
            query_context=query_context,
        )

        assistant_message = await self._execute_db_operation(
            "create_assistant_message",
            self.message_repo.create(
                conversation_id=conversation_id,
                role="assistant",
                content=answer,
                query_result=query_result.model_dump() if query_result else None,
            ),
        )

        conversation_updates = {"last_message_at": utc_now()}
        if conversation.name == DEFAULT_CONVERSATION_NAME:
            conversation_updates["name"] = conversation_name_from(content)
        await self._execute_db_operation(
            "touch_conversation",
            self.conversation_repo.update(conversation_id, **conversation_updates),
        )

        self._log_operation(
            "Assistant answered",
            conversation_id=conversation_id,
            used_query=query_result is not None,
            query_failed=bool(query_result and query_result.error),
        )
        return user_message, assistant_message
