"""
Clinical Assistant Agent (clinical.assistant).

Answers clinicians' questions about the clinic. For questions that need
clinic data it first classifies the question, then asks the model for a
SQL query over the clinical tables; the caller runs the query and passes
the outcome back into the answer prompt.

One PydanticAI agent per role (answer, classify, sql), created lazily. The
model and its settings are chosen per call from the stored assistant
settings, so the agents hold no per-request state.

Usage:
    from clinic.backend.agents.vertical.clinical.assistant.agent import (
        ClinicalAssistant,
        ModelOptions,
    )
    assistant = ClinicalAssistant()
    options = ModelOptions(model="openai:gpt-4o", temperature=0.7, max_tokens=1024)
    if await assistant.is_data_question("How many sessions did Ava have?", options):
        sql = await assistant.generate_query("How many sessions did Ava have?", options)
"""

import asyncio
import os
from dataclasses import dataclass
from typing import Any, Literal

from pydantic_ai import Agent
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models import Model
from pydantic_ai.models.test import TestModel
from pydantic_core import to_json

from clinic.backend.core.config import get_app_config, get_settings
from clinic.backend.core.exceptions import ExternalServiceError
from clinic.backend.core.logging import get_logger, log_with_source
from clinic.backend.models.base import Base

logger = get_logger(__name__)

AgentRole = Literal["answer", "classify", "sql"]

# Providers that need no API key
KEYLESS_PROVIDERS = frozenset({"test"})

ANSWER_INSTRUCTIONS = (
    "You are a helpful assistant for speech therapists at a clinic. "
    "You help answer questions about clients, sessions, goals, budgets and other "
    "clinical data.\n\n"
    "Always be professional, supportive and objective. Format numerical data clearly, "
    "rounding to 2 decimal places where appropriate. Use proper clinical terminology "
    "for a speech therapy context.\n"
    "Don't make up information; if you don't know, say so. "
    "Don't mention database queries unless the user asks about them."
)

CLASSIFY_INSTRUCTIONS = (
    "Determine whether a message asks about data that requires querying the clinic "
    "database. Data questions ask about specific client information, metrics, "
    "statistics or records, for example:\n"
    '- "How many sessions did client X have last month?"\n'
    '- "What is the progress of client Y on goal Z?"\n'
    '- "Show me all budget items for client A"\n\n'
    'Respond with ONLY "yes" or "no".'
)

SQL_INSTRUCTIONS = (
    "You are an SQL expert that writes a single read-only SQL query answering the "
    "user's question. You have access to the following database schema:\n\n"
    "{schema}\n\n"
    "Security rules:\n"
    "1. ONLY write SELECT statements. Never use DELETE, UPDATE, INSERT, CREATE, ALTER, "
    "DROP, GRANT, REVOKE or any other mutation.\n"
    "2. Never use SQL comments.\n"
    "3. Never write more than one statement.\n"
    "4. Avoid UNION unless the question requires it.\n\n"
    "Format rules:\n"
    "1. Return ONLY the SQL query, without explanations or code blocks.\n"
    "2. Use explicit column names instead of *.\n"
    "3. Join tables with proper ON conditions and use table aliases.\n"
    "4. Add ORDER BY when the question implies sorting (most, least, top, recent).\n"
    "5. End the query with a LIMIT clause written as \"LIMIT n\", never \"LIMIT a, b\".\n"
    "6. Use case-insensitive matching for names.\n"
    "7. Only reference tables and columns that exist in the schema."
)

CONNECTION_CHECK_PROMPT = 'Reply with the single word "ok".'


@dataclass(frozen=True)
class ModelOptions:
    """Model selection and sampling settings for one assistant call."""

    model: str
    temperature: float
    max_tokens: int


def provider_of(model: str) -> str:
    """Provider prefix of a model name ("openai:gpt-4o" -> "openai")."""
    return model.split(":", 1)[0].lower() if ":" in model else "openai"


def is_configured(model: str) -> bool:
    """Whether an API key is available for the model's provider."""
    provider = provider_of(model)
    if provider in KEYLESS_PROVIDERS:
        return True
    return bool(get_settings().provider_api_key(provider))


def resolve_model(model: str) -> Model | str:
    """Model handed to PydanticAI; the keyless test provider answers locally with TestModel."""
    if provider_of(model) in KEYLESS_PROVIDERS:
        return TestModel()
    return model


def _export_provider_key(model: str) -> None:
    """Expose the provider key from config/.env where the provider SDK looks for it."""
    provider = provider_of(model)
    key = get_settings().provider_api_key(provider)
    if key:
        os.environ.setdefault(f"{provider.upper()}_API_KEY", key)


def describe_schema() -> str:
    """
    Describe the clinical tables for the SQL prompt.

    Assistant tables are left out so generated queries only see clinic data.
    """
    lines = []
    for table in Base.metadata.sorted_tables:
        if table.name.startswith("assistant_"):
            continue
        columns = []
        for column in table.columns:
            spec = f"{column.name} {column.type}"
            for fk in column.foreign_keys:
                spec += f" REFERENCES {fk.target_fullname}"
            columns.append(spec)
        lines.append(f"- {table.name}({', '.join(columns)})")
    return "\n".join(lines)


# =============================================================================
# Agents
# =============================================================================

_agents: dict[str, Agent[None, str]] = {}


def get_agent(role: AgentRole) -> Agent[None, str]:
    """Lazy initialization: each role's agent is created on first use."""
    agent = _agents.get(role)
    if agent is not None:
        return agent

    if role == "answer":
        instructions = ANSWER_INSTRUCTIONS
    elif role == "classify":
        instructions = CLASSIFY_INSTRUCTIONS
    else:
        instructions = SQL_INSTRUCTIONS.format(schema=describe_schema())

    agent = Agent(output_type=str, instructions=instructions, name=f"clinical.assistant.{role}")
    _agents[role] = agent
    logger.info("Clinical assistant agent initialized", extra={"role": role})
    return agent


def build_history(messages: list[tuple[str, str]]) -> list[ModelMessage]:
    """
    Convert stored (role, content) pairs into PydanticAI message history.

    System messages are not replayed.
    """
    history: list[ModelMessage] = []
    for role, content in messages:
        if role == "user":
            history.append(ModelRequest(parts=[UserPromptPart(content=content)]))
        elif role == "assistant":
            history.append(ModelResponse(parts=[TextPart(content=content)]))
    return history


def build_query_context(
    query: str | None,
    rows: list[dict[str, Any]] | None,
    error: str | None,
) -> str:
    """Describe the outcome of a data query for the answer prompt."""
    if error:
        return (
            f"A data lookup for this question failed: {error}\n"
            "Acknowledge that the information could not be retrieved, explain in "
            "simple terms what might have gone wrong, and suggest how the user could "
            "rephrase the question. Focus on the user's intent, not technical details."
        )
    if not rows:
        return (
            f"A data lookup for this question ran successfully but found no records.\n"
            f"Query: {query}\n"
            "Tell the user no matching information was found, suggest possible "
            "reasons, and how they might broaden the question."
        )
    return (
        f"A data lookup for this question returned {len(rows)} rows:\n"
        f"{to_json(rows, indent=2).decode()}\n"
        "Answer the question from this data and highlight key insights or patterns."
    )


class ClinicalAssistant:
    """
    Model calls made by the assistant conversation flow.

    Every call runs under the external API timeout from application.yaml;
    provider failures and timeouts raise ExternalServiceError.
    """

    async def _run(
        self,
        role: AgentRole,
        prompt: str,
        options: ModelOptions,
        history: list[ModelMessage] | None = None,
    ) -> str:
        _export_provider_key(options.model)
        agent = get_agent(role)
        timeout = get_app_config().application.timeouts.external_api

        log_with_source(
            logger, "assistant", "debug", "Calling model",
            role=role, model=options.model,
        )
        try:
            async with asyncio.timeout(timeout):
                result = await agent.run(
                    prompt,
                    model=resolve_model(options.model),
                    message_history=history,
                    model_settings={
                        "temperature": options.temperature,
                        "max_tokens": options.max_tokens,
                    },
                )
        except TimeoutError as e:
            log_with_source(
                logger, "assistant", "warning", "Model call timed out",
                role=role, model=options.model, timeout=timeout,
            )
            raise ExternalServiceError("The assistant model did not respond in time") from e
        except Exception as e:
            log_with_source(
                logger, "assistant", "error", "Model call failed",
                role=role, model=options.model, error=str(e), error_type=type(e).__name__,
            )
            raise ExternalServiceError(f"The assistant model request failed: {e}") from e

        return result.output.strip()

    async def answer(
        self,
        question: str,
        options: ModelOptions,
        history: list[ModelMessage] | None = None,
        query_context: str | None = None,
    ) -> str:
        """Answer a question, optionally grounded in a data query's outcome."""
        prompt = question if not query_context else f"{question}\n\n{query_context}"
        return await self._run("answer", prompt, options, history=history)

    async def is_data_question(self, question: str, options: ModelOptions) -> bool:
        """Ask the model whether the question needs clinic data."""
        classify_options = ModelOptions(model=options.model, temperature=0.0, max_tokens=5)
        reply = await self._run("classify", f'Message: "{question}"', classify_options)
        words = reply.lower().split()
        return bool(words) and words[0].strip(".,!\"'") == "yes"

    async def generate_query(self, question: str, options: ModelOptions) -> str:
        """Ask the model for a SQL query answering the question."""
        sql_options = ModelOptions(
            model=options.model,
            temperature=0.0,
            max_tokens=options.max_tokens,
        )
        return await self._run("sql", question, sql_options)

    async def check_connection(self, options: ModelOptions) -> bool:
        """Make a minimal model call to verify the provider is reachable."""
        check_options = ModelOptions(model=options.model, temperature=0.0, max_tokens=5)
        try:
            await self._run("classify", CONNECTION_CHECK_PROMPT, check_options)
        except ExternalServiceError:
            return False
        return True


def get_clinical_assistant() -> ClinicalAssistant:
    """FastAPI dependency providing the assistant's model calls."""
    return ClinicalAssistant()
