"""
Configuration Schemas.

Pydantic models describing each YAML config file. AppConfig validates every
file against its schema at load time; unknown keys are rejected so a typo in
a YAML file is reported instead of silently ignored.

    ApplicationSchema     → config/settings/application.yaml
    DatabaseSchema        → config/settings/database.yaml
    LoggingSchema         → config/settings/logging.yaml
    FeaturesSchema        → config/settings/features.yaml
    ObservabilitySchema   → config/settings/observability.yaml
    BudgetSchema          → config/settings/budget.yaml
    AssistantAgentSchema  → config/agents/clinical/assistant/agent.yaml
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ServerSchema(_StrictBase):
    host: str
    port: int


class CorsSchema(_StrictBase):
    origins: list[str]


class TimeoutsSchema(_StrictBase):
    external_api: int = Field(gt=0)


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    api_prefix: str
    server: ServerSchema
    cors: CorsSchema
    timeouts: TimeoutsSchema


# =============================================================================
# database.yaml
# =============================================================================


class DatabaseSchema(_StrictBase):
    host: str
    port: int
    name: str
    user: str
    pool_size: int
    max_overflow: int
    pool_timeout: int
    pool_recycle: int
    echo: bool


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: Literal["json", "console"]
    handlers: HandlersSchema


# =============================================================================
# features.yaml
# =============================================================================


class FeaturesSchema(_StrictBase):
    api_detailed_errors: bool
    api_request_logging: bool
    assistant_enabled: bool
    assistant_sql_enabled: bool
    budget_auto_reconcile: bool


# =============================================================================
# observability.yaml
# =============================================================================


class HealthChecksSchema(_StrictBase):
    ready_timeout_seconds: float = Field(gt=0)


class ObservabilitySchema(_StrictBase):
    health_checks: HealthChecksSchema


# =============================================================================
# budget.yaml
# =============================================================================


class BudgetSchema(_StrictBase):
    default_plan_days: int = Field(gt=0)
    default_plan_months: int = Field(gt=0)
    max_projection_days: int = Field(gt=0)
    expiring_within_days: int = Field(gt=0)


# =============================================================================
# agents/clinical/assistant/agent.yaml
# =============================================================================


class AssistantAgentSchema(_StrictBase):
    agent_name: str
    description: str
    model: str
    temperature: float = Field(ge=0, le=2)
    max_tokens: int = Field(gt=0)
    read_only: bool
    history_limit: int = Field(gt=0)
    max_rows: int = Field(gt=0)
