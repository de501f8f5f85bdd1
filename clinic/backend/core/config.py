"""
Configuration Management.

Loads secrets from config/.env and settings from config/settings/*.yaml.
Nothing environment-specific is hardcoded; everything comes from these sources.

Secrets (.env):
    DB_PASSWORD, OPENAI_API_KEY, ANTHROPIC_API_KEY

Settings (YAML):
    application.yaml   - App identity, server, cors, timeouts
    database.yaml      - Database connection and pool settings
    logging.yaml       - Logging configuration
    features.yaml      - Feature flags
    observability.yaml - Health check configuration
    budget.yaml        - Budget projection defaults

Agent settings (YAML):
    config/agents/clinical/assistant/agent.yaml - Assistant model defaults
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from clinic.backend.core.config_schema import (
    ApplicationSchema,
    AssistantAgentSchema,
    BudgetSchema,
    DatabaseSchema,
    FeaturesSchema,
    LoggingSchema,
    ObservabilitySchema,
)


def find_project_root() -> Path:
    """Find project root by looking for .project_root marker file."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".project_root").exists():
            return current
        current = current.parent
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def validate_project_root() -> Path:
    """
    Validate that the project root can be found.

    Raises SystemExit with a clear message if .project_root is not found.
    """
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML configuration file from config/settings/."""
    return _read_yaml(find_project_root() / "config" / "settings" / filename)


def load_agent_config(agent_path: str) -> dict[str, Any]:
    """
    Load an agent configuration file from config/agents/.

    Args:
        agent_path: Dotted agent name, e.g. "clinical.assistant"
    """
    parts = agent_path.split(".")
    return _read_yaml(
        find_project_root().joinpath("config", "agents", *parts, "agent.yaml")
    )


class Settings(BaseSettings):
    """Secrets loaded from config/.env. Only passwords, tokens, and keys."""

    db_password: str
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def provider_api_key(self, provider: str) -> str:
        """Return the API key for an LLM provider prefix ("openai", "anthropic")."""
        return getattr(self, f"{provider}_api_key", "") or ""


def _validate(schema_cls: type, raw: dict[str, Any], source: str) -> Any:
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {source}:\n{e}") from e


def _load_validated(schema_cls: type, filename: str) -> Any:
    """Load YAML and validate against schema. Returns typed model instance."""
    return _validate(schema_cls, load_yaml_config(filename), filename)


class AppConfig:
    """
    Application configuration loaded from YAML files.

    Each YAML file is validated against its Pydantic schema at load time,
    so a missing key or a typo fails at startup rather than mid-request.
    """

    def __init__(self) -> None:
        self._application = _load_validated(ApplicationSchema, "application.yaml")
        self._database = _load_validated(DatabaseSchema, "database.yaml")
        self._logging = _load_validated(LoggingSchema, "logging.yaml")
        self._features = _load_validated(FeaturesSchema, "features.yaml")
        self._observability = _load_validated(ObservabilitySchema, "observability.yaml")
        self._budget = _load_validated(BudgetSchema, "budget.yaml")
        self._assistant = _validate(
            AssistantAgentSchema,
            load_agent_config("clinical.assistant"),
            "agents/clinical/assistant/agent.yaml",
        )

    @property
    def application(self) -> ApplicationSchema:
        """Application settings."""
        return self._application

    @property
    def database(self) -> DatabaseSchema:
        """Database settings."""
        return self._database

    @property
    def logging(self) -> LoggingSchema:
        """Logging settings."""
        return self._logging

    @property
    def features(self) -> FeaturesSchema:
        """Feature flags."""
        return self._features

    @property
    def observability(self) -> ObservabilitySchema:
        """Health check settings."""
        return self._observability

    @property
    def budget(self) -> BudgetSchema:
        """Budget projection defaults."""
        return self._budget

    @property
    def assistant(self) -> AssistantAgentSchema:
        """Assistant agent defaults."""
        return self._assistant


@lru_cache
def get_settings() -> Settings:
    """Get cached secrets instance. Resolves .env path from project root."""
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def get_database_url(async_driver: bool = True) -> str:
    """
    Construct database URL from YAML config and secrets.

    Args:
        async_driver: Use asyncpg driver if True, psycopg2 if False.
    """
    db = get_app_config().database
    password = get_settings().db_password
    driver = "postgresql+asyncpg" if async_driver else "postgresql"
    return f"{driver}://{db.user}:{password}@{db.host}:{db.port}/{db.name}"
