"""
Unit Tests for Configuration Management.

Black box tests against the public interface of config.py.
Tests run against the real project YAML files; failure scenarios use
tmp_path to create controlled filesystems.
"""

import pytest

from clinic.backend.core.config import (
    AppConfig,
    Settings,
    find_project_root,
    get_app_config,
    get_database_url,
    get_settings,
    load_agent_config,
    load_yaml_config,
    validate_project_root,
)
from clinic.backend.core.config_schema import (
    ApplicationSchema,
    AssistantAgentSchema,
    BudgetSchema,
    FeaturesSchema,
)


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Clear lru_cache between tests so each test gets a fresh load."""
    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()


def _write_project(tmp_path, files: dict[str, str]) -> None:
    (tmp_path / ".project_root").touch()
    for relative, content in files.items():
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


class TestFindProjectRoot:
    """Tests for .project_root marker discovery."""

    def test_finds_root_from_project_directory(self):
        root = find_project_root()
        assert (root / ".project_root").exists()
        assert (root / "config" / "settings").is_dir()

    def test_raises_when_no_marker_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(RuntimeError, match="Project root not found"):
            find_project_root()

    def test_validate_exits_when_marker_missing(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit):
            validate_project_root()


class TestLoadYamlConfig:
    """Tests for YAML file loading."""

    def test_loads_every_settings_file(self):
        for filename in [
            "application.yaml",
            "database.yaml",
            "logging.yaml",
            "features.yaml",
            "observability.yaml",
            "budget.yaml",
        ]:
            data = load_yaml_config(filename)
            assert isinstance(data, dict) and data, f"{filename} is empty"

    def test_raises_for_nonexistent_file(self):
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            load_yaml_config("does_not_exist.yaml")

    def test_returns_empty_dict_for_empty_yaml(self, tmp_path, monkeypatch):
        _write_project(tmp_path, {"config/settings/empty.yaml": ""})
        monkeypatch.chdir(tmp_path)

        assert load_yaml_config("empty.yaml") == {}

    def test_loads_agent_config_by_dotted_name(self):
        data = load_agent_config("clinical.assistant")
        assert data["agent_name"] == "clinical.assistant"


class TestSettings:
    """Tests for secrets."""

    def test_reads_password_from_environment(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "s3cret")
        assert get_settings().db_password == "s3cret"

    def test_provider_api_key_by_prefix(self):
        settings = Settings(db_password="x", openai_api_key="sk-test")
        assert settings.provider_api_key("openai") == "sk-test"
        assert settings.provider_api_key("anthropic") == ""
        assert settings.provider_api_key("unknown") == ""


class TestAppConfig:
    """Tests for validated YAML configuration."""

    def test_sections_are_typed(self):
        config = AppConfig()
        assert isinstance(config.application, ApplicationSchema)
        assert isinstance(config.features, FeaturesSchema)
        assert isinstance(config.budget, BudgetSchema)
        assert isinstance(config.assistant, AssistantAgentSchema)

    def test_budget_defaults(self):
        budget = AppConfig().budget
        assert budget.default_plan_days == 180
        assert budget.default_plan_months == 6
        assert budget.max_projection_days == 365

    def test_get_app_config_is_cached(self):
        assert get_app_config() is get_app_config()

    def test_unknown_key_is_rejected(self, tmp_path, monkeypatch):
        root = find_project_root()
        files = {
            f"config/settings/{path.name}": path.read_text()
            for path in (root / "config" / "settings").glob("*.yaml")
        }
        files["config/agents/clinical/assistant/agent.yaml"] = (
            root / "config" / "agents" / "clinical" / "assistant" / "agent.yaml"
        ).read_text()
        files["config/settings/budget.yaml"] += "\nunexpected_key: 1\n"
        _write_project(tmp_path, files)
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ValueError, match="budget.yaml"):
            AppConfig()


class TestGetDatabaseUrl:
    """Tests for database URL construction."""

    def test_builds_asyncpg_url(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "pw")
        db = get_app_config().database

        url = get_database_url()

        assert url == f"postgresql+asyncpg://{db.user}:pw@{db.host}:{db.port}/{db.name}"

    def test_sync_driver(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "pw")
        assert get_database_url(async_driver=False).startswith("postgresql://")
