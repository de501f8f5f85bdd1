#!/usr/bin/env python3
"""
Application Entry Script.

Command-line entry point for the speech clinic backend.

Usage:
    python run.py --help
    python run.py --action server --reload --verbose
    python run.py --action health
    python run.py --action config
    python run.py --action test --test-type unit
"""

import subprocess
import sys
from pathlib import Path

import click

PROJECT_ROOT = Path(__file__).parent

from clinic.backend.core.logging import get_logger, log_with_source, setup_logging


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


@click.command()
@click.option(
    "--action",
    type=click.Choice(["server", "health", "config", "test", "info"]),
    default="info",
    help="Action to perform.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable INFO level logging.")
@click.option("--debug", "-d", is_flag=True, help="Enable DEBUG level logging.")
@click.option("--host", default=None, help="Server host (for server action).")
@click.option("--port", default=None, type=int, help="Server port (for server action).")
@click.option("--reload", is_flag=True, help="Enable auto-reload (for server action).")
@click.option(
    "--test-type",
    type=click.Choice(["all", "unit", "integration"]),
    default="all",
    help="Test type to run (for test action).",
)
def main(
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    test_type: str,
) -> None:
    """
    Speech clinic backend.

    Run the API server, check that configuration and imports are healthy,
    view configuration, or run tests.

    Examples:

        python run.py --action server --reload --verbose

        python run.py --action test --test-type unit
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console", enable_file_logging=False)
    logger = get_logger(__name__)
    log_with_source(logger, "cli", "debug", "Running action", action=action, log_level=log_level)

    if action == "server":
        run_server(logger, host, port, reload)
    elif action == "health":
        check_health(logger)
    elif action == "config":
        show_config(logger)
    elif action == "test":
        run_tests(logger, test_type)
    elif action == "info":
        show_info()


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the API server with uvicorn."""
    from clinic.backend.core.config import get_app_config

    server = get_app_config().application.server
    server_host = host or server.host
    server_port = port or server.port

    log_with_source(
        logger, "cli", "info", "Starting server",
        host=server_host, port=server_port, reload=reload,
    )

    cmd = [
        sys.executable, "-m", "uvicorn",
        "clinic.backend.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]
    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        log_with_source(logger, "cli", "info", "Server stopped")
    except subprocess.CalledProcessError as e:
        log_with_source(logger, "cli", "error", "Server failed to start", exit_code=e.returncode)
        sys.exit(e.returncode)


def _run_check(logger, name: str, check) -> tuple[str, bool, str | None]:
    try:
        detail = check()
    except Exception as e:
        log_with_source(logger, "cli", "error", "Health check failed", check=name, error=str(e))
        return name, False, str(e)
    log_with_source(logger, "cli", "debug", "Health check passed", check=name)
    return name, True, detail


def check_health(logger) -> None:
    """Check that configuration loads and the application assembles."""
    click.echo("Checking application health...\n")

    def yaml_config() -> str:
        from clinic.backend.core.config import get_app_config

        return f"App: {get_app_config().application.name}"

    def secrets() -> str:
        from clinic.backend.core.config import get_settings

        get_settings()
        return "config/.env loaded"

    def assistant() -> str:
        from clinic.backend.agents.vertical.clinical.assistant.agent import is_configured
        from clinic.backend.core.config import get_app_config

        model = get_app_config().assistant.model
        return f"Model: {model} ({'key present' if is_configured(model) else 'no API key'})"

    def application() -> str:
        from clinic.backend.main import get_app

        app = get_app()
        return f"Title: {app.title}, routes: {len(app.routes)}"

    def models() -> str:
        from clinic.backend.models import Base

        return f"Tables: {len(Base.metadata.tables)}"

    checks = [
        _run_check(logger, "YAML configuration", yaml_config),
        _run_check(logger, "Secrets", secrets),
        _run_check(logger, "Assistant agent", assistant),
        _run_check(logger, "FastAPI application", application),
        _run_check(logger, "Database models", models),
    ]

    click.echo("Health Check Results:")
    click.echo("-" * 50)
    for name, passed, detail in checks:
        status = click.style("PASS", fg="green") if passed else click.style("FAIL", fg="red")
        detail_str = f" ({detail})" if detail else ""
        click.echo(f"  {status}  {name}{detail_str}")
    click.echo("-" * 50)

    if all(passed for _, passed, _ in checks):
        click.echo(click.style("\nAll checks passed!", fg="green"))
    else:
        click.echo(click.style("\nSome checks failed. See details above.", fg="yellow"))
        sys.exit(1)


def _echo_section(title: str, values: dict, indent: int = 2) -> None:
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_section(title, value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def show_config(logger) -> None:
    """Display the validated YAML configuration. Secrets are never shown."""
    from clinic.backend.core.config import get_app_config

    app_config = get_app_config()
    sections = {
        "Application (application.yaml)": app_config.application,
        "Database (database.yaml)": app_config.database,
        "Logging (logging.yaml)": app_config.logging,
        "Feature Flags (features.yaml)": app_config.features,
        "Observability (observability.yaml)": app_config.observability,
        "Budget (budget.yaml)": app_config.budget,
        "Assistant (agents/clinical/assistant/agent.yaml)": app_config.assistant,
    }

    click.echo("Application Configuration:\n")
    for title, schema in sections.items():
        click.echo(title)
        click.echo("-" * 40)
        _echo_section(title, schema.model_dump())
        click.echo()

    log_with_source(logger, "cli", "info", "Configuration displayed")


def run_tests(logger, test_type: str) -> None:
    """Run the test suite with pytest."""
    cmd = [sys.executable, "-m", "pytest", "tests/" if test_type == "all" else f"tests/{test_type}", "-v"]
    log_with_source(logger, "cli", "info", "Running tests", test_type=test_type)
    click.echo(f"Running: {' '.join(cmd)}\n")

    result = subprocess.run(cmd)
    sys.exit(result.returncode)


def show_info() -> None:
    """Display application information."""
    from clinic.backend.core.config import get_app_config

    application = get_app_config().application
    click.echo(application.name)
    click.echo("=" * 40)
    click.echo(f"Version: {application.version}")
    click.echo(f"Description: {application.description}")
    click.echo(f"API: http://{application.server.host}:{application.server.port}{application.api_prefix}")
    click.echo()
    click.echo("Available Actions:")
    click.echo("  --action server   Start the API server")
    click.echo("  --action health   Check configuration and application assembly")
    click.echo("  --action config   Display configuration")
    click.echo("  --action test     Run test suite")
    click.echo("  --action info     Show this information")


if __name__ == "__main__":
    main()
