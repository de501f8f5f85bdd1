"""
Health Check Endpoints.

Provides liveness, readiness, and detailed health checks.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (database reachable)
- /health/detailed: Component-by-component status (for debugging)
"""

import asyncio
import time
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.backend.agents.vertical.clinical.assistant.agent import is_configured
from clinic.backend.core.config import get_app_config
from clinic.backend.core.dependencies import DbSession
from clinic.backend.core.logging import get_logger
from clinic.backend.core.utils import utc_now
from clinic.backend.models.assistant import SETTINGS_ROW_ID, AssistantSettings

router = APIRouter()
logger = get_logger(__name__)


async def check_database(session: AsyncSession) -> dict[str, Any]:
    """
    Check database connectivity.

    Returns:
        Dict with status, latency, and optional error message
    """
    timeout = get_app_config().observability.health_checks.ready_timeout_seconds
    start = time.perf_counter()
    try:
        async with asyncio.timeout(timeout):
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError, TimeoutError) as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return {
            "status": "unhealthy",
            "error": str(e) or type(e).__name__,
        }

    return {
        "status": "healthy",
        "latency_ms": int((time.perf_counter() - start) * 1000),
    }


async def check_assistant(session: AsyncSession) -> dict[str, Any]:
    """
    Report whether the assistant can answer questions.

    No model call is made; use /api/v1/assistant/status?check_connection=true
    for a live check.
    """
    if not get_app_config().features.assistant_enabled:
        return {"status": "disabled"}

    stored = await session.get(AssistantSettings, SETTINGS_ROW_ID)
    model = stored.model if stored else get_app_config().assistant.model
    if not is_configured(model):
        return {"status": "not_configured", "model": model}
    return {"status": "healthy", "model": model}


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Liveness check.

    Returns 200 if the process is running.
    No dependency checks - this endpoint should always respond quickly.
    """
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check(db: DbSession) -> dict[str, Any]:
    """
    Readiness check.

    Returns 200 if ready to serve traffic, 503 if the database is unreachable.
    """
    checks = {"database": await check_database(db)}

    unhealthy_checks = [
        name for name, check in checks.items()
        if check.get("status") == "unhealthy"
    ]

    if unhealthy_checks:
        logger.warning(
            "Readiness check failed",
            extra={"unhealthy": unhealthy_checks, "checks": checks},
        )
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "checks": checks,
                "timestamp": utc_now().isoformat(),
            },
        )

    return {
        "status": "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }


@router.get("/health/detailed")
async def detailed_health_check(db: DbSession) -> dict[str, Any]:
    """
    Detailed health check.

    Returns database and assistant status together with application info.
    """
    checks = {"database": await check_database(db)}
    if checks["database"]["status"] == "healthy":
        checks["assistant"] = await check_assistant(db)

    app_settings = get_app_config().application
    app_info = {
        "name": app_settings.name,
        "env": app_settings.environment,
        "debug": app_settings.debug,
        "version": app_settings.version,
    }

    statuses = [check.get("status") for check in checks.values()]
    overall_status = "unhealthy" if "unhealthy" in statuses else "healthy"

    return {
        "status": overall_status,
        "application": app_info,
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }
