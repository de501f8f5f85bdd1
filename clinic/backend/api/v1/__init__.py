"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from clinic.backend.api.v1.endpoints import (
    allies,
    assistant,
    budgets,
    catalog,
    clients,
    goals,
    reports,
    session_notes,
    sessions,
)

router = APIRouter()

# Clients and their allies
router.include_router(clients.router, prefix="/clients", tags=["clients"])
router.include_router(allies.router, tags=["allies"])

# Goals
router.include_router(goals.router, tags=["goals"])

# Sessions, notes and assessments
router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
router.include_router(session_notes.router, tags=["session-notes"])

# Budgets
router.include_router(budgets.router, tags=["budgets"])
router.include_router(catalog.router, prefix="/budget-catalog", tags=["budget-catalog"])

# Reports
router.include_router(reports.router, tags=["reports"])

# Assistant
router.include_router(assistant.router, prefix="/assistant", tags=["assistant"])
