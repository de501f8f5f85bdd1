"""
Database models.

Importing this package registers every table on Base.metadata, which the
test fixtures and Alembic autogenerate rely on.
"""

from clinic.backend.models.assistant import (
    AssistantConversation,
    AssistantMessage,
    AssistantSettings,
)
from clinic.backend.models.base import Base
from clinic.backend.models.budget import BudgetCatalogItem, BudgetItem, BudgetPlan
from clinic.backend.models.client import Ally, Client
from clinic.backend.models.goal import Goal, Subgoal
from clinic.backend.models.session import GoalAssessment, SessionNote, TherapySession

__all__ = [
    "Ally",
    "AssistantConversation",
    "AssistantMessage",
    "AssistantSettings",
    "Base",
    "BudgetCatalogItem",
    "BudgetItem",
    "BudgetPlan",
    "Client",
    "Goal",
    "GoalAssessment",
    "SessionNote",
    "Subgoal",
    "TherapySession",
]
