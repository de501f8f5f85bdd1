"""
Goal Repositories.

Data access for goals and subgoals.
"""

from sqlalchemy import select

from clinic.backend.models.goal import Goal, Subgoal
from clinic.backend.repositories.base import BaseRepository


class GoalRepository(BaseRepository[Goal]):
    """Repository for Goal model."""

    model = Goal

    async def list_for_client(self, client_id: str) -> list[Goal]:
        """Goals of a client, most important first."""
        result = await self.session.execute(
            select(Goal)
            .where(Goal.client_id == client_id)
            .order_by(Goal.importance_level.desc().nulls_last(), Goal.created_at)
        )
        return list(result.scalars().all())


class SubgoalRepository(BaseRepository[Subgoal]):
    """Repository for Subgoal model."""

    model = Subgoal

    async def list_for_goal(self, goal_id: str) -> list[Subgoal]:
        """Subgoals of a goal in creation order."""
        result = await self.session.execute(
            select(Subgoal)
            .where(Subgoal.goal_id == goal_id)
            .order_by(Subgoal.created_at)
        )
        return list(result.scalars().all())
