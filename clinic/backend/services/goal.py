"""
Goal Service.

Business logic for therapy goals and their subgoals.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from clinic.backend.core.utils import utc_today
from clinic.backend.models.goal import Goal, Subgoal
from clinic.backend.repositories.client import ClientRepository
from clinic.backend.repositories.goal import GoalRepository, SubgoalRepository
from clinic.backend.schemas.goal import GoalCreate, GoalUpdate, SubgoalCreate, SubgoalUpdate
from clinic.backend.services.base import BaseService

COMPLETED_STATUS = "completed"


def _stamp_completion(values: dict[str, Any]) -> dict[str, Any]:
    """Set completion_date to today when a subgoal is completed without one."""
    if values.get("status") == COMPLETED_STATUS and values.get("completion_date") is None:
        values["completion_date"] = utc_today()
    return values


class GoalService(BaseService):
    """Service for goals and subgoals."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = GoalRepository(session)
        self.subgoal_repo = SubgoalRepository(session)
        self.client_repo = ClientRepository(session)

    async def create_goal(self, client_id: str, data: GoalCreate) -> Goal:
        """
        Create a goal for a client.

        Raises:
            NotFoundError: If client not found
        """
        await self.client_repo.get_by_id(client_id)
        self._log_operation("Creating goal", client_id=client_id)

        goal = await self._execute_db_operation(
            "create_goal",
            self.repo.create(client_id=client_id, **data.model_dump()),
        )
        self._log_debug("Goal created", goal_id=goal.id)
        return goal

    async def list_goals(self, client_id: str) -> list[Goal]:
        """
        List a client's goals, most important first.

        Raises:
            NotFoundError: If client not found
        """
        await self.client_repo.get_by_id(client_id)
        return await self.repo.list_for_client(client_id)

    async def get_goal(self, goal_id: str) -> Goal:
        """Get a goal by ID."""
        return await self.repo.get_by_id(goal_id)

    async def update_goal(self, goal_id: str, data: GoalUpdate) -> Goal:
        """
        Update a goal.

        Raises:
            NotFoundError: If goal not found
            ValidationError: If title or status is explicitly null
        """
        update_data = self._update_payload(data, required=("title", "status"))
        if not update_data:
            return await self.get_goal(goal_id)

        self._log_operation("Updating goal", goal_id=goal_id, fields=list(update_data))
        return await self._execute_db_operation(
            "update_goal",
            self.repo.update(goal_id, **update_data),
        )

    async def delete_goal(self, goal_id: str) -> None:
        """Delete a goal with its subgoals and assessments."""
        self._log_operation("Deleting goal", goal_id=goal_id)
        await self._execute_db_operation("delete_goal", self.repo.delete(goal_id))

    # -------------------------------------------------------------------------
    # Subgoals
    # -------------------------------------------------------------------------

    async def create_subgoal(self, goal_id: str, data: SubgoalCreate) -> Subgoal:
        """
        Add a subgoal to a goal.

        Raises:
            NotFoundError: If goal not found
        """
        await self.repo.get_by_id(goal_id)
        self._log_operation("Creating subgoal", goal_id=goal_id)

        values = _stamp_completion(data.model_dump())
        subgoal = await self._execute_db_operation(
            "create_subgoal",
            self.subgoal_repo.create(goal_id=goal_id, **values),
        )
        self._log_debug("Subgoal created", subgoal_id=subgoal.id)
        return subgoal

    async def list_subgoals(self, goal_id: str) -> list[Subgoal]:
        """
        List the subgoals of a goal.

        Raises:
            NotFoundError: If goal not found
        """
        await self.repo.get_by_id(goal_id)
        return await self.subgoal_repo.list_for_goal(goal_id)

    async def update_subgoal(self, subgoal_id: str, data: SubgoalUpdate) -> Subgoal:
        """
        Update a subgoal.

        Completing a subgoal without a completion date stamps today, unless
        it already has one.

        Raises:
            NotFoundError: If subgoal not found
            ValidationError: If title or status is explicitly null
        """
        update_data = self._update_payload(data, required=("title", "status"))
        subgoal = await self.subgoal_repo.get_by_id(subgoal_id)
        if not update_data:
            return subgoal

        if "completion_date" not in update_data and subgoal.completion_date is not None:
            update_data["completion_date"] = subgoal.completion_date
        update_data = _stamp_completion(update_data)

        self._log_operation("Updating subgoal", subgoal_id=subgoal_id, fields=list(update_data))
        return await self._execute_db_operation(
            "update_subgoal",
            self.subgoal_repo.update(subgoal_id, **update_data),
        )

    async def delete_subgoal(self, subgoal_id: str) -> None:
        """Delete a subgoal."""
        self._log_operation("Deleting subgoal", subgoal_id=subgoal_id)
        await self._execute_db_operation("delete_subgoal", self.subgoal_repo.delete(subgoal_id))
