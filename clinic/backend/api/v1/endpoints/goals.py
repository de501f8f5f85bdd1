"""
Goals API Endpoints.

REST API endpoints for therapy goals and subgoals.
"""

from fastapi import APIRouter

from clinic.backend.core.dependencies import DbSession, RequestId
from clinic.backend.schemas.base import ApiResponse
from clinic.backend.schemas.goal import (
    GoalCreate,
    GoalResponse,
    GoalUpdate,
    SubgoalCreate,
    SubgoalResponse,
    SubgoalUpdate,
)
from clinic.backend.services.goal import GoalService

router = APIRouter()


@router.post(
    "/clients/{client_id}/goals",
    response_model=ApiResponse[GoalResponse],
    status_code=201,
    summary="Create a goal",
)
async def create_goal(
    client_id: str,
    data: GoalCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[GoalResponse]:
    """Create a goal for a client."""
    service = GoalService(db)
    goal = await service.create_goal(client_id, data)
    return ApiResponse(data=GoalResponse.model_validate(goal))


@router.get(
    "/clients/{client_id}/goals",
    response_model=ApiResponse[list[GoalResponse]],
    summary="List a client's goals",
    description="Goals ordered by importance, most important first.",
)
async def list_goals(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[list[GoalResponse]]:
    """List a client's goals."""
    service = GoalService(db)
    goals = await service.list_goals(client_id)
    return ApiResponse(data=[GoalResponse.model_validate(goal) for goal in goals])


@router.get(
    "/goals/{goal_id}",
    response_model=ApiResponse[GoalResponse],
    summary="Get a goal",
)
async def get_goal(
    goal_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[GoalResponse]:
    """Get a goal by ID."""
    service = GoalService(db)
    goal = await service.get_goal(goal_id)
    return ApiResponse(data=GoalResponse.model_validate(goal))


@router.put(
    "/goals/{goal_id}",
    response_model=ApiResponse[GoalResponse],
    summary="Update a goal",
)
async def update_goal(
    goal_id: str,
    data: GoalUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[GoalResponse]:
    """Update a goal."""
    service = GoalService(db)
    goal = await service.update_goal(goal_id, data)
    return ApiResponse(data=GoalResponse.model_validate(goal))


@router.delete(
    "/goals/{goal_id}",
    status_code=204,
    summary="Delete a goal",
    description="Delete a goal together with its subgoals and assessments.",
)
async def delete_goal(
    goal_id: str,
    db: DbSession,
    request_id: RequestId,
) -> None:
    """Delete a goal."""
    service = GoalService(db)
    await service.delete_goal(goal_id)


@router.post(
    "/goals/{goal_id}/subgoals",
    response_model=ApiResponse[SubgoalResponse],
    status_code=201,
    summary="Create a subgoal",
)
async def create_subgoal(
    goal_id: str,
    data: SubgoalCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[SubgoalResponse]:
    """Add a subgoal to a goal."""
    service = GoalService(db)
    subgoal = await service.create_subgoal(goal_id, data)
    return ApiResponse(data=SubgoalResponse.model_validate(subgoal))


@router.get(
    "/goals/{goal_id}/subgoals",
    response_model=ApiResponse[list[SubgoalResponse]],
    summary="List a goal's subgoals",
)
async def list_subgoals(
    goal_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[list[SubgoalResponse]]:
    """List the subgoals of a goal."""
    service = GoalService(db)
    subgoals = await service.list_subgoals(goal_id)
    return ApiResponse(data=[SubgoalResponse.model_validate(s) for s in subgoals])


@router.put(
    "/subgoals/{subgoal_id}",
    response_model=ApiResponse[SubgoalResponse],
    summary="Update a subgoal",
    description="Completing a subgoal without a completion date stamps today.",
)
async def update_subgoal(
    subgoal_id: str,
    data: SubgoalUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[SubgoalResponse]:
    """Update a subgoal."""
    service = GoalService(db)
    subgoal = await service.update_subgoal(subgoal_id, data)
    return ApiResponse(data=SubgoalResponse.model_validate(subgoal))


@router.delete(
    "/subgoals/{subgoal_id}",
    status_code=204,
    summary="Delete a subgoal",
)
async def delete_subgoal(
    subgoal_id: str,
    db: DbSession,
    request_id: RequestId,
) -> None:
    """Delete a subgoal."""
    service = GoalService(db)
    await service.delete_subgoal(subgoal_id)
