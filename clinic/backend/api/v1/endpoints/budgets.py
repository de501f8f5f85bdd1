"""
Budgets API Endpoints.

REST API endpoints for budget plans, plan items, utilization summaries and
usage reconciliation.
"""

from fastapi import APIRouter, Query

from clinic.backend.core.dependencies import DbSession, RequestId
from clinic.backend.schemas.base import ApiResponse
from clinic.backend.schemas.budget import (
    BudgetItemCreate,
    BudgetItemResponse,
    BudgetItemUpdate,
    BudgetPlanCreate,
    BudgetPlanResponse,
    BudgetPlanUpdate,
    BudgetSummaryResponse,
    ExpiringPlanResponse,
    UsageReconcileResponse,
)
from clinic.backend.services.budget import BudgetService

router = APIRouter()


@router.post(
    "/clients/{client_id}/budget-plans",
    response_model=ApiResponse[BudgetPlanResponse],
    status_code=201,
    summary="Create a budget plan",
    description="Create a plan for a client. An active plan deactivates the client's other plans.",
)
async def create_plan(
    client_id: str,
    data: BudgetPlanCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[BudgetPlanResponse]:
    """Create a budget plan."""
    service = BudgetService(db)
    plan = await service.create_plan(client_id, data)
    return ApiResponse(data=BudgetPlanResponse.model_validate(plan))


@router.get(
    "/clients/{client_id}/budget-plans",
    response_model=ApiResponse[list[BudgetPlanResponse]],
    summary="List a client's budget plans",
)
async def list_plans(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[list[BudgetPlanResponse]]:
    """List a client's plans, newest first."""
    service = BudgetService(db)
    plans = await service.list_plans(client_id)
    return ApiResponse(data=[BudgetPlanResponse.model_validate(plan) for plan in plans])


@router.get(
    "/clients/{client_id}/budget-plans/active",
    response_model=ApiResponse[BudgetPlanResponse],
    summary="Get a client's active budget plan",
)
async def get_active_plan(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[BudgetPlanResponse]:
    """Get the client's active plan."""
    service = BudgetService(db)
    plan = await service.get_active_plan(client_id)
    return ApiResponse(data=BudgetPlanResponse.model_validate(plan))


@router.get(
    "/clients/{client_id}/budget-summary",
    response_model=ApiResponse[BudgetSummaryResponse],
    summary="Budget utilization summary",
    description=(
        "Utilization, spend-rate projection, monthly breakdown and spending "
        "events for the client's active plan."
    ),
)
async def get_budget_summary(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[BudgetSummaryResponse]:
    """Get the budget summary of a client."""
    service = BudgetService(db)
    summary = await service.get_summary(client_id)
    return ApiResponse(data=summary)


@router.post(
    "/clients/{client_id}/budget-usage/reconcile",
    response_model=ApiResponse[UsageReconcileResponse],
    summary="Reconcile budget usage",
    description="Recompute the active plan's used quantities from completed session notes.",
)
async def reconcile_usage(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[UsageReconcileResponse]:
    """Recompute used quantities for a client's active plan."""
    service = BudgetService(db)
    result = await service.reconcile_client_usage(client_id)
    return ApiResponse(data=result)


@router.get(
    "/budget-plans/expiring",
    response_model=ApiResponse[list[ExpiringPlanResponse]],
    summary="List expiring budget plans",
    description="Active plans ending within the given number of days, with their unused funds.",
)
async def list_expiring_plans(
    db: DbSession,
    request_id: RequestId,
    within_days: int | None = Query(
        default=None,
        ge=1,
        le=365,
        description="Window in days; defaults to the configured expiring window",
    ),
) -> ApiResponse[list[ExpiringPlanResponse]]:
    """List plans that end soon."""
    service = BudgetService(db)
    plans = await service.list_expiring(within_days=within_days)
    return ApiResponse(data=plans)


@router.get(
    "/budget-plans/{plan_id}",
    response_model=ApiResponse[BudgetPlanResponse],
    summary="Get a budget plan",
)
async def get_plan(
    plan_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[BudgetPlanResponse]:
    """Get a budget plan by ID."""
    service = BudgetService(db)
    plan = await service.get_plan(plan_id)
    return ApiResponse(data=BudgetPlanResponse.model_validate(plan))


@router.put(
    "/budget-plans/{plan_id}",
    response_model=ApiResponse[BudgetPlanResponse],
    summary="Update a budget plan",
)
async def update_plan(
    plan_id: str,
    data: BudgetPlanUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[BudgetPlanResponse]:
    """Update a budget plan."""
    service = BudgetService(db)
    plan = await service.update_plan(plan_id, data)
    return ApiResponse(data=BudgetPlanResponse.model_validate(plan))


@router.delete(
    "/budget-plans/{plan_id}",
    status_code=204,
    summary="Delete a budget plan",
)
async def delete_plan(
    plan_id: str,
    db: DbSession,
    request_id: RequestId,
) -> None:
    """Delete a budget plan and its items."""
    service = BudgetService(db)
    await service.delete_plan(plan_id)


# =============================================================================
# Items
# =============================================================================


@router.post(
    "/budget-plans/{plan_id}/items",
    response_model=ApiResponse[BudgetItemResponse],
    status_code=201,
    summary="Add a plan item",
    description="Add an item to a plan. Missing details are filled from the budget catalog.",
)
async def create_item(
    plan_id: str,
    data: BudgetItemCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[BudgetItemResponse]:
    """Add an item to a plan."""
    service = BudgetService(db)
    item = await service.create_item(plan_id, data)
    return ApiResponse(data=BudgetItemResponse.model_validate(item))


@router.get(
    "/budget-plans/{plan_id}/items",
    response_model=ApiResponse[list[BudgetItemResponse]],
    summary="List plan items",
)
async def list_items(
    plan_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[list[BudgetItemResponse]]:
    """List the items of a plan."""
    service = BudgetService(db)
    items = await service.list_items(plan_id)
    return ApiResponse(data=[BudgetItemResponse.model_validate(item) for item in items])


@router.put(
    "/budget-items/{item_id}",
    response_model=ApiResponse[BudgetItemResponse],
    summary="Update a plan item",
)
async def update_item(
    item_id: str,
    data: BudgetItemUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[BudgetItemResponse]:
    """Update a plan item."""
    service = BudgetService(db)
    item = await service.update_item(item_id, data)
    return ApiResponse(data=BudgetItemResponse.model_validate(item))


@router.delete(
    "/budget-items/{item_id}",
    status_code=204,
    summary="Delete a plan item",
)
async def delete_item(
    item_id: str,
    db: DbSession,
    request_id: RequestId,
) -> None:
    """Delete a plan item."""
    service = BudgetService(db)
    await service.delete_item(item_id)
