"""
Budget Schemas.

Request/response schemas for budget plans, plan items, the catalog, and the
utilization summary.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _DateRangeModel(BaseModel):
    """Rejects an end date before the start date when both are supplied."""

    @model_validator(mode="after")
    def check_date_range(self):
        start = getattr(self, "start_date", None)
        end = getattr(self, "end_date", None)
        if start is not None and end is not None and end < start:
            raise ValueError("end_date must not be before start_date")
        return self


class BudgetPlanCreate(_DateRangeModel):
    """Schema for creating a budget plan."""

    plan_code: str | None = Field(default=None, max_length=100)
    plan_serial_number: str | None = Field(default=None, max_length=100)
    total_funds: float = Field(default=0, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool = True


class BudgetPlanUpdate(_DateRangeModel):
    """Schema for updating a budget plan."""

    plan_code: str | None = Field(default=None, max_length=100)
    plan_serial_number: str | None = Field(default=None, max_length=100)
    total_funds: float | None = Field(default=None, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None


class BudgetPlanResponse(BaseModel):
    """Schema for a budget plan in API responses."""

    id: str
    client_id: str
    plan_code: str | None
    plan_serial_number: str | None
    total_funds: float
    start_date: date | None
    end_date: date | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BudgetItemCreate(BaseModel):
    """
    Schema for adding an item to a plan.

    description, category and unit_price default to the catalog entry with
    the same item_code.
    """

    item_code: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, max_length=100)
    unit_price: float | None = Field(default=None, ge=0.01)
    quantity: int = Field(..., ge=1)
    used_quantity: int = Field(default=0, ge=0)


class BudgetItemUpdate(BaseModel):
    """Schema for updating a plan item."""

    description: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, max_length=100)
    unit_price: float | None = Field(default=None, ge=0.01)
    quantity: int | None = Field(default=None, ge=1)
    used_quantity: int | None = Field(default=None, ge=0)


class BudgetItemResponse(BaseModel):
    """Schema for a plan item in API responses."""

    id: str
    plan_id: str
    item_code: str
    description: str | None
    category: str | None
    unit_price: float
    quantity: int
    used_quantity: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Catalog
# =============================================================================


class CatalogItemCreate(BaseModel):
    """Schema for adding a catalog entry."""

    item_code: str = Field(..., min_length=1, max_length=100, examples=["15_056_0128_1_3"])
    description: str = Field(..., min_length=1, max_length=2000)
    default_unit_price: float = Field(..., ge=0.01)
    category: str | None = Field(default=None, max_length=100)
    is_active: bool = True


class CatalogItemUpdate(BaseModel):
    """Schema for updating a catalog entry. The item code cannot change."""

    description: str | None = Field(default=None, min_length=1, max_length=2000)
    default_unit_price: float | None = Field(default=None, ge=0.01)
    category: str | None = Field(default=None, max_length=100)
    is_active: bool | None = None


class CatalogItemResponse(BaseModel):
    """Schema for a catalog entry in API responses."""

    id: str
    item_code: str
    description: str
    default_unit_price: float
    category: str | None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Utilization
# =============================================================================


class MonthlySpendingResponse(BaseModel):
    month: str = Field(description="Calendar month as YYYY-MM")
    actual: float
    target: float
    projected: float
    cumulative_actual: float
    cumulative_target: float
    cumulative_projected: float

    model_config = ConfigDict(from_attributes=True)


class SpendingEventResponse(BaseModel):
    event_date: date
    session_id: str
    item_code: str
    quantity: int
    amount: float

    model_config = ConfigDict(from_attributes=True)


class BudgetSummaryResponse(BaseModel):
    """Utilization and projection for a client's active plan."""

    plan_id: str
    total_budget: float
    used_budget: float
    remaining_budget: float
    utilization_percentage: float
    start_date: date
    end_date: date
    total_days: int
    days_elapsed: int
    remaining_days: int
    daily_budget: float
    daily_spend_rate: float
    projected_exhaustion_date: date | None
    projected_overspend: float | None
    projected_remaining_budget: float
    monthly_spending: list[MonthlySpendingResponse]
    spending_events: list[SpendingEventResponse]


class ExpiringPlanResponse(BaseModel):
    """An active plan ending soon, with the funds still unused."""

    plan_id: str
    client_id: str
    client_name: str
    end_date: date
    days_remaining: int
    total_budget: float
    remaining_budget: float


class UsageReconcileResponse(BaseModel):
    """Result of recomputing used quantities from session notes."""

    plan_id: str | None
    updated_items: int
    used_quantities: dict[str, int]
