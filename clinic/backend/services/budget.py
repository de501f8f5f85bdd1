"""
Budget Service.

Business logic for budget plans and their items: at most one active plan per
client, catalog defaults for new items, usage reconciliation from session
notes, and the utilization summary built on budget_projection.
"""

from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from clinic.backend.core.config import get_app_config
from clinic.backend.core.exceptions import ConflictError, NotFoundError, ValidationError
from clinic.backend.core.utils import utc_today
from clinic.backend.models.budget import BudgetItem, BudgetPlan
from clinic.backend.repositories.budget import (
    BudgetCatalogRepository,
    BudgetItemRepository,
    BudgetPlanRepository,
)
from clinic.backend.repositories.client import ClientRepository
from clinic.backend.repositories.session import SessionNoteRepository
from clinic.backend.schemas.budget import (
    BudgetItemCreate,
    BudgetItemUpdate,
    BudgetPlanCreate,
    BudgetPlanUpdate,
    BudgetSummaryResponse,
    ExpiringPlanResponse,
    MonthlySpendingResponse,
    SpendingEventResponse,
    UsageReconcileResponse,
)
from clinic.backend.services.base import BaseService
from clinic.backend.services.budget_projection import (
    SpendingEvent,
    monthly_breakdown,
    project_budget,
    projected_remaining_budget,
    resolve_plan_dates,
)


def plan_totals(plan: BudgetPlan, items: list[BudgetItem]) -> tuple[float, float]:
    """
    Total and used budget of a plan.

    The total is the value of the plan's items, or its total_funds when no
    items have been added yet.
    """
    if not items:
        return float(plan.total_funds or 0), 0.0
    total = sum(item.unit_price * item.quantity for item in items)
    used = sum(item.unit_price * item.used_quantity for item in items)
    return total, used


class BudgetService(BaseService):
    """Service for budget plans, plan items and utilization."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = BudgetPlanRepository(session)
        self.item_repo = BudgetItemRepository(session)
        self.catalog_repo = BudgetCatalogRepository(session)
        self.client_repo = ClientRepository(session)
        self.note_repo = SessionNoteRepository(session)

    # -------------------------------------------------------------------------
    # Plans
    # -------------------------------------------------------------------------

    async def create_plan(self, client_id: str, data: BudgetPlanCreate) -> BudgetPlan:
        """
        Create a budget plan for a client.

        Creating an active plan deactivates the client's other plans.

        Raises:
            NotFoundError: If client not found
        """
        await self.client_repo.get_by_id(client_id)
        if data.is_active:
            await self.repo.deactivate_others(client_id)

        self._log_operation("Creating budget plan", client_id=client_id, is_active=data.is_active)
        plan = await self._execute_db_operation(
            "create_budget_plan",
            self.repo.create(client_id=client_id, **data.model_dump()),
        )
        self._log_debug("Budget plan created", plan_id=plan.id)
        return plan

    async def list_plans(self, client_id: str) -> list[BudgetPlan]:
        """
        List a client's plans, newest first.

        Raises:
            NotFoundError: If client not found
        """
        await self.client_repo.get_by_id(client_id)
        return await self.repo.list_for_client(client_id)

    async def get_plan(self, plan_id: str) -> BudgetPlan:
        """Get a budget plan by ID."""
        return await self.repo.get_by_id(plan_id)

    async def get_active_plan(self, client_id: str) -> BudgetPlan:
        """
        Get the client's active plan.

        Raises:
            NotFoundError: If the client or an active plan does not exist
        """
        await self.client_repo.get_by_id(client_id)
        plan = await self.repo.get_active(client_id)
        if plan is None:
            raise NotFoundError("Client has no active budget plan")
        return plan

    async def update_plan(self, plan_id: str, data: BudgetPlanUpdate) -> BudgetPlan:
        """
        Update a budget plan.

        Activating a plan deactivates the client's other plans.

        Raises:
            NotFoundError: If plan not found
            ValidationError: If the resulting date range is inverted
        """
        update_data = self._update_payload(data, required=("total_funds", "is_active"))
        plan = await self.repo.get_by_id(plan_id)
        if not update_data:
            return plan

        start = update_data.get("start_date", plan.start_date)
        end = update_data.get("end_date", plan.end_date)
        if start is not None and end is not None and end < start:
            raise ValidationError(
                "end_date must not be before start_date",
                details={"start_date": str(start), "end_date": str(end)},
            )

        if update_data.get("is_active"):
            await self.repo.deactivate_others(plan.client_id, keep_id=plan_id)

        self._log_operation("Updating budget plan", plan_id=plan_id, fields=list(update_data))
        return await self._execute_db_operation(
            "update_budget_plan",
            self.repo.update(plan_id, **update_data),
        )

    async def delete_plan(self, plan_id: str) -> None:
        """Delete a plan and its items."""
        self._log_operation("Deleting budget plan", plan_id=plan_id)
        await self._execute_db_operation("delete_budget_plan", self.repo.delete(plan_id))

    async def list_expiring(
        self,
        within_days: int | None = None,
        today: date | None = None,
    ) -> list[ExpiringPlanResponse]:
        """
        Active plans ending within the next `within_days` days.

        Args:
            within_days: Window length; defaults to budget.yaml expiring_within_days
            today: Reference date, defaults to the current UTC date
        """
        today = today or utc_today()
        if within_days is None:
            within_days = get_app_config().budget.expiring_within_days

        plans = await self.repo.list_expiring(today, today + timedelta(days=within_days))
        expiring = []
        for plan in plans:
            client = await self.client_repo.get_by_id(plan.client_id)
            total, used = plan_totals(plan, await self.item_repo.list_for_plan(plan.id))
            expiring.append(
                ExpiringPlanResponse(
                    plan_id=plan.id,
                    client_id=plan.client_id,
                    client_name=client.name,
                    end_date=plan.end_date,
                    days_remaining=(plan.end_date - today).days,
                    total_budget=round(total, 2),
                    remaining_budget=round(total - used, 2),
                )
            )
        return expiring

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    async def create_item(self, plan_id: str, data: BudgetItemCreate) -> BudgetItem:
        """
        Add an item to a plan.

        Missing description, category and unit price are taken from the
        catalog entry with the same code.

        Raises:
            NotFoundError: If plan not found
            ConflictError: If the plan already has an item with this code
            ValidationError: If no unit price is given and the code is not cataloged
        """
        await self.repo.get_by_id(plan_id)
        if await self.item_repo.get_by_code(plan_id, data.item_code) is not None:
            raise ConflictError(f"Item {data.item_code} is already part of this plan")

        values = data.model_dump()
        catalog_item = await self.catalog_repo.get_by_code(data.item_code)
        if catalog_item is not None:
            values["description"] = values["description"] or catalog_item.description
            values["category"] = values["category"] or catalog_item.category
            values["unit_price"] = values["unit_price"] or catalog_item.default_unit_price
        if values["unit_price"] is None:
            raise ValidationError(
                "unit_price is required for items not in the catalog",
                details={"item_code": data.item_code},
            )

        self._log_operation("Creating budget item", plan_id=plan_id, item_code=data.item_code)
        item = await self._execute_db_operation(
            "create_budget_item",
            self.item_repo.create(plan_id=plan_id, **values),
            conflict_message=f"Item {data.item_code} is already part of this plan",
        )
        self._log_debug("Budget item created", item_id=item.id)
        return item

    async def list_items(self, plan_id: str) -> list[BudgetItem]:
        """
        List the items of a plan.

        Raises:
            NotFoundError: If plan not found
        """
        await self.repo.get_by_id(plan_id)
        return await self.item_repo.list_for_plan(plan_id)

    async def update_item(self, item_id: str, data: BudgetItemUpdate) -> BudgetItem:
        """Update a plan item. The item code cannot change."""
        update_data = self._update_payload(
            data,
            required=("unit_price", "quantity", "used_quantity"),
        )
        if not update_data:
            return await self.item_repo.get_by_id(item_id)

        self._log_operation("Updating budget item", item_id=item_id, fields=list(update_data))
        return await self._execute_db_operation(
            "update_budget_item",
            self.item_repo.update(item_id, **update_data),
        )

    async def delete_item(self, item_id: str) -> None:
        """Delete a plan item."""
        self._log_operation("Deleting budget item", item_id=item_id)
        await self._execute_db_operation("delete_budget_item", self.item_repo.delete(item_id))

    # -------------------------------------------------------------------------
    # Usage and utilization
    # -------------------------------------------------------------------------

    async def spending_events(
        self,
        client_id: str,
        items: list[BudgetItem],
    ) -> list[SpendingEvent]:
        """
        Billed product lines from the client's completed session notes.

        Lines whose item code is not among `items` are ignored. A line's own
        unit price takes precedence over the plan item's.
        """
        items_by_code = {item.item_code: item for item in items}
        events = []
        for note, therapy_session in await self.note_repo.list_for_client(
            client_id, status="completed"
        ):
            for line in note.products or []:
                item = items_by_code.get(line.get("item_code"))
                if item is None:
                    continue
                quantity = int(line.get("quantity") or 0)
                unit_price = line.get("unit_price") or item.unit_price
                events.append(
                    SpendingEvent(
                        event_date=therapy_session.session_date.date(),
                        session_id=therapy_session.id,
                        item_code=item.item_code,
                        quantity=quantity,
                        amount=round(quantity * unit_price, 2),
                    )
                )
        return events

    async def reconcile_usage(self, client_id: str) -> UsageReconcileResponse:
        """
        Recompute used quantities of the active plan's items.

        Each item's used quantity becomes the total quantity billed for its
        code across the client's completed session notes.
        """
        plan = await self.repo.get_active(client_id)
        if plan is None:
            return UsageReconcileResponse(plan_id=None, updated_items=0, used_quantities={})

        items = await self.item_repo.list_for_plan(plan.id)
        used = {item.item_code: 0 for item in items}
        for event in await self.spending_events(client_id, items):
            used[event.item_code] += event.quantity

        updated = 0
        for item in items:
            if item.used_quantity != used[item.item_code]:
                item.used_quantity = used[item.item_code]
                updated += 1
        if updated:
            await self._execute_db_operation("reconcile_budget_usage", self.session.flush())

        self._log_operation(
            "Budget usage reconciled",
            client_id=client_id,
            plan_id=plan.id,
            updated_items=updated,
        )
        return UsageReconcileResponse(plan_id=plan.id, updated_items=updated, used_quantities=used)

    async def reconcile_client_usage(self, client_id: str) -> UsageReconcileResponse:
        """
        Reconcile usage on request.

        Raises:
            NotFoundError: If client not found
        """
        await self.client_repo.get_by_id(client_id)
        return await self.reconcile_usage(client_id)

    async def get_summary(self, client_id: str, today: date | None = None) -> BudgetSummaryResponse:
        """
        Utilization, projection and monthly breakdown for the client's active plan.

        Raises:
            NotFoundError: If the client or an active plan does not exist
        """
        plan = await self.get_active_plan(client_id)
        budget_config = get_app_config().budget
        today = today or utc_today()

        items = await self.item_repo.list_for_plan(plan.id)
        total, used = plan_totals(plan, items)
        start, end = resolve_plan_dates(
            plan.start_date,
            plan.end_date,
            plan.created_at.date() if plan.created_at else None,
            today,
            default_months=budget_config.default_plan_months,
        )

        projection = project_budget(
            total,
            used,
            start,
            end,
            today,
            default_plan_days=budget_config.default_plan_days,
            max_projection_days=budget_config.max_projection_days,
        )
        events = await self.spending_events(client_id, items)
        breakdown = monthly_breakdown(total, start, end, today, events)

        self._log_debug(
            "Budget summary computed",
            client_id=client_id,
            plan_id=plan.id,
            utilization=projection.utilization_percentage,
        )
        return BudgetSummaryResponse(
            plan_id=plan.id,
            total_budget=projection.total_budget,
            used_budget=projection.used_budget,
            remaining_budget=projection.remaining_budget,
            utilization_percentage=projection.utilization_percentage,
            start_date=projection.start_date,
            end_date=projection.end_date,
            total_days=projection.total_days,
            days_elapsed=projection.days_elapsed,
            remaining_days=projection.remaining_days,
            daily_budget=projection.daily_budget,
            daily_spend_rate=projection.daily_spend_rate,
            projected_exhaustion_date=projection.projected_exhaustion_date,
            projected_overspend=projection.projected_overspend,
            projected_remaining_budget=projected_remaining_budget(
                total, projection.remaining_budget, breakdown
            ),
            monthly_spending=[MonthlySpendingResponse.model_validate(m) for m in breakdown],
            spending_events=[SpendingEventResponse.model_validate(e) for e in events],
        )
