"""
Budget Repositories.

Data access for budget plans, plan items and the budget catalog.
"""

from datetime import date

from sqlalchemy import select, update

from clinic.backend.models.budget import BudgetCatalogItem, BudgetItem, BudgetPlan
from clinic.backend.repositories.base import BaseRepository


class BudgetPlanRepository(BaseRepository[BudgetPlan]):
    """Repository for BudgetPlan model."""

    model = BudgetPlan

    async def list_for_client(self, client_id: str) -> list[BudgetPlan]:
        """Plans of a client, newest first."""
        result = await self.session.execute(
            select(BudgetPlan)
            .where(BudgetPlan.client_id == client_id)
            .order_by(BudgetPlan.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_active(self, client_id: str) -> BudgetPlan | None:
        """The client's active plan, if any."""
        result = await self.session.execute(
            select(BudgetPlan)
            .where(BudgetPlan.client_id == client_id)
            .where(BudgetPlan.is_active == True)  # noqa: E712
            .order_by(BudgetPlan.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def deactivate_others(self, client_id: str, keep_id: str | None = None) -> None:
        """Mark every active plan of the client inactive except keep_id."""
        stmt = (
            update(BudgetPlan)
            .where(BudgetPlan.client_id == client_id)
            .where(BudgetPlan.is_active == True)  # noqa: E712
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        if keep_id is not None:
            stmt = stmt.where(BudgetPlan.id != keep_id)
        await self.session.execute(stmt)

    async def list_expiring(self, start: date, end: date) -> list[BudgetPlan]:
        """Active plans whose end date falls within [start, end]."""
        result = await self.session.execute(
            select(BudgetPlan)
            .where(BudgetPlan.is_active == True)  # noqa: E712
            .where(BudgetPlan.end_date.is_not(None))
            .where(BudgetPlan.end_date >= start)
            .where(BudgetPlan.end_date <= end)
            .order_by(BudgetPlan.end_date)
        )
        return list(result.scalars().all())


class BudgetItemRepository(BaseRepository[BudgetItem]):
    """Repository for BudgetItem model."""

    model = BudgetItem

    async def list_for_plan(self, plan_id: str) -> list[BudgetItem]:
        """Items of a plan ordered by item code."""
        result = await self.session.execute(
            select(BudgetItem)
            .where(BudgetItem.plan_id == plan_id)
            .order_by(BudgetItem.item_code)
        )
        return list(result.scalars().all())

    async def get_by_code(self, plan_id: str, item_code: str) -> BudgetItem | None:
        """Item of a plan by its code."""
        result = await self.session.execute(
            select(BudgetItem)
            .where(BudgetItem.plan_id == plan_id)
            .where(BudgetItem.item_code == item_code)
        )
        return result.scalar_one_or_none()


class BudgetCatalogRepository(BaseRepository[BudgetCatalogItem]):
    """Repository for BudgetCatalogItem model."""

    model = BudgetCatalogItem

    async def list_items(self, active_only: bool = True) -> list[BudgetCatalogItem]:
        """Catalog entries ordered by code."""
        stmt = select(BudgetCatalogItem)
        if active_only:
            stmt = stmt.where(BudgetCatalogItem.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt.order_by(BudgetCatalogItem.item_code))
        return list(result.scalars().all())

    async def get_by_code(self, item_code: str) -> BudgetCatalogItem | None:
        """Catalog entry by item code."""
        result = await self.session.execute(
            select(BudgetCatalogItem).where(BudgetCatalogItem.item_code == item_code)
        )
        return result.scalar_one_or_none()
