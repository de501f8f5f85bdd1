"""
Catalog Service.

Business logic for the budget catalog: the clinic-wide list of billable
products with their default prices.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from clinic.backend.core.exceptions import ConflictError, NotFoundError
from clinic.backend.models.budget import BudgetCatalogItem
from clinic.backend.repositories.budget import BudgetCatalogRepository
from clinic.backend.schemas.budget import CatalogItemCreate, CatalogItemUpdate
from clinic.backend.services.base import BaseService


class CatalogService(BaseService):
    """Service for budget catalog entries, addressed by item code."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = BudgetCatalogRepository(session)

    async def create_item(self, data: CatalogItemCreate) -> BudgetCatalogItem:
        """
        Add a catalog entry.

        Raises:
            ConflictError: If the item code is already cataloged
        """
        if await self.repo.get_by_code(data.item_code) is not None:
            raise ConflictError(f"Catalog item {data.item_code} already exists")

        self._log_operation("Creating catalog item", item_code=data.item_code)
        return await self._execute_db_operation(
            "create_catalog_item",
            self.repo.create(**data.model_dump()),
            conflict_message=f"Catalog item {data.item_code} already exists",
        )

    async def list_items(self, active_only: bool = True) -> list[BudgetCatalogItem]:
        """List catalog entries ordered by item code."""
        return await self.repo.list_items(active_only=active_only)

    async def get_item(self, item_code: str) -> BudgetCatalogItem:
        """
        Get a catalog entry by item code.

        Raises:
            NotFoundError: If the code is not cataloged
        """
        item = await self.repo.get_by_code(item_code)
        if item is None:
            raise NotFoundError("Catalog item not found")
        return item

    async def update_item(self, item_code: str, data: CatalogItemUpdate) -> BudgetCatalogItem:
        """Update a catalog entry. Existing plan items keep their own prices."""
        update_data = self._update_payload(
            data,
            required=("description", "default_unit_price", "is_active"),
        )
        item = await self.get_item(item_code)
        if not update_data:
            return item

        self._log_operation("Updating catalog item", item_code=item_code, fields=list(update_data))
        return await self._execute_db_operation(
            "update_catalog_item",
            self.repo.update(item.id, **update_data),
        )
