"""
Client Service.

Business logic for clients and their allies.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from clinic.backend.core.exceptions import ValidationError
from clinic.backend.models.client import Ally, Client
from clinic.backend.repositories.client import AllyRepository, ClientRepository
from clinic.backend.schemas.client import AllyCreate, AllyUpdate, ClientCreate, ClientUpdate
from clinic.backend.services.base import BaseService


class ClientService(BaseService):
    """
    Service for client records.

    Deleting a client removes everything recorded for them: allies, goals,
    sessions with their notes, and budget plans.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = ClientRepository(session)

    async def create_client(self, data: ClientCreate) -> Client:
        """
        Create a new client.

        Args:
            data: Client creation data

        Returns:
            Created client
        """
        self._log_operation("Creating client", onboarding_status=data.onboarding_status)

        client = await self._execute_db_operation(
            "create_client",
            self.repo.create(**data.model_dump()),
        )

        self._log_debug("Client created", client_id=client.id)
        return client

    async def get_client(self, client_id: str) -> Client:
        """
        Get a client by ID.

        Raises:
            NotFoundError: If client not found
        """
        return await self.repo.get_by_id(client_id)

    async def list_clients_paginated(
        self,
        include_incomplete: bool = False,
        query: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Client], int]:
        """
        List clients with total count for pagination.

        Args:
            include_incomplete: Include clients still being onboarded
            query: Case-insensitive name filter
            limit: Maximum number of clients
            offset: Number to skip for pagination

        Returns:
            Tuple of (clients list, total count)
        """
        clients = await self.repo.list_clients(
            include_incomplete=include_incomplete,
            query=query,
            limit=limit,
            offset=offset,
        )
        total = await self.repo.count_clients(include_incomplete=include_incomplete, query=query)
        return clients, total

    async def update_client(self, client_id: str, data: ClientUpdate) -> Client:
        """
        Update an existing client.

        Args:
            client_id: Client ID to update
            data: Update data (only supplied fields are updated)

        Raises:
            NotFoundError: If client not found
            ValidationError: If name or onboarding_status is explicitly null
        """
        update_data = self._update_payload(data, required=("name", "onboarding_status"))
        if not update_data:
            return await self.get_client(client_id)

        self._log_operation("Updating client", client_id=client_id, fields=list(update_data))
        return await self._execute_db_operation(
            "update_client",
            self.repo.update(client_id, **update_data),
        )

    async def complete_onboarding(self, client_id: str) -> Client:
        """Mark a client's onboarding complete so they appear in client lists."""
        self._log_operation("Completing onboarding", client_id=client_id)
        return await self._execute_db_operation(
            "complete_onboarding",
            self.repo.update(client_id, onboarding_status="complete"),
        )

    async def delete_client(self, client_id: str) -> None:
        """
        Delete a client and all dependent records.

        Raises:
            NotFoundError: If client not found
        """
        self._log_operation("Deleting client", client_id=client_id)
        await self._execute_db_operation(
            "delete_client",
            self.repo.delete(client_id),
        )


class AllyService(BaseService):
    """Service for a client's allies."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = AllyRepository(session)
        self.client_repo = ClientRepository(session)

    async def create_ally(self, client_id: str, data: AllyCreate) -> Ally:
        """
        Add an ally to a client.

        Raises:
            NotFoundError: If client not found
        """
        await self.client_repo.get_by_id(client_id)
        self._log_operation("Creating ally", client_id=client_id)

        ally = await self._execute_db_operation(
            "create_ally",
            self.repo.create(client_id=client_id, **data.model_dump()),
        )
        self._log_debug("Ally created", ally_id=ally.id)
        return ally

    async def list_allies(self, client_id: str, include_archived: bool = False) -> list[Ally]:
        """
        List a client's allies.

        Raises:
            NotFoundError: If client not found
        """
        await self.client_repo.get_by_id(client_id)
        return await self.repo.list_for_client(client_id, include_archived=include_archived)

    async def get_ally(self, ally_id: str) -> Ally:
        """Get an ally by ID."""
        return await self.repo.get_by_id(ally_id)

    async def update_ally(self, ally_id: str, data: AllyUpdate) -> Ally:
        """
        Update an ally.

        Raises:
            NotFoundError: If ally not found
            ValidationError: If the update would leave the ally without any access
        """
        update_data = self._update_payload(
            data,
            required=("name", "access_therapeutics", "access_financials", "is_archived"),
        )
        ally = await self.repo.get_by_id(ally_id)
        if not update_data:
            return ally

        therapeutics = update_data.get("access_therapeutics", ally.access_therapeutics)
        financials = update_data.get("access_financials", ally.access_financials)
        if not (therapeutics or financials):
            raise ValidationError(
                "An ally needs therapeutic or financial access",
                details={"fields": ["access_therapeutics", "access_financials"]},
            )

        self._log_operation("Updating ally", ally_id=ally_id, fields=list(update_data))
        return await self._execute_db_operation(
            "update_ally",
            self.repo.update(ally_id, **update_data),
        )

    async def archive_ally(self, ally_id: str) -> Ally:
        """Archive an ally. Archived allies cannot be assigned to new sessions."""
        self._log_operation("Archiving ally", ally_id=ally_id)
        return await self.repo.archive(ally_id)

    async def unarchive_ally(self, ally_id: str) -> Ally:
        """Restore an archived ally."""
        self._log_operation("Unarchiving ally", ally_id=ally_id)
        return await self.repo.unarchive(ally_id)

    async def delete_ally(self, ally_id: str) -> None:
        """Permanently delete an ally. Sessions they ran keep no therapist."""
        self._log_operation("Deleting ally", ally_id=ally_id)
        await self.repo.get_by_id(ally_id)
        await self.repo.detach_from_sessions(ally_id)
        await self._execute_db_operation(
            "delete_ally",
            self.repo.delete(ally_id),
        )
