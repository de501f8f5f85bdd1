"""
Client Repositories.

Data access for clients and allies.
"""

from sqlalchemy import Select, func, select, update

from clinic.backend.models.client import Ally, Client
from clinic.backend.models.session import TherapySession
from clinic.backend.repositories.base import BaseRepository


def _contains_pattern(text: str) -> str:
    """LIKE pattern matching text literally anywhere in the value."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ClientRepository(BaseRepository[Client]):
    """Repository for Client model."""

    model = Client

    def _filtered(self, stmt: Select, include_incomplete: bool, query: str | None) -> Select:
        if not include_incomplete:
            stmt = stmt.where(Client.onboarding_status == "complete")
        if query:
            stmt = stmt.where(Client.name.ilike(_contains_pattern(query), escape="\\"))
        return stmt

    async def list_clients(
        self,
        include_incomplete: bool = False,
        query: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Client]:
        """
        List clients ordered by name.

        Args:
            include_incomplete: Include clients whose onboarding is not complete
            query: Case-insensitive name filter
            limit: Maximum number of clients to return
            offset: Number of clients to skip
        """
        stmt = self._filtered(select(Client), include_incomplete, query)
        result = await self.session.execute(
            stmt.order_by(Client.name).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def count_clients(
        self,
        include_incomplete: bool = False,
        query: str | None = None,
    ) -> int:
        """Count clients matching the same filters as list_clients."""
        stmt = self._filtered(
            select(func.count()).select_from(Client), include_incomplete, query
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()


class AllyRepository(BaseRepository[Ally]):
    """Repository for Ally model."""

    model = Ally

    async def list_for_client(
        self,
        client_id: str,
        include_archived: bool = False,
    ) -> list[Ally]:
        """Allies of a client, active ones only unless include_archived."""
        stmt = select(Ally).where(Ally.client_id == client_id)
        if not include_archived:
            stmt = stmt.where(Ally.is_archived == False)  # noqa: E712
        result = await self.session.execute(stmt.order_by(Ally.name))
        return list(result.scalars().all())

    async def archive(self, id: str) -> Ally:
        """Archive an ally."""
        return await self.update(id, is_archived=True)

    async def unarchive(self, id: str) -> Ally:
        """Restore an archived ally."""
        return await self.update(id, is_archived=False)

    async def detach_from_sessions(self, id: str) -> None:
        """Clear the therapist of every session run by this ally."""
        await self.session.execute(
            update(TherapySession)
            .where(TherapySession.therapist_id == id)
            .values(therapist_id=None)
            .execution_options(synchronize_session="fetch")
        )
