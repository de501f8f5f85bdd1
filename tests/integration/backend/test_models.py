"""
Integration Tests for Models and Database Fixtures.

Tests table constraints against a real database. They also document how
the db_session fixture is used.
"""

from datetime import date, datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.backend.models import (
    BudgetItem,
    BudgetPlan,
    Client,
    SessionNote,
    TherapySession,
)


async def _client(db_session: AsyncSession, name: str = "Ava Thompson") -> Client:
    client = Client(name=name)
    db_session.add(client)
    await db_session.flush()
    return client


async def _session(db_session: AsyncSession, client: Client) -> TherapySession:
    therapy_session = TherapySession(
        client_id=client.id,
        title="Articulation therapy",
        session_date=datetime(2024, 3, 5, 10, 0),
        duration=60,
    )
    db_session.add(therapy_session)
    await db_session.flush()
    return therapy_session


class TestMixins:
    """Tests for UUIDMixin and TimestampMixin."""

    @pytest.mark.asyncio
    async def test_generates_uuid_and_timestamps(self, db_session: AsyncSession):
        client = await _client(db_session)

        assert len(client.id) == 36
        assert client.created_at is not None
        assert client.updated_at is not None
        assert client.onboarding_status == "incomplete"

    @pytest.mark.asyncio
    async def test_uuid_is_unique(self, db_session: AsyncSession):
        first = await _client(db_session, "Ava")
        second = await _client(db_session, "Ben")

        assert first.id != second.id


class TestDatabaseIsolation:
    """Tests that each test gets a clean database."""

    @pytest.mark.asyncio
    async def test_first_test_creates_client(self, db_session: AsyncSession):
        await _client(db_session, "Isolation Test")

        result = await db_session.execute(select(func.count()).select_from(Client))
        assert result.scalar_one() == 1

    @pytest.mark.asyncio
    async def test_second_test_has_clean_database(self, db_session: AsyncSession):
        result = await db_session.execute(select(func.count()).select_from(Client))
        assert result.scalar_one() == 0


class TestConstraints:
    """Tests for table constraints."""

    @pytest.mark.asyncio
    async def test_one_note_per_session(self, db_session: AsyncSession):
        client = await _client(db_session)
        therapy_session = await _session(db_session, client)
        db_session.add(SessionNote(session_id=therapy_session.id))
        await db_session.flush()

        db_session.add(SessionNote(session_id=therapy_session.id))
        with pytest.raises(IntegrityError):
            await db_session.flush()

    @pytest.mark.asyncio
    async def test_item_code_unique_within_plan(self, db_session: AsyncSession):
        client = await _client(db_session)
        plan = BudgetPlan(client_id=client.id, total_funds=1000, start_date=date(2024, 1, 1))
        db_session.add(plan)
        await db_session.flush()

        db_session.add(BudgetItem(plan_id=plan.id, item_code="SPEECH-1H", unit_price=150, quantity=1))
        await db_session.flush()

        db_session.add(BudgetItem(plan_id=plan.id, item_code="SPEECH-1H", unit_price=150, quantity=2))
        with pytest.raises(IntegrityError):
            await db_session.flush()

    @pytest.mark.asyncio
    async def test_foreign_keys_enforced(self, db_session: AsyncSession):
        db_session.add(
            TherapySession(
                client_id="no-such-client",
                title="Orphan",
                session_date=datetime(2024, 3, 5),
                duration=30,
            )
        )

        with pytest.raises(IntegrityError):
            await db_session.flush()


class TestSavepoints:
    """Tests for the nested transactions data queries run in."""

    @pytest.mark.asyncio
    async def test_rolled_back_savepoint_discards_writes(self, db_session: AsyncSession):
        await _client(db_session, "Ava")

        savepoint = await db_session.begin_nested()
        db_session.add(Client(name="Ben"))
        await db_session.flush()
        await savepoint.rollback()

        result = await db_session.execute(select(Client.name))
        assert result.scalars().all() == ["Ava"]
