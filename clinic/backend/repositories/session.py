"""
Session Repositories.

Data access for therapy sessions, session notes and goal assessments.
"""

from datetime import date, datetime, time, timedelta

from sqlalchemy import Select, func, select

from clinic.backend.models.session import GoalAssessment, SessionNote, TherapySession
from clinic.backend.repositories.base import BaseRepository


def _in_date_range(stmt: Select, start: date | None, end: date | None) -> Select:
    """Restrict to sessions held on or after start and on or before end."""
    if start:
        stmt = stmt.where(TherapySession.session_date >= datetime.combine(start, time.min))
    if end:
        stmt = stmt.where(
            TherapySession.session_date < datetime.combine(end + timedelta(days=1), time.min)
        )
    return stmt


class SessionRepository(BaseRepository[TherapySession]):
    """Repository for TherapySession model."""

    model = TherapySession

    def _filtered(self, stmt: Select, client_id: str | None, status: str | None) -> Select:
        if client_id:
            stmt = stmt.where(TherapySession.client_id == client_id)
        if status:
            stmt = stmt.where(TherapySession.status == status)
        return stmt

    async def list_sessions(
        self,
        client_id: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[TherapySession]:
        """Sessions, newest first, optionally filtered by client and status."""
        stmt = self._filtered(select(TherapySession), client_id, status)
        result = await self.session.execute(
            stmt.order_by(TherapySession.session_date.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def count_sessions(
        self,
        client_id: str | None = None,
        status: str | None = None,
    ) -> int:
        """Count sessions matching the same filters as list_sessions."""
        stmt = self._filtered(
            select(func.count()).select_from(TherapySession), client_id, status
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def list_in_range(
        self,
        client_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[TherapySession]:
        """A client's sessions held between two dates (inclusive), oldest first."""
        stmt = _in_date_range(
            select(TherapySession).where(TherapySession.client_id == client_id), start, end
        )
        result = await self.session.execute(stmt.order_by(TherapySession.session_date))
        return list(result.scalars().all())


class SessionNoteRepository(BaseRepository[SessionNote]):
    """Repository for SessionNote model."""

    model = SessionNote

    async def get_for_session(self, session_id: str) -> SessionNote | None:
        """The note of a session, if one has been written."""
        result = await self.session.execute(
            select(SessionNote).where(SessionNote.session_id == session_id)
        )
        return result.scalar_one_or_none()

    async def list_for_client(
        self,
        client_id: str,
        status: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[tuple[SessionNote, TherapySession]]:
        """
        Notes of a client's sessions paired with their session.

        Args:
            client_id: Client whose notes to load
            status: Only notes with this status (e.g. "completed")
            start: Only sessions held on or after this date
            end: Only sessions held on or before this date

        Returns:
            (note, session) pairs ordered by session date
        """
        stmt = (
            select(SessionNote, TherapySession)
            .join(TherapySession, SessionNote.session_id == TherapySession.id)
            .where(TherapySession.client_id == client_id)
        )
        if status:
            stmt = stmt.where(SessionNote.status == status)
        stmt = _in_date_range(stmt, start, end)
        result = await self.session.execute(stmt.order_by(TherapySession.session_date))
        return [(row[0], row[1]) for row in result.all()]


class GoalAssessmentRepository(BaseRepository[GoalAssessment]):
    """Repository for GoalAssessment model."""

    model = GoalAssessment

    async def list_for_note(self, session_note_id: str) -> list[GoalAssessment]:
        """Assessments recorded in a session note."""
        result = await self.session.execute(
            select(GoalAssessment)
            .where(GoalAssessment.session_note_id == session_note_id)
            .order_by(GoalAssessment.created_at)
        )
        return list(result.scalars().all())

    async def list_for_client(
        self,
        client_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[GoalAssessment]:
        """Assessments from notes of a client's sessions held between two dates."""
        stmt = _in_date_range(
            select(GoalAssessment)
            .join(SessionNote, GoalAssessment.session_note_id == SessionNote.id)
            .join(TherapySession, SessionNote.session_id == TherapySession.id)
            .where(TherapySession.client_id == client_id),
            start,
            end,
        )
        result = await self.session.execute(
            stmt.order_by(TherapySession.session_date, GoalAssessment.created_at)
        )
        return list(result.scalars().all())
