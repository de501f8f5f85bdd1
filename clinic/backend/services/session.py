"""
Session Services.

Business logic for therapy sessions, their notes and goal assessments.

A session has at most one note. Product lines on a note must reference items
of the client's active budget plan; completed notes drive the plan's used
quantities.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from clinic.backend.core.config import get_app_config
from clinic.backend.core.exceptions import ConflictError, NotFoundError, ValidationError
from clinic.backend.core.utils import to_naive_utc
from clinic.backend.models.session import GoalAssessment, SessionNote, TherapySession
from clinic.backend.repositories.budget import BudgetItemRepository, BudgetPlanRepository
from clinic.backend.repositories.client import AllyRepository, ClientRepository
from clinic.backend.repositories.goal import GoalRepository, SubgoalRepository
from clinic.backend.repositories.session import (
    GoalAssessmentRepository,
    SessionNoteRepository,
    SessionRepository,
)
from clinic.backend.schemas.session import (
    GoalAssessmentCreate,
    GoalAssessmentUpdate,
    ProductLine,
    SessionCreate,
    SessionNoteCreate,
    SessionNoteUpdate,
    SessionUpdate,
)
from clinic.backend.services.base import BaseService
from clinic.backend.services.budget import BudgetService


class SessionService(BaseService):
    """Service for therapy sessions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = SessionRepository(session)
        self.client_repo = ClientRepository(session)
        self.ally_repo = AllyRepository(session)

    async def _check_therapist(self, client_id: str, therapist_id: str) -> None:
        ally = await self.ally_repo.get_by_id_or_none(therapist_id)
        if ally is None or ally.client_id != client_id:
            raise ValidationError(
                "Therapist must be an ally of the session's client",
                details={"therapist_id": therapist_id},
            )
        if ally.is_archived:
            raise ValidationError(
                "Therapist ally is archived",
                details={"therapist_id": therapist_id},
            )

    async def create_session(self, data: SessionCreate) -> TherapySession:
        """
        Schedule a session for a client.

        Raises:
            NotFoundError: If client not found
            ValidationError: If the therapist is not an active ally of the client
        """
        await self.client_repo.get_by_id(data.client_id)
        if data.therapist_id:
            await self._check_therapist(data.client_id, data.therapist_id)

        self._log_operation("Creating session", client_id=data.client_id, status=data.status)

        values = data.model_dump()
        values["session_date"] = to_naive_utc(data.session_date)
        therapy_session = await self._execute_db_operation(
            "create_session",
            self.repo.create(**values),
        )
        self._log_debug("Session created", session_id=therapy_session.id)
        return therapy_session

    async def get_session(self, session_id: str) -> TherapySession:
        """Get a session by ID."""
        return await self.repo.get_by_id(session_id)

    async def list_sessions_paginated(
        self,
        client_id: str | None = None,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[TherapySession], int]:
        """
        List sessions, newest first, with total count for pagination.

        Args:
            client_id: Only sessions of this client
            status: Only sessions with this status
            limit: Maximum number of sessions
            offset: Number to skip for pagination
        """
        sessions = await self.repo.list_sessions(
            client_id=client_id,
            status=status,
            limit=limit,
            offset=offset,
        )
        total = await self.repo.count_sessions(client_id=client_id, status=status)
        return sessions, total

    async def update_session(self, session_id: str, data: SessionUpdate) -> TherapySession:
        """
        Update a session.

        Raises:
            NotFoundError: If session not found
            ValidationError: If a required field is null or the therapist is invalid
        """
        update_data = self._update_payload(
            data,
            required=("title", "session_date", "duration", "status"),
        )
        therapy_session = await self.repo.get_by_id(session_id)
        if not update_data:
            return therapy_session

        if update_data.get("therapist_id"):
            await self._check_therapist(therapy_session.client_id, update_data["therapist_id"])
        if "session_date" in update_data:
            update_data["session_date"] = to_naive_utc(update_data["session_date"])

        self._log_operation("Updating session", session_id=session_id, fields=list(update_data))
        return await self._execute_db_operation(
            "update_session",
            self.repo.update(session_id, **update_data),
        )

    async def delete_session(self, session_id: str) -> None:
        """Delete a session together with its note and assessments."""
        therapy_session = await self.repo.get_by_id(session_id)
        client_id = therapy_session.client_id

        self._log_operation("Deleting session", session_id=session_id)
        await self._execute_db_operation("delete_session", self.repo.delete(session_id))
        await _auto_reconcile(self.session, client_id)


async def _auto_reconcile(session: AsyncSession, client_id: str) -> None:
    """Recompute budget usage after note changes when the feature is enabled."""
    if get_app_config().features.budget_auto_reconcile:
        await BudgetService(session).reconcile_usage(client_id)


class SessionNoteService(BaseService):
    """Service for session notes and the goal assessments inside them."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = SessionNoteRepository(session)
        self.session_repo = SessionRepository(session)
        self.client_repo = ClientRepository(session)
        self.assessment_repo = GoalAssessmentRepository(session)
        self.goal_repo = GoalRepository(session)
        self.subgoal_repo = SubgoalRepository(session)
        self.plan_repo = BudgetPlanRepository(session)
        self.item_repo = BudgetItemRepository(session)

    async def _check_products(self, client_id: str, products: list[ProductLine]) -> None:
        """Every product line must reference an item of the client's active plan."""
        if not products:
            return

        plan = await self.plan_repo.get_active(client_id)
        if plan is None:
            raise ValidationError(
                "Client has no active budget plan to bill products against",
                details={"client_id": client_id},
            )

        plan_codes = {item.item_code for item in await self.item_repo.list_for_plan(plan.id)}
        unknown = sorted({line.item_code for line in products} - plan_codes)
        if unknown:
            raise ValidationError(
                "Products are not part of the active budget plan",
                details={"unknown_item_codes": unknown},
            )

    async def create_note(self, session_id: str, data: SessionNoteCreate) -> SessionNote:
        """
        Write the note for a session.

        Raises:
            NotFoundError: If session not found
            ConflictError: If the session already has a note
            ValidationError: If a product is not in the active budget plan
        """
        therapy_session = await self.session_repo.get_by_id(session_id)
        if await self.repo.get_for_session(session_id) is not None:
            raise ConflictError("Session already has a note")

        await self._check_products(therapy_session.client_id, data.products)
        self._log_operation(
            "Creating session note",
            session_id=session_id,
            status=data.status,
            product_count=len(data.products),
        )

        note = await self._execute_db_operation(
            "create_session_note",
            self.repo.create(session_id=session_id, **data.model_dump()),
            conflict_message="Session already has a note",
        )
        await _auto_reconcile(self.session, therapy_session.client_id)
        self._log_debug("Session note created", note_id=note.id)
        return note

    async def get_note(self, note_id: str) -> SessionNote:
        """Get a session note by ID."""
        return await self.repo.get_by_id(note_id)

    async def get_note_for_session(self, session_id: str) -> SessionNote:
        """
        Get the note of a session.

        Raises:
            NotFoundError: If the session or its note does not exist
        """
        await self.session_repo.get_by_id(session_id)
        note = await self.repo.get_for_session(session_id)
        if note is None:
            raise NotFoundError("Session note not found")
        return note

    async def get_complete_note(
        self,
        session_id: str,
    ) -> tuple[SessionNote, list[GoalAssessment]]:
        """The note of a session together with its goal assessments."""
        note = await self.get_note_for_session(session_id)
        assessments = await self.assessment_repo.list_for_note(note.id)
        return note, assessments

    async def list_client_notes(
        self,
        client_id: str,
        status: str | None = None,
    ) -> list[SessionNote]:
        """
        List the notes of a client's sessions in session order.

        Raises:
            NotFoundError: If client not found
        """
        await self.client_repo.get_by_id(client_id)
        pairs = await self.repo.list_for_client(client_id, status=status)
        return [note for note, _ in pairs]

    async def update_note(self, note_id: str, data: SessionNoteUpdate) -> SessionNote:
        """
        Update a session note.

        Raises:
            NotFoundError: If note not found
            ValidationError: If a required field is null or a product is unknown
        """
        update_data = self._update_payload(
            data,
            required=("present_allies", "products", "status"),
        )
        note = await self.repo.get_by_id(note_id)
        if not update_data:
            return note

        therapy_session = await self.session_repo.get_by_id(note.session_id)
        if data.products is not None:
            await self._check_products(therapy_session.client_id, data.products)

        self._log_operation("Updating session note", note_id=note_id, fields=list(update_data))
        note = await self._execute_db_operation(
            "update_session_note",
            self.repo.update(note_id, **update_data),
        )
        await _auto_reconcile(self.session, therapy_session.client_id)
        return note

    async def delete_note(self, note_id: str) -> None:
        """Delete a session note with its assessments."""
        note = await self.repo.get_by_id(note_id)
        therapy_session = await self.session_repo.get_by_id(note.session_id)

        self._log_operation("Deleting session note", note_id=note_id)
        await self._execute_db_operation("delete_session_note", self.repo.delete(note_id))
        await _auto_reconcile(self.session, therapy_session.client_id)

    # -------------------------------------------------------------------------
    # Goal assessments
    # -------------------------------------------------------------------------

    async def create_assessment(
        self,
        note_id: str,
        data: GoalAssessmentCreate,
    ) -> GoalAssessment:
        """
        Assess a goal in a session note.

        Raises:
            NotFoundError: If note not found
            ValidationError: If the goal is not the client's, or the subgoal
                does not belong to the goal
        """
        note = await self.repo.get_by_id(note_id)
        therapy_session = await self.session_repo.get_by_id(note.session_id)

        goal = await self.goal_repo.get_by_id_or_none(data.goal_id)
        if goal is None or goal.client_id != therapy_session.client_id:
            raise ValidationError(
                "Goal does not belong to the session's client",
                details={"goal_id": data.goal_id},
            )
        if data.subgoal_id:
            subgoal = await self.subgoal_repo.get_by_id_or_none(data.subgoal_id)
            if subgoal is None or subgoal.goal_id != goal.id:
                raise ValidationError(
                    "Subgoal does not belong to the goal",
                    details={"subgoal_id": data.subgoal_id},
                )

        self._log_operation("Creating goal assessment", note_id=note_id, goal_id=goal.id)
        assessment = await self._execute_db_operation(
            "create_goal_assessment",
            self.assessment_repo.create(session_note_id=note_id, **data.model_dump()),
        )
        self._log_debug("Goal assessment created", assessment_id=assessment.id)
        return assessment

    async def list_assessments(self, note_id: str) -> list[GoalAssessment]:
        """
        List the assessments of a note.

        Raises:
            NotFoundError: If note not found
        """
        await self.repo.get_by_id(note_id)
        return await self.assessment_repo.list_for_note(note_id)

    async def update_assessment(
        self,
        assessment_id: str,
        data: GoalAssessmentUpdate,
    ) -> GoalAssessment:
        """Update a goal assessment."""
        update_data = self._update_payload(data, required=("achievement_level", "strategies"))
        if not update_data:
            return await self.assessment_repo.get_by_id(assessment_id)

        self._log_operation(
            "Updating goal assessment",
            assessment_id=assessment_id,
            fields=list(update_data),
        )
        return await self._execute_db_operation(
            "update_goal_assessment",
            self.assessment_repo.update(assessment_id, **update_data),
        )

    async def delete_assessment(self, assessment_id: str) -> None:
        """Delete a goal assessment."""
        self._log_operation("Deleting goal assessment", assessment_id=assessment_id)
        await self._execute_db_operation(
            "delete_goal_assessment",
            self.assessment_repo.delete(assessment_id),
        )
