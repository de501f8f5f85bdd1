"""
Report Service.

Performance reports for a client: details with allies, budget key metrics,
average session observations, session completion, strategy usage and goal
achievement. Everything is aggregated from stored notes and assessments;
an optional date range limits the session-based parts.
"""

from collections import defaultdict
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from clinic.backend.core.config import get_app_config
from clinic.backend.core.exceptions import ValidationError
from clinic.backend.core.utils import utc_today
from clinic.backend.models.goal import Goal, Subgoal
from clinic.backend.models.session import GoalAssessment, SessionNote, TherapySession
from clinic.backend.repositories.budget import BudgetItemRepository, BudgetPlanRepository
from clinic.backend.repositories.client import AllyRepository, ClientRepository
from clinic.backend.repositories.goal import GoalRepository, SubgoalRepository
from clinic.backend.repositories.session import (
    GoalAssessmentRepository,
    SessionNoteRepository,
    SessionRepository,
)
from clinic.backend.schemas.report import (
    ClientDetailsReport,
    ClientReportResponse,
    GoalScore,
    KeyMetricsReport,
    ObservationsReport,
    ReportAlly,
    SessionStatsReport,
    StrategyUsage,
)
from clinic.backend.services.base import BaseService
from clinic.backend.services.budget_projection import resolve_plan_dates

OBSERVATION_RATINGS = {
    "mood": "mood_rating",
    "physical_activity": "physical_activity_rating",
    "focus": "focus_rating",
    "cooperation": "cooperation_rating",
}

# Weight of a subgoal towards its goal's progress
SUBGOAL_WEIGHTS = {"completed": 1.0, "in_progress": 0.5, "in-progress": 0.5}


def _average(values: list[float]) -> float | None:
    return round(sum(values) / len(values), 2) if values else None


def _percentage(part: int, total: int) -> float:
    return round(part / total * 100, 2) if total else 0.0


def age_on(date_of_birth: date | None, today: date) -> int | None:
    """Age in whole years on the given day."""
    if date_of_birth is None:
        return None
    before_birthday = (today.month, today.day) < (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - before_birthday


def observation_averages(notes: list[SessionNote]) -> ObservationsReport:
    """Average each rating over the notes that record it."""
    averages = {}
    for name, column in OBSERVATION_RATINGS.items():
        values = [getattr(note, column) for note in notes]
        averages[name] = _average([value for value in values if value is not None])
    return ObservationsReport(**averages, note_count=len(notes))


def session_stats(sessions: list[TherapySession]) -> SessionStatsReport:
    total = len(sessions)
    completed = sum(1 for s in sessions if s.status == "completed")
    draft = total - completed
    return SessionStatsReport(
        total=total,
        completed=completed,
        draft=draft,
        completed_percentage=_percentage(completed, total),
        draft_percentage=_percentage(draft, total),
    )


def strategy_usage(assessments: list[GoalAssessment]) -> list[StrategyUsage]:
    """
    Strategies named in assessments, most used first.

    A strategy counts once per assessment; its average achievement is the
    mean achievement level of the assessments that used it.
    """
    levels: dict[str, list[int]] = defaultdict(list)
    for assessment in assessments:
        names = {name.strip() for name in assessment.strategies or [] if name and name.strip()}
        for name in names:
            levels[name].append(assessment.achievement_level)

    usage = [
        StrategyUsage(
            name=name,
            times_used=len(values),
            average_achievement=round(sum(values) / len(values), 2),
        )
        for name, values in levels.items()
    ]
    usage.sort(key=lambda s: (-s.times_used, s.name))
    return usage


def subgoal_progress(subgoals: list[Subgoal]) -> float:
    """Progress on a 0-10 scale from subgoal statuses."""
    done = sum(SUBGOAL_WEIGHTS.get(subgoal.status, 0.0) for subgoal in subgoals)
    return min(10.0, round(done / (len(subgoals) or 1) * 10, 1))


def goal_scores(
    goals: list[Goal],
    subgoals_by_goal: dict[str, list[Subgoal]],
    assessments: list[GoalAssessment],
) -> list[GoalScore]:
    """Goals ranked by average achievement; unassessed goals last."""
    levels: dict[str, list[int]] = defaultdict(list)
    for assessment in assessments:
        levels[assessment.goal_id].append(assessment.achievement_level)

    scores = [
        GoalScore(
            id=goal.id,
            title=goal.title,
            status=goal.status,
            achievement_score=_average(levels[goal.id]),
            assessment_count=len(levels[goal.id]),
            subgoal_progress=subgoal_progress(subgoals_by_goal.get(goal.id, [])),
        )
        for goal in goals
    ]
    scores.sort(
        key=lambda g: (g.achievement_score is None, -(g.achievement_score or 0), g.title)
    )
    return scores


class ReportService(BaseService):
    """Service for client performance reports."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.client_repo = ClientRepository(session)
        self.ally_repo = AllyRepository(session)
        self.session_repo = SessionRepository(session)
        self.note_repo = SessionNoteRepository(session)
        self.assessment_repo = GoalAssessmentRepository(session)
        self.goal_repo = GoalRepository(session)
        self.subgoal_repo = SubgoalRepository(session)
        self.plan_repo = BudgetPlanRepository(session)
        self.item_repo = BudgetItemRepository(session)

    @staticmethod
    def _check_range(start_date: date | None, end_date: date | None) -> None:
        if start_date and end_date and end_date < start_date:
            raise ValidationError(
                "end_date must not be before start_date",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )

    async def _key_metrics(self, client_id: str, today: date) -> KeyMetricsReport:
        plan = await self.plan_repo.get_active(client_id)
        if plan is None:
            return KeyMetricsReport(
                has_active_plan=False,
                spending_deviation=0.0,
                plan_expiration_days=0,
            )

        items = await self.item_repo.list_for_plan(plan.id)
        planned = sum(item.unit_price * item.quantity for item in items)
        _, end = resolve_plan_dates(
            plan.start_date,
            plan.end_date,
            plan.created_at.date() if plan.created_at else None,
            today,
            default_months=get_app_config().budget.default_plan_months,
        )
        return KeyMetricsReport(
            has_active_plan=True,
            spending_deviation=round(planned - float(plan.total_funds or 0), 2),
            plan_expiration_days=max(0, (end - today).days),
        )

    async def performance_report(
        self,
        client_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
        today: date | None = None,
    ) -> ClientReportResponse:
        """
        Build the performance report of a client.

        Args:
            client_id: Client to report on
            start_date: Only sessions held on or after this date
            end_date: Only sessions held on or before this date
            today: Reference date for age and plan expiration

        Raises:
            NotFoundError: If the client does not exist
            ValidationError: If end_date is before start_date
        """
        self._check_range(start_date, end_date)
        client = await self.client_repo.get_by_id(client_id)
        today = today or utc_today()

        allies = await self.ally_repo.list_for_client(client_id)
        sessions = await self.session_repo.list_in_range(client_id, start_date, end_date)
        notes = [
            note
            for note, _ in await self.note_repo.list_for_client(
                client_id, start=start_date, end=end_date
            )
        ]
        assessments = await self.assessment_repo.list_for_client(client_id, start_date, end_date)
        goals = await self.goal_repo.list_for_client(client_id)
        subgoals_by_goal = {goal.id: await self.subgoal_repo.list_for_goal(goal.id) for goal in goals}

        report = ClientReportResponse(
            start_date=start_date,
            end_date=end_date,
            client=ClientDetailsReport(
                id=client.id,
                name=client.name,
                age=age_on(client.date_of_birth, today),
                funds_management=client.funds_management,
                allies=[
                    ReportAlly(
                        name=ally.name,
                        relationship=ally.relationship,
                        preferred_language=ally.preferred_language,
                    )
                    for ally in allies
                ],
            ),
            key_metrics=await self._key_metrics(client_id, today),
            observations=observation_averages(notes),
            sessions=session_stats(sessions),
            strategies=strategy_usage(assessments),
            goals=goal_scores(goals, subgoals_by_goal, assessments),
        )
        self._log_debug(
            "Performance report built",
            client_id=client_id,
            sessions=report.sessions.total,
            assessments=len(assessments),
        )
        return report

    async def strategy_report(
        self,
        client_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[StrategyUsage]:
        """
        Strategy usage of a client, for drilling into the report.

        Raises:
            NotFoundError: If the client does not exist
            ValidationError: If end_date is before start_date
        """
        self._check_range(start_date, end_date)
        await self.client_repo.get_by_id(client_id)
        assessments = await self.assessment_repo.list_for_client(client_id, start_date, end_date)
        return strategy_usage(assessments)
