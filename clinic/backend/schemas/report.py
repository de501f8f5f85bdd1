"""
Report Schemas.

Response schemas for client performance reports.
"""

from datetime import date

from pydantic import BaseModel, Field


class ReportAlly(BaseModel):
    name: str
    relationship: str | None
    preferred_language: str | None


class ClientDetailsReport(BaseModel):
    id: str
    name: str
    age: int | None = Field(description="Age in whole years; null without a date of birth")
    funds_management: str | None
    allies: list[ReportAlly]


class KeyMetricsReport(BaseModel):
    """Budget figures of the client's active plan."""

    has_active_plan: bool
    spending_deviation: float = Field(
        description="Value of the plan's items minus its total funds; negative is under budget"
    )
    plan_expiration_days: int = Field(description="Days until the plan ends, 0 once ended")


class ObservationsReport(BaseModel):
    """Average session note ratings; null where no note carries the rating."""

    mood: float | None
    physical_activity: float | None
    focus: float | None
    cooperation: float | None
    note_count: int


class SessionStatsReport(BaseModel):
    total: int
    completed: int
    draft: int
    completed_percentage: float
    draft_percentage: float


class StrategyUsage(BaseModel):
    """How often a strategy was used in goal assessments and how those went."""

    name: str
    times_used: int
    average_achievement: float


class GoalScore(BaseModel):
    id: str
    title: str
    status: str
    achievement_score: float | None = Field(
        description="Average achievement level of the goal's assessments; null when unassessed"
    )
    assessment_count: int
    subgoal_progress: float = Field(
        description="0-10: completed subgoals count fully, in-progress ones half"
    )


class ClientReportResponse(BaseModel):
    """Performance report for a client over an optional date range."""

    start_date: date | None
    end_date: date | None
    client: ClientDetailsReport
    key_metrics: KeyMetricsReport
    observations: ObservationsReport
    sessions: SessionStatsReport
    strategies: list[StrategyUsage]
    goals: list[GoalScore]
