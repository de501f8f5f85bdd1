"""
Session Schemas.

Request/response schemas for therapy sessions, session notes and goal
assessments.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SessionStatus = Literal["draft", "completed"]
NoteStatus = Literal["draft", "completed"]


class SessionCreate(BaseModel):
    """Schema for scheduling a session."""

    client_id: str = Field(..., min_length=1)
    therapist_id: str | None = Field(
        default=None,
        description="Ally of the same client who runs the session",
    )
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10000)
    session_date: datetime
    duration: int = Field(..., ge=1, le=1440, description="Duration in minutes")
    status: SessionStatus = "draft"
    location: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=10000)


class SessionUpdate(BaseModel):
    """Schema for updating a session. The client cannot change."""

    therapist_id: str | None = None
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10000)
    session_date: datetime | None = None
    duration: int | None = Field(default=None, ge=1, le=1440)
    status: SessionStatus | None = None
    location: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=10000)


class SessionResponse(BaseModel):
    """Schema for a session in API responses."""

    id: str
    client_id: str
    therapist_id: str | None
    title: str
    description: str | None
    session_date: datetime
    duration: int
    status: str
    location: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Session notes
# =============================================================================


class ProductLine(BaseModel):
    """A product or service billed in a session, priced from the budget plan."""

    item_code: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(..., ge=1)
    unit_price: float | None = Field(
        default=None,
        ge=0.01,
        description="Overrides the plan item's unit price when set",
    )


class SessionNoteCreate(BaseModel):
    """Schema for writing the note of a session."""

    present_allies: list[str] = Field(default_factory=list)
    mood_rating: int | None = Field(default=None, ge=0, le=10)
    physical_activity_rating: int | None = Field(default=None, ge=0, le=10)
    focus_rating: int | None = Field(default=None, ge=0, le=10)
    cooperation_rating: int | None = Field(default=None, ge=0, le=10)
    notes: str | None = Field(default=None, max_length=20000)
    products: list[ProductLine] = Field(default_factory=list)
    status: NoteStatus = "draft"


class SessionNoteUpdate(BaseModel):
    """Schema for updating a session note."""

    present_allies: list[str] | None = None
    mood_rating: int | None = Field(default=None, ge=0, le=10)
    physical_activity_rating: int | None = Field(default=None, ge=0, le=10)
    focus_rating: int | None = Field(default=None, ge=0, le=10)
    cooperation_rating: int | None = Field(default=None, ge=0, le=10)
    notes: str | None = Field(default=None, max_length=20000)
    products: list[ProductLine] | None = None
    status: NoteStatus | None = None


class SessionNoteResponse(BaseModel):
    """Schema for a session note in API responses."""

    id: str
    session_id: str
    present_allies: list[str]
    mood_rating: int | None
    physical_activity_rating: int | None
    focus_rating: int | None
    cooperation_rating: int | None
    notes: str | None
    products: list[ProductLine]
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Goal assessments
# =============================================================================


class GoalAssessmentCreate(BaseModel):
    """Schema for assessing a goal within a session note."""

    goal_id: str = Field(..., min_length=1)
    subgoal_id: str | None = None
    achievement_level: int = Field(..., ge=0, le=10)
    score: int | None = Field(default=None, ge=0, le=10)
    notes: str | None = Field(default=None, max_length=10000)
    strategies: list[str] = Field(default_factory=list)


class GoalAssessmentUpdate(BaseModel):
    """Schema for updating a goal assessment."""

    achievement_level: int | None = Field(default=None, ge=0, le=10)
    score: int | None = Field(default=None, ge=0, le=10)
    notes: str | None = Field(default=None, max_length=10000)
    strategies: list[str] | None = None


class GoalAssessmentResponse(BaseModel):
    """Schema for a goal assessment in API responses."""

    id: str
    session_note_id: str
    goal_id: str
    subgoal_id: str | None
    achievement_level: int
    score: int | None
    notes: str | None
    strategies: list[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CompleteSessionNoteResponse(SessionNoteResponse):
    """A session note together with its goal assessments."""

    assessments: list[GoalAssessmentResponse]
