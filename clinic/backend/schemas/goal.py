"""
Goal Schemas.

Request/response schemas for goals and subgoals.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class GoalCreate(BaseModel):
    """Schema for creating a goal."""

    title: str = Field(..., min_length=1, max_length=255, examples=["Produce /s/ in initial position"])
    description: str | None = Field(default=None, max_length=10000)
    importance_level: int | None = Field(default=None, ge=1, le=10)
    status: str = Field(default="in_progress", min_length=1, max_length=50)


class GoalUpdate(BaseModel):
    """Schema for updating a goal."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10000)
    importance_level: int | None = Field(default=None, ge=1, le=10)
    status: str | None = Field(default=None, min_length=1, max_length=50)


class GoalResponse(BaseModel):
    """Schema for a goal in API responses."""

    id: str
    client_id: str
    title: str
    description: str | None
    importance_level: int | None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubgoalCreate(BaseModel):
    """Schema for creating a subgoal."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10000)
    status: str = Field(default="pending", min_length=1, max_length=50)
    completion_date: date | None = None


class SubgoalUpdate(BaseModel):
    """Schema for updating a subgoal."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10000)
    status: str | None = Field(default=None, min_length=1, max_length=50)
    completion_date: date | None = None


class SubgoalResponse(BaseModel):
    """Schema for a subgoal in API responses."""

    id: str
    goal_id: str
    title: str
    description: str | None
    status: str
    completion_date: date | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
