"""
Session Models.

Therapy sessions, the single note recorded for each session, and the goal
assessments made in that note.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinic.backend.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from clinic.backend.models.client import Ally, Client


class TherapySession(UUIDMixin, TimestampMixin, Base):
    """A scheduled or delivered therapy session for a client."""

    __tablename__ = "therapy_sessions"

    client_id: Mapped[str] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    therapist_id: Mapped[str | None] = mapped_column(
        ForeignKey("allies.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    session_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    client: Mapped["Client"] = relationship(back_populates="sessions")
    therapist: Mapped["Ally | None"] = relationship()
    note: Mapped["SessionNote | None"] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<TherapySession(id={self.id}, title={self.title!r})>"


class SessionNote(UUIDMixin, TimestampMixin, Base):
    """
    Observations recorded for a session.

    `products` holds the billed product lines as a list of
    {"item_code", "quantity", "unit_price"} objects; completed notes feed
    budget usage.
    """

    __tablename__ = "session_notes"

    session_id: Mapped[str] = mapped_column(
        ForeignKey("therapy_sessions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    present_allies: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    mood_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    physical_activity_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    focus_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cooperation_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    products: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)

    session: Mapped["TherapySession"] = relationship(back_populates="note")
    assessments: Mapped[list["GoalAssessment"]] = relationship(
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<SessionNote(id={self.id}, session_id={self.session_id})>"


class GoalAssessment(UUIDMixin, TimestampMixin, Base):
    """Progress on a goal (and optionally one of its subgoals) within a session note."""

    __tablename__ = "goal_assessments"

    session_note_id: Mapped[str] = mapped_column(
        ForeignKey("session_notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    goal_id: Mapped[str] = mapped_column(
        ForeignKey("goals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subgoal_id: Mapped[str | None] = mapped_column(
        ForeignKey("subgoals.id", ondelete="CASCADE"),
        nullable=True,
    )
    achievement_level: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    strategies: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    def __repr__(self) -> str:
        return f"<GoalAssessment(id={self.id}, goal_id={self.goal_id})>"
