"""
Goal Models.

Therapy goals for a client and the subgoals that break them down.
"""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinic.backend.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from clinic.backend.models.client import Client
    from clinic.backend.models.session import GoalAssessment


class Goal(UUIDMixin, TimestampMixin, Base):
    """A therapy goal owned by a client."""

    __tablename__ = "goals"

    client_id: Mapped[str] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    importance_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="in_progress", nullable=False)

    client: Mapped["Client"] = relationship(back_populates="goals")
    subgoals: Mapped[list["Subgoal"]] = relationship(
        back_populates="goal",
        cascade="all, delete-orphan",
    )
    assessments: Mapped[list["GoalAssessment"]] = relationship(
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Goal(id={self.id}, title={self.title!r})>"


class Subgoal(UUIDMixin, TimestampMixin, Base):
    """A measurable step towards a goal."""

    __tablename__ = "subgoals"

    goal_id: Mapped[str] = mapped_column(
        ForeignKey("goals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="pending", nullable=False)
    completion_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    goal: Mapped["Goal"] = relationship(back_populates="subgoals")
    assessments: Mapped[list["GoalAssessment"]] = relationship(
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Subgoal(id={self.id}, title={self.title!r})>"
