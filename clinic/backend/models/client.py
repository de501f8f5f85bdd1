"""
Client Models.

Clients (patients) and their allies (caregivers and supporters).
"""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, String, Text, orm
from sqlalchemy.orm import Mapped, mapped_column

from clinic.backend.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from clinic.backend.models.budget import BudgetPlan
    from clinic.backend.models.goal import Goal
    from clinic.backend.models.session import TherapySession


class Client(UUIDMixin, TimestampMixin, Base):
    """
    A client receiving speech therapy.

    Owns allies, goals, sessions and budget plans; deleting a client deletes
    all of them.
    """

    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(50), nullable=True)
    preferred_language: Mapped[str | None] = mapped_column(String(100), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    medical_history: Mapped[str | None] = mapped_column(Text, nullable=True)
    communication_needs: Mapped[str | None] = mapped_column(Text, nullable=True)
    therapy_preferences: Mapped[str | None] = mapped_column(Text, nullable=True)
    funds_management: Mapped[str | None] = mapped_column(String(50), nullable=True)
    onboarding_status: Mapped[str] = mapped_column(
        String(20),
        default="incomplete",
        nullable=False,
        index=True,
    )

    allies: Mapped[list["Ally"]] = orm.relationship(
        back_populates="client",
        cascade="all, delete-orphan",
    )
    goals: Mapped[list["Goal"]] = orm.relationship(
        back_populates="client",
        cascade="all, delete-orphan",
    )
    sessions: Mapped[list["TherapySession"]] = orm.relationship(
        back_populates="client",
        cascade="all, delete-orphan",
    )
    budget_plans: Mapped[list["BudgetPlan"]] = orm.relationship(
        back_populates="client",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name={self.name!r})>"


class Ally(UUIDMixin, TimestampMixin, Base):
    """A caregiver or supporter of a client, optionally acting as therapist."""

    __tablename__ = "allies"

    client_id: Mapped[str] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    relationship: Mapped[str | None] = mapped_column(String(100), nullable=True)
    preferred_language: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    access_therapeutics: Mapped[bool] = mapped_column(default=False, nullable=False)
    access_financials: Mapped[bool] = mapped_column(default=False, nullable=False)
    is_archived: Mapped[bool] = mapped_column(default=False, nullable=False)

    client: Mapped["Client"] = orm.relationship(back_populates="allies")

    def __repr__(self) -> str:
        return f"<Ally(id={self.id}, name={self.name!r}, client_id={self.client_id})>"
