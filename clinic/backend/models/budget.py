"""
Budget Models.

Funding plans per client, the line items allocated under a plan, and the
clinic-wide catalog items are priced from.
"""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinic.backend.models.base import Base, Money, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from clinic.backend.models.client import Client


class BudgetPlan(UUIDMixin, TimestampMixin, Base):
    """
    A client's funding period ("budget settings").

    A client has at most one active plan at a time.
    """

    __tablename__ = "budget_plans"

    client_id: Mapped[str] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    plan_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    plan_serial_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_funds: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    client: Mapped["Client"] = relationship(back_populates="budget_plans")
    items: Mapped[list["BudgetItem"]] = relationship(
        back_populates="plan",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<BudgetPlan(id={self.id}, client_id={self.client_id}, active={self.is_active})>"


class BudgetItem(UUIDMixin, TimestampMixin, Base):
    """A product or service allocated under a plan."""

    __tablename__ = "budget_items"
    __table_args__ = (UniqueConstraint("plan_id", "item_code", name="uq_budget_items_plan_code"),)

    plan_id: Mapped[str] = mapped_column(
        ForeignKey("budget_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_code: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    unit_price: Mapped[float] = mapped_column(Money, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    used_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    plan: Mapped["BudgetPlan"] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return f"<BudgetItem(id={self.id}, item_code={self.item_code!r})>"


class BudgetCatalogItem(UUIDMixin, TimestampMixin, Base):
    """Clinic-wide price list entry used to fill in new budget items."""

    __tablename__ = "budget_catalog_items"

    item_code: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    default_unit_price: Mapped[float] = mapped_column(Money, nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<BudgetCatalogItem(item_code={self.item_code!r})>"
