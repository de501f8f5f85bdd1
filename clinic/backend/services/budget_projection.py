"""
Budget Projection.

Closed-form utilization and spend-rate extrapolation for a budget plan.
Pure functions over plain values: no database access, "today" is always
passed in.

Usage:
    projection = project_budget(
        total=10_000, used=2_500,
        start=date(2024, 1, 1), end=date(2024, 8, 28),
        today=date(2024, 3, 1),
    )
    projection.utilization_percentage  # 25.0
"""

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta

from clinic.backend.core.utils import add_months


@dataclass(frozen=True)
class SpendingEvent:
    """A billed product line from a completed session note."""

    event_date: date
    session_id: str
    item_code: str
    quantity: int
    amount: float


@dataclass(frozen=True)
class MonthlySpending:
    month: str
    actual: float
    target: float
    projected: float
    cumulative_actual: float
    cumulative_target: float
    cumulative_projected: float


@dataclass(frozen=True)
class BudgetProjection:
    total_budget: float
    used_budget: float
    remaining_budget: float
    utilization_percentage: float
    start_date: date
    end_date: date
    total_days: int
    days_elapsed: int
    remaining_days: int
    daily_budget: float
    daily_spend_rate: float
    projected_exhaustion_date: date | None
    projected_overspend: float | None


def resolve_plan_dates(
    start: date | None,
    end: date | None,
    created: date | None,
    today: date,
    default_months: int = 6,
) -> tuple[date, date]:
    """
    Fill in a plan's missing dates.

    The start falls back to the creation date, then today; the end falls
    back to start + default_months.
    """
    resolved_start = start or created or today
    resolved_end = end or add_months(resolved_start, default_months)
    return resolved_start, resolved_end


def project_budget(
    total: float,
    used: float,
    start: date,
    end: date,
    today: date,
    default_plan_days: int = 180,
    max_projection_days: int = 365,
) -> BudgetProjection:
    """
    Project spending for a plan from its spend-to-date.

    The daily spend rate is the average since the start date. The budget is
    projected to run out at that rate; the exhaustion date is only reported
    when it falls before the plan ends. Overspend is reported when the rate
    exceeds the daily budget and would carry total spending past the budget
    by the end date.

    Args:
        total: Total budget of the plan
        used: Amount spent so far
        start: First day of the plan
        end: Last day of the plan
        today: Reference date for elapsed time
        default_plan_days: Divisor for the daily budget when the range is empty
        max_projection_days: Horizon for the exhaustion date
    """
    remaining = total - used
    utilization = (used / total * 100) if total > 0 else 0.0

    total_days = (end - start).days
    days_elapsed = min(max((today - start).days, 0), max(total_days, 0))
    remaining_days = max(0, total_days - days_elapsed)

    daily_budget = total / (total_days if total_days > 0 else default_plan_days)
    daily_spend_rate = used / days_elapsed if days_elapsed > 0 else 0.0

    exhaustion_date = None
    if daily_spend_rate > 0 and remaining > 0:
        days_until_depletion = min(math.floor(remaining / daily_spend_rate), max_projection_days)
        candidate = today + timedelta(days=days_until_depletion)
        if candidate < end:
            exhaustion_date = candidate

    overspend = None
    if daily_spend_rate > daily_budget:
        projected_total = used + daily_spend_rate * remaining_days
        if projected_total > total:
            overspend = round(projected_total - total, 2)

    return BudgetProjection(
        total_budget=round(total, 2),
        used_budget=round(used, 2),
        remaining_budget=round(remaining, 2),
        utilization_percentage=round(utilization, 2),
        start_date=start,
        end_date=end,
        total_days=total_days,
        days_elapsed=days_elapsed,
        remaining_days=remaining_days,
        daily_budget=round(daily_budget, 2),
        daily_spend_rate=round(daily_spend_rate, 2),
        projected_exhaustion_date=exhaustion_date,
        projected_overspend=overspend,
    )


def _month_keys(start: date, end: date) -> list[tuple[int, int]]:
    keys = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        keys.append((year, month))
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return keys


def monthly_breakdown(
    total: float,
    start: date,
    end: date,
    today: date,
    events: list[SpendingEvent],
) -> list[MonthlySpending]:
    """
    Month-by-month actual, target and projected spending over the plan.

    The target spreads the budget evenly across the plan's months. Months
    up to the current one project their actual spending; later months
    project the average monthly actual so far.
    """
    months = _month_keys(start, end)
    if not months:
        return []

    actual_by_month: dict[tuple[int, int], float] = defaultdict(float)
    for event in events:
        actual_by_month[(event.event_date.year, event.event_date.month)] += event.amount

    current = (today.year, today.month)
    elapsed = [key for key in months if key <= current]
    average_actual = (
        sum(actual_by_month[key] for key in elapsed) / len(elapsed) if elapsed else 0.0
    )
    target = total / len(months)

    breakdown = []
    cumulative_actual = cumulative_target = cumulative_projected = 0.0
    for key in months:
        actual = actual_by_month[key]
        projected = actual if key <= current else average_actual
        cumulative_actual += actual
        cumulative_target += target
        cumulative_projected += projected
        breakdown.append(
            MonthlySpending(
                month=f"{key[0]:04d}-{key[1]:02d}",
                actual=round(actual, 2),
                target=round(target, 2),
                projected=round(projected, 2),
                cumulative_actual=round(cumulative_actual, 2),
                cumulative_target=round(cumulative_target, 2),
                cumulative_projected=round(cumulative_projected, 2),
            )
        )
    return breakdown


def projected_remaining_budget(
    total: float,
    remaining: float,
    breakdown: list[MonthlySpending],
) -> float:
    """Budget left at the end of the plan if spending follows the projection."""
    if not breakdown:
        return round(max(0.0, remaining), 2)
    return round(max(0.0, total - breakdown[-1].cumulative_projected), 2)
