"""
Unit Tests for Budget Projection.

Pure functions: every test passes its own "today".
"""

from datetime import date, timedelta

import pytest

from clinic.backend.services.budget_projection import (
    SpendingEvent,
    monthly_breakdown,
    project_budget,
    projected_remaining_budget,
    resolve_plan_dates,
)

START = date(2024, 1, 1)
END = START + timedelta(days=240)
TODAY = START + timedelta(days=60)


def _event(day: date, amount: float, item_code: str = "SPEECH-1H") -> SpendingEvent:
    return SpendingEvent(
        event_date=day,
        session_id=f"session-{day.isoformat()}",
        item_code=item_code,
        quantity=1,
        amount=amount,
    )


class TestProjectBudget:
    """Tests for project_budget."""

    def test_on_track_plan(self):
        """A quarter spent a quarter of the way in is on track."""
        projection = project_budget(10_000, 2_500, START, END, TODAY)

        assert projection.utilization_percentage == 25.0
        assert projection.remaining_budget == 7_500
        assert projection.total_days == 240
        assert projection.days_elapsed == 60
        assert projection.remaining_days == 180
        assert projection.daily_budget == 41.67
        assert projection.daily_spend_rate == 41.67
        assert projection.projected_overspend is None

    def test_exhaustion_only_reported_before_end(self):
        """At an on-track rate the money lasts until the end date."""
        projection = project_budget(10_000, 2_500, START, END, TODAY)
        assert projection.projected_exhaustion_date is None

    def test_overspending_plan(self):
        """Spending twice the daily budget runs out early and overspends."""
        projection = project_budget(10_000, 5_000, START, END, TODAY)

        assert projection.daily_spend_rate == 83.33
        assert projection.projected_exhaustion_date == TODAY + timedelta(days=60)
        assert projection.projected_overspend == 10_000

    def test_no_spending(self):
        projection = project_budget(10_000, 0, START, END, TODAY)

        assert projection.daily_spend_rate == 0
        assert projection.projected_exhaustion_date is None
        assert projection.projected_overspend is None
        assert projection.utilization_percentage == 0

    def test_zero_budget(self):
        projection = project_budget(0, 0, START, END, TODAY)

        assert projection.utilization_percentage == 0
        assert projection.daily_budget == 0

    def test_before_start(self):
        """Days elapsed never goes negative."""
        projection = project_budget(10_000, 0, START, END, START - timedelta(days=10))

        assert projection.days_elapsed == 0
        assert projection.remaining_days == 240

    def test_after_end(self):
        """Days elapsed is clamped to the plan length."""
        projection = project_budget(10_000, 9_000, START, END, END + timedelta(days=30))

        assert projection.days_elapsed == 240
        assert projection.remaining_days == 0

    def test_empty_range_uses_default_days(self):
        projection = project_budget(1_800, 0, START, START, START, default_plan_days=180)
        assert projection.daily_budget == 10.0

    def test_exhaustion_capped_by_projection_horizon(self):
        end = START + timedelta(days=2000)
        today = START + timedelta(days=100)

        projection = project_budget(100_000, 100, START, end, today, max_projection_days=365)

        assert projection.projected_exhaustion_date == today + timedelta(days=365)

    def test_overspent_plan_has_negative_remaining(self):
        projection = project_budget(1_000, 1_200, START, END, TODAY)

        assert projection.remaining_budget == -200
        assert projection.utilization_percentage == 120.0
        assert projection.projected_exhaustion_date is None


class TestResolvePlanDates:
    """Tests for resolve_plan_dates."""

    def test_keeps_explicit_dates(self):
        assert resolve_plan_dates(START, END, None, TODAY) == (START, END)

    def test_start_falls_back_to_creation_date(self):
        created = date(2024, 2, 10)
        assert resolve_plan_dates(None, None, created, TODAY, default_months=6) == (
            created,
            date(2024, 8, 10),
        )

    def test_start_falls_back_to_today(self):
        start, end = resolve_plan_dates(None, None, None, TODAY, default_months=6)
        assert start == TODAY
        assert end == date(2024, 9, 1)


class TestMonthlyBreakdown:
    """Tests for monthly_breakdown."""

    def test_months_cover_plan(self):
        breakdown = monthly_breakdown(6_000, date(2024, 1, 15), date(2024, 6, 10), TODAY, [])

        assert [m.month for m in breakdown] == [
            "2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06",
        ]
        assert all(m.target == 1_000 for m in breakdown)
        assert breakdown[-1].cumulative_target == 6_000

    def test_actual_and_projected(self):
        """Past months project their actual; later months the average so far."""
        events = [
            _event(date(2024, 1, 10), 300),
            _event(date(2024, 1, 20), 300),
            _event(date(2024, 2, 5), 400),
        ]
        today = date(2024, 3, 15)

        breakdown = monthly_breakdown(6_000, date(2024, 1, 1), date(2024, 6, 30), today, events)

        by_month = {m.month: m for m in breakdown}
        assert by_month["2024-01"].actual == 600
        assert by_month["2024-02"].actual == 400
        assert by_month["2024-03"].actual == 0
        assert by_month["2024-03"].projected == 0
        # (600 + 400 + 0) / 3 elapsed months
        assert by_month["2024-04"].projected == pytest.approx(333.33)
        assert by_month["2024-04"].actual == 0
        assert by_month["2024-06"].cumulative_actual == 1_000
        assert by_month["2024-06"].cumulative_projected == pytest.approx(2_000, abs=0.01)

    def test_crosses_year_boundary(self):
        breakdown = monthly_breakdown(1_200, date(2024, 11, 1), date(2025, 2, 28), TODAY, [])
        assert [m.month for m in breakdown] == ["2024-11", "2024-12", "2025-01", "2025-02"]

    def test_inverted_range_is_empty(self):
        assert monthly_breakdown(1_000, END, START, TODAY, []) == []


class TestProjectedRemainingBudget:
    """Tests for projected_remaining_budget."""

    def test_uses_final_cumulative_projection(self):
        breakdown = monthly_breakdown(
            6_000,
            date(2024, 1, 1),
            date(2024, 6, 30),
            date(2024, 1, 31),
            [_event(date(2024, 1, 5), 500)],
        )

        assert projected_remaining_budget(6_000, 5_500, breakdown) == 3_000

    def test_never_negative(self):
        breakdown = monthly_breakdown(
            1_000,
            date(2024, 1, 1),
            date(2024, 3, 31),
            date(2024, 1, 31),
            [_event(date(2024, 1, 5), 900)],
        )

        assert projected_remaining_budget(1_000, 100, breakdown) == 0

    def test_without_breakdown_returns_remaining(self):
        assert projected_remaining_budget(1_000, 250.456, []) == 250.46
