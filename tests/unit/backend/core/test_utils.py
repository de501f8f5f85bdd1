"""
Unit Tests for Core Utilities.
"""

from datetime import date, datetime, timedelta, timezone

from clinic.backend.core.utils import add_months, to_naive_utc, utc_now, utc_today


class TestUtcNow:
    def test_is_naive(self):
        assert utc_now().tzinfo is None

    def test_today_matches_now(self):
        assert utc_today() in {utc_now().date(), utc_now().date() - timedelta(days=1)}


class TestAddMonths:
    def test_simple_shift(self):
        assert add_months(date(2024, 1, 15), 6) == date(2024, 7, 15)

    def test_clamps_to_month_end(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_crosses_year(self):
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)


class TestToNaiveUtc:
    def test_converts_aware_datetime(self):
        aware = datetime(2024, 3, 5, 10, 0, tzinfo=timezone(timedelta(hours=10)))
        assert to_naive_utc(aware) == datetime(2024, 3, 5, 0, 0)

    def test_keeps_naive_datetime(self):
        naive = datetime(2024, 3, 5, 10, 0)
        assert to_naive_utc(naive) is naive
