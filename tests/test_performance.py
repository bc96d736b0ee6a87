"""
Tests for period-over-period performance
"""
import asyncio
from datetime import date

import pytest

from services.analytics.date_ranges import month_range, resolve_date_range, today_only_range
from services.analytics.performance import (
    PERIOD_LABELS, individual_performance, percentage_change, previous_period,
)
from services.analytics.scope import RoleScope


class TestPercentageChange:
    @pytest.mark.parametrize("current,previous,expected", [
        (0, 0, (0.0, "no-change")),
        (5, 0, (100.0, "increase")),
        (50, 100, (50.0, "decrease")),
        (150, 100, (50.0, "increase")),
        (100, 100, (0.0, "no-change")),
        (1, 3, (66.67, "decrease")),
    ])
    def test_formula(self, current, previous, expected):
        assert percentage_change(current, previous) == expected

    def test_magnitude_never_negative(self):
        change, change_type = percentage_change(10, 40)
        assert change == 75.0
        assert change_type == "decrease"


class TestPreviousPeriod:
    def test_today_steps_back_a_day(self, now):
        prev = previous_period("today", today_only_range(now))
        assert prev.start_date == prev.end_date == date(2026, 1, 19)

    def test_weekly_steps_back_a_week(self, now):
        prev = previous_period("weekly", resolve_date_range("weekly", now=now))
        assert (prev.start_date, prev.end_date) == (date(2026, 1, 12), date(2026, 1, 18))

    def test_monthly_is_previous_calendar_month(self):
        prev = previous_period("monthly", month_range(3, 2026))
        assert (prev.start_date, prev.end_date) == (date(2026, 2, 1), date(2026, 2, 28))

    def test_yearly_steps_back_a_year(self, now):
        prev = previous_period("yearly", resolve_date_range("yearly", now=now))
        assert prev.start_date == date(2023, 1, 1)
        assert prev.end_date == date(2025, 1, 20)

    def test_custom_steps_back_a_day(self):
        prev = previous_period("custom", resolve_date_range("custom", "2026-01-05", "2026-01-07"))
        assert (prev.start_date, prev.end_date) == (date(2026, 1, 4), date(2026, 1, 6))


class TestIndividualPerformance:
    def test_month_over_month(self, session_factory, seed):
        c = seed.counsellor()
        for day in (3, 4):
            seed.payment(seed.client(c, date(2025, 12, day)), 100, date(2025, 12, day))
        for day in (5, 6, 7):
            seed.payment(seed.client(c, date(2026, 1, day)), 100, date(2026, 1, day))

        result = asyncio.run(individual_performance(
            session_factory, "monthly", month_range(1, 2026), RoleScope.counsellor(c.id),
        ))
        assert result == {
            "current": 3,
            "previous": 2,
            "change": 50.0,
            "changeType": "increase",
            "periodLabel": "This Month vs Last Month",
        }

    def test_labels_cover_every_filter(self):
        assert set(PERIOD_LABELS) == {"today", "weekly", "monthly", "yearly", "custom"}
        assert PERIOD_LABELS["today"] == "Today vs Yesterday"
