"""
Tests for the dashboard date range resolver
"""
from datetime import date, datetime, time

import pytest

from services.analytics.date_ranges import (
    FILTERS, all_time_range, chart_range_for, month_range, previous_month_range,
    resolve_date_range, shift_days, shift_years, today_only_range,
)
from services.analytics.errors import InvalidFilterError, InvalidRangeError


class TestResolveDateRange:
    """Named filters resolved against a fixed clock (Tue 2026-01-20 12:00)"""

    @pytest.mark.parametrize("filter", [f for f in FILTERS if f != "custom"])
    def test_start_never_after_end(self, filter, now):
        r = resolve_date_range(filter, now=now)
        assert r.start <= r.end, f"{filter}: {r}"

    def test_today_is_rolling_week(self, now):
        r = resolve_date_range("today", now=now)
        assert r.start == datetime(2026, 1, 13, 0, 0)
        assert r.end == datetime.combine(date(2026, 1, 20), time.max)

    def test_weekly_is_monday_to_sunday(self, now):
        r = resolve_date_range("weekly", now=now)
        assert r.start == datetime(2026, 1, 19, 0, 0)
        assert r.end == datetime(2026, 1, 25, 23, 59, 59, 999999)

    def test_monthly_is_calendar_month(self, now):
        r = resolve_date_range("monthly", now=now)
        assert r.start_date == date(2026, 1, 1)
        assert r.end_date == date(2026, 1, 31)

    def test_yearly_starts_two_years_back_on_day_one(self, now):
        r = resolve_date_range("yearly", now=now)
        assert r.start == datetime(2024, 1, 1, 0, 0)
        assert r.end_date == date(2026, 1, 20)

    def test_filter_is_case_insensitive(self, now):
        assert resolve_date_range("Monthly", now=now) == resolve_date_range("monthly", now=now)

    def test_unknown_filter_rejected(self, now):
        with pytest.raises(InvalidFilterError):
            resolve_date_range("quarterly", now=now)


class TestCustomRange:
    """Custom ranges need both bounds and ignore their order"""

    def test_bounds_cover_whole_days(self):
        r = resolve_date_range("custom", "2026-01-05", "2026-01-07")
        assert r.start == datetime(2026, 1, 5, 0, 0)
        assert r.end == datetime(2026, 1, 7, 23, 59, 59, 999999)

    def test_order_insensitive(self):
        forward = resolve_date_range("custom", "2026-01-05", "2026-01-07")
        backward = resolve_date_range("custom", "2026-01-07", "2026-01-05")
        assert forward == backward

    def test_single_day(self):
        r = resolve_date_range("custom", "2026-03-01", "2026-03-01")
        assert list(r.days()) == [date(2026, 3, 1)]

    @pytest.mark.parametrize("before,after", [
        (None, "2026-01-07"),
        ("2026-01-05", None),
        ("05/01/2026", "2026-01-07"),
        ("2026-02-30", "2026-03-01"),
    ])
    def test_missing_or_malformed_bounds(self, before, after):
        with pytest.raises(InvalidRangeError):
            resolve_date_range("custom", before, after)


class TestFixedRanges:
    def test_today_only(self, now):
        r = today_only_range(now)
        assert r.start_date == r.end_date == date(2026, 1, 20)

    def test_all_time_reaches_today(self, now):
        r = all_time_range(now)
        assert r.start_date == date(2000, 1, 1)
        assert r.end_date == date(2026, 1, 20)

    def test_month_range_leap_february(self):
        r = month_range(2, 2024)
        assert r.end_date == date(2024, 2, 29)

    @pytest.mark.parametrize("month,year", [(0, 2026), (13, 2026), (5, 1999), (5, 3001)])
    def test_month_range_validation(self, month, year):
        with pytest.raises(InvalidRangeError):
            month_range(month, year)

    @pytest.mark.parametrize("filter,expected", [
        ("today", "week"), ("weekly", "week"), ("monthly", "month"),
        ("yearly", "year"), ("custom", "custom"),
    ])
    def test_chart_range_mapping(self, filter, expected):
        assert chart_range_for(filter) == expected


class TestShifting:
    def test_shift_days(self):
        r = resolve_date_range("custom", "2026-01-05", "2026-01-07")
        prev = shift_days(r, -7)
        assert (prev.start_date, prev.end_date) == (date(2025, 12, 29), date(2025, 12, 31))

    def test_shift_years_clamps_leap_day(self):
        r = resolve_date_range("custom", "2024-02-29", "2024-02-29")
        prev = shift_years(r, 1)
        assert prev.start_date == date(2023, 2, 28)

    def test_previous_month_from_january(self):
        prev = previous_month_range(month_range(1, 2026))
        assert (prev.start_date, prev.end_date) == (date(2025, 12, 1), date(2025, 12, 31))
