"""
Tests for the chart bucketizer
"""
import asyncio
from datetime import date
from decimal import Decimal

import pytest

from services.analytics.chart import build_buckets, build_chart
from services.analytics.date_ranges import chart_range_for, resolve_date_range
from services.analytics.errors import InvalidFilterError
from services.analytics.scope import ADMIN_SCOPE, RoleScope


class TestBuckets:
    def test_week_labels(self, now):
        buckets = build_buckets("week", resolve_date_range("weekly", now=now))
        assert [label for label, _ in buckets] == [
            "Mon 19", "Tue 20", "Wed 21", "Thu 22", "Fri 23", "Sat 24", "Sun 25",
        ]

    def test_month_has_one_bucket_per_day(self, now):
        buckets = build_buckets("month", resolve_date_range("monthly", now=now))
        assert len(buckets) == 31
        assert buckets[0][0] == "1" and buckets[-1][0] == "31"

    def test_custom_labels_carry_month(self):
        buckets = build_buckets("custom", resolve_date_range("custom", "2026-10-19", "2026-10-20"))
        assert [label for label, _ in buckets] == ["Oct Mon 19", "Oct Tue 20"]

    def test_year_buckets_are_months_with_clamped_end(self, now):
        r = resolve_date_range("yearly", now=now)
        buckets = build_buckets("year", r)
        assert len(buckets) == 25
        assert buckets[0][0] == "Jan"
        last = buckets[-1][1]
        assert last.start_date == date(2026, 1, 1)
        assert last.end == r.end

    def test_buckets_are_contiguous(self, now):
        r = resolve_date_range("yearly", now=now)
        buckets = [sub for _, sub in build_buckets("year", r)]
        assert buckets[0].start == r.start
        for prev, nxt in zip(buckets, buckets[1:]):
            assert prev.end < nxt.start

    def test_unknown_chart_range(self, now):
        with pytest.raises(InvalidFilterError):
            build_buckets("decade", resolve_date_range("weekly", now=now))


def _seed_month(seed):
    c = seed.counsellor()
    for day, amount in ((5, "100.10"), (5, "50.05"), (19, "300.00"), (20, "12.34")):
        client = seed.client(c, date(2026, 1, day))
        seed.payment(client, amount, date(2026, 1, day))
    return c


class TestChartSeries:
    @pytest.mark.parametrize("filter", ["today", "weekly", "monthly", "yearly"])
    def test_admin_summary_equals_sum_of_buckets(self, session_factory, seed, now, filter):
        _seed_month(seed)
        r = resolve_date_range(filter, now=now)
        chart = asyncio.run(build_chart(session_factory, chart_range_for(filter), r, ADMIN_SCOPE))

        bucket_total = sum((Decimal(p["revenue"]) for p in chart["data"]), Decimal("0"))
        assert Decimal(chart["summary"]["total"]) == bucket_total
        counts = sum(p["coreSale"]["count"] for p in chart["data"])
        assert chart["summary"]["coreSale"]["count"] == counts

    @pytest.mark.parametrize("filter", ["today", "weekly", "monthly", "yearly"])
    def test_counsellor_summary_equals_sum_of_buckets(self, session_factory, seed, now, filter):
        c = _seed_month(seed)
        r = resolve_date_range(filter, now=now)
        chart = asyncio.run(build_chart(
            session_factory, chart_range_for(filter), r, RoleScope.counsellor(c.id),
        ))
        assert chart["summary"]["total"] == sum(p["clientCount"] for p in chart["data"])
        assert set(chart["data"][0]) == {"label", "clientCount"}

    def test_custom_summary_equals_sum_of_buckets(self, session_factory, seed):
        _seed_month(seed)
        r = resolve_date_range("custom", "2026-01-01", "2026-01-31")
        chart = asyncio.run(build_chart(session_factory, "custom", r, ADMIN_SCOPE))
        assert chart["summary"]["total"] == "462.49"

    def test_points_land_in_their_day(self, session_factory, seed, now):
        _seed_month(seed)
        chart = asyncio.run(build_chart(
            session_factory, "month", resolve_date_range("monthly", now=now), ADMIN_SCOPE,
        ))
        by_label = {p["label"]: p for p in chart["data"]}
        assert by_label["5"]["coreSale"] == {"count": 2, "amount": "150.15"}
        assert by_label["5"]["revenue"] == "150.15"
        assert by_label["6"]["coreSale"] == {"count": 0, "amount": "0.00"}
        assert chart["summary"]["total"] == "462.49"
