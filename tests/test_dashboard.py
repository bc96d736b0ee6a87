"""
Tests for the dashboard orchestrator: payload shapes per role
"""
import asyncio
from datetime import date

import pytest

from services.analytics.dashboard import get_dashboard_stats
from services.analytics.errors import InvalidFilterError, InvalidRangeError


@pytest.fixture
def january(seed):
    """One counsellor with the January enrollment scenario plus a finance approval"""
    c = seed.counsellor()
    client = seed.client(c, date(2026, 1, 5))
    seed.payment(client, "500.00", date(2026, 1, 10), total_payment="1500.00")
    seed.finance(client, "800.00", date(2026, 1, 11))
    return c


class TestAdminDashboard:
    def test_monthly_payload(self, session_factory, seed, now, january):
        admin = seed.admin()
        stats = asyncio.run(get_dashboard_stats(
            session_factory, "monthly", actor_id=admin.id, role="admin", now=now,
        ))

        assert stats["coreSale"] == {"number": 1, "amount": "500.00"}
        assert stats["coreProduct"] == {"number": 1, "amount": "800.00"}
        assert stats["otherProduct"] == {"number": 0, "amount": "0.00"}
        assert stats["totalPendingAmount"]["amount"] == "1000.00"
        assert stats["totalClients"] == {"count": 1}
        assert stats["revenue"] == {"amount": "1300.00"}
        assert "individualPerformance" not in stats
        assert stats["leaderboard"][0]["counsellorId"] == january.id
        assert stats["chartData"]["range"] == "month"

    def test_manager_gets_admin_shape(self, session_factory, seed, now, january):
        manager = seed.manager()
        stats = asyncio.run(get_dashboard_stats(
            session_factory, "monthly", actor_id=manager.id, role="manager", now=now,
        ))
        assert "revenue" in stats
        assert stats["coreSale"]["number"] == 1
        # dashboard leaderboard for a manager only lists its own counsellors
        assert stats["leaderboard"] == []

    def test_today_cards_use_today_only(self, session_factory, seed, now, january):
        admin = seed.admin()
        stats = asyncio.run(get_dashboard_stats(
            session_factory, "today", actor_id=admin.id, role="admin", now=now,
        ))
        assert stats["coreSale"]["number"] == 0
        assert stats["dateRange"]["start"].startswith("2026-01-20")
        # pending ignores the filter
        assert stats["totalPendingAmount"]["amount"] == "1000.00"
        assert len(stats["chartData"]["data"]) == 8


class TestCounsellorDashboard:
    def test_payload_shape(self, session_factory, now, january):
        stats = asyncio.run(get_dashboard_stats(
            session_factory, "monthly", actor_id=january.id, role="counsellor", now=now,
        ))

        assert stats["coreSale"] == {"number": 1}
        assert stats["coreProduct"] == {"number": 1}
        assert stats["otherProduct"] == {"number": 0}
        assert stats["totalPendingAmount"] == {"amount": "1000.00"}
        assert "revenue" not in stats
        perf = stats["individualPerformance"]
        assert perf["current"] == 1
        assert perf["previous"] == 0
        assert perf["changeType"] == "increase"
        assert perf["periodLabel"] == "This Month vs Last Month"
        assert set(stats["chartData"]["data"][0]) == {"label", "clientCount"}

    def test_other_counsellors_clients_invisible(self, session_factory, seed, now, january):
        other = seed.counsellor()
        stats = asyncio.run(get_dashboard_stats(
            session_factory, "monthly", actor_id=other.id, role="counsellor", now=now,
        ))
        assert stats["coreSale"] == {"number": 0}
        assert stats["totalPendingAmount"] == {"amount": "0.00"}


class TestValidation:
    def test_bad_filter_fails_before_queries(self, session_factory, now):
        with pytest.raises(InvalidFilterError):
            asyncio.run(get_dashboard_stats(session_factory, "hourly", actor_id=1, role="admin", now=now))

    def test_custom_without_bounds(self, session_factory, now):
        with pytest.raises(InvalidRangeError):
            asyncio.run(get_dashboard_stats(session_factory, "custom", actor_id=1, role="admin", now=now))

    def test_unknown_role(self, session_factory, now):
        with pytest.raises(InvalidFilterError):
            asyncio.run(get_dashboard_stats(session_factory, "monthly", actor_id=1, role="intern", now=now))
