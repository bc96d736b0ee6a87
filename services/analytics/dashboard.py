# services/analytics/dashboard.py
import asyncio
import logging
from datetime import datetime
from functools import partial
from typing import Dict, Optional

from services.analytics.aggregators import (
    core_product_metrics, core_sale_amount, core_service_count, format_amount,
    other_product_metrics, pending_amount, total_clients,
)
from services.analytics.chart import build_chart
from services.analytics.date_ranges import (
    all_time_range, chart_range_for, resolve_date_range, today_only_range, validate_filter,
)
from services.analytics.fanout import SessionFactory, run_concurrently
from services.analytics.leaderboard import build_leaderboard
from services.analytics.performance import individual_performance
from services.analytics.scope import RoleScope

logger = logging.getLogger(__name__)


async def get_dashboard_stats(
    session_factory: SessionFactory,
    filter: str,
    before_date: Optional[str] = None,
    after_date: Optional[str] = None,
    actor_id: Optional[int] = None,
    role=None,
    now: Optional[datetime] = None,
) -> Dict:
    """
    One dashboard payload. Inputs are validated before any query runs; the
    summary cards, leaderboard, chart and (for counsellors) the performance
    comparison are then computed concurrently and any failure fails the call.

    The "today" filter uses today alone for the cards and leaderboard while
    the chart keeps its rolling week. Pending amount always looks at every
    enrolled client.
    """
    f = validate_filter(filter)
    scope = RoleScope.for_actor(actor_id, role)
    date_range = resolve_date_range(f, before_date, after_date, now=now)
    summary_range = today_only_range(now) if f == "today" else date_range
    chart_range = chart_range_for(f)

    logger.info(
        f"Dashboard stats filter={f} role={scope.role.value} actor={actor_id} "
        f"range={summary_range.start_date}..{summary_range.end_date}"
    )

    summary_jobs = [
        partial(core_service_count, r=summary_range, scope=scope),
        partial(core_sale_amount, r=summary_range, scope=scope),
        partial(core_product_metrics, r=summary_range, scope=scope),
        partial(other_product_metrics, r=summary_range, scope=scope),
        partial(pending_amount, r=all_time_range(now), scope=scope),
        partial(total_clients, r=summary_range, scope=scope),
    ]
    tasks = [
        run_concurrently(session_factory, summary_jobs),
        build_leaderboard(session_factory, summary_range, actor_id=actor_id, role=scope.role),
        build_chart(session_factory, chart_range, date_range, scope),
    ]
    if scope.restricts_rows:
        tasks.append(individual_performance(session_factory, f, summary_range, scope))

    results = await asyncio.gather(*tasks)
    summary, leaderboard, chart_data = results[0], results[1], results[2]
    core_count, core_amount, core_product, other_product, pending, clients = summary

    stats = {
        "filter": f,
        "dateRange": {
            "start": summary_range.start.isoformat(),
            "end": summary_range.end.isoformat(),
        },
    }

    if scope.restricts_rows:
        stats.update({
            "coreSale": {"number": core_count},
            "coreProduct": {"number": core_product.count},
            "otherProduct": {"number": other_product.count},
            "totalPendingAmount": {"amount": format_amount(pending.pending)},
            "totalClients": {"count": clients},
            "leaderboard": leaderboard,
            "individualPerformance": results[3],
            "chartData": chart_data,
        })
        return stats

    revenue = core_amount + core_product.amount + other_product.amount
    stats.update({
        "coreSale": {"number": core_count, "amount": format_amount(core_amount)},
        "coreProduct": {"number": core_product.count, "amount": format_amount(core_product.amount)},
        "otherProduct": {"number": other_product.count, "amount": format_amount(other_product.amount)},
        "totalPendingAmount": {
            "amount": format_amount(pending.pending),
            "breakdown": pending.as_dict()["breakdown"],
        },
        "totalClients": {"count": clients},
        "revenue": {"amount": format_amount(revenue)},
        "leaderboard": leaderboard,
        "chartData": chart_data,
    })
    return stats
