# services/analytics/performance.py
from decimal import Decimal, ROUND_HALF_UP
from functools import partial
from typing import Dict, Tuple

from services.analytics.aggregators import core_service_count
from services.analytics.date_ranges import (
    DateRange, previous_month_range, shift_days, shift_years, validate_filter,
)
from services.analytics.fanout import SessionFactory, run_concurrently
from services.analytics.scope import RoleScope

PERIOD_LABELS = {
    "today": "Today vs Yesterday",
    "weekly": "This Week vs Last Week",
    "monthly": "This Month vs Last Month",
    "yearly": "This Year vs Last Year",
    "custom": "Custom vs Previous Custom Period",
}


def percentage_change(current, previous) -> Tuple[float, str]:
    """
    (magnitude, changeType). Magnitude is never negative and is rounded to
    two places; the direction lives in changeType.
    """
    current = Decimal(str(current))
    previous = Decimal(str(previous))
    if previous == 0:
        if current == 0:
            return 0.0, "no-change"
        return 100.0, "increase"

    change = ((current - previous) / previous * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if change > 0:
        return float(change), "increase"
    if change < 0:
        return float(-change), "decrease"
    return 0.0, "no-change"


def previous_period(filter: str, r: DateRange) -> DateRange:
    f = validate_filter(filter)
    if f == "weekly":
        return shift_days(r, -7)
    if f == "monthly":
        return previous_month_range(r)
    if f == "yearly":
        return shift_years(r, 1)
    # today and custom step back one day
    return shift_days(r, -1)


async def individual_performance(
    session_factory: SessionFactory,
    filter: str,
    current_range: DateRange,
    scope: RoleScope,
) -> Dict:
    """Core-service count for current_range against the period before it."""
    prev_range = previous_period(filter, current_range)
    current, previous = await run_concurrently(session_factory, [
        partial(core_service_count, r=current_range, scope=scope),
        partial(core_service_count, r=prev_range, scope=scope),
    ])
    change, change_type = percentage_change(current, previous)
    return {
        "current": current,
        "previous": previous,
        "change": change,
        "changeType": change_type,
        "periodLabel": PERIOD_LABELS[validate_filter(filter)],
    }
