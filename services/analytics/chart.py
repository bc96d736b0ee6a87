# services/analytics/chart.py
"""
Chart bucketizer.

A range is split into labelled sub-ranges, every bucket is aggregated on its
own (concurrently), and the points are put back in bucket order. The summary
is the plain sum of the rounded bucket values so it always matches the
series the client draws.
"""
from datetime import date
from functools import partial
from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

from services.analytics.aggregators import (
    ZERO, core_product_metrics, core_sale_amount_by_payment_date,
    core_service_count_by_payment_date, format_amount, other_product_metrics,
    round_amount, total_clients,
)
from services.analytics.date_ranges import DateRange, day_range, end_of, last_day, start_of
from services.analytics.errors import InvalidFilterError
from services.analytics.fanout import SessionFactory, run_concurrently
from services.analytics.scope import RoleScope

CHART_RANGES = ("week", "month", "year", "custom")

# fixed English labels, independent of the process locale
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

PRODUCT_KEYS = ("coreSale", "coreProduct", "otherProduct")


# ----------------- buckets -----------------
def _day_label(chart_range: str, d: date) -> str:
    if chart_range == "month":
        return str(d.day)
    label = f"{_WEEKDAYS[d.weekday()]} {d.day}"
    if chart_range == "custom":
        return f"{_MONTHS[d.month - 1]} {label}"
    return label


def _month_buckets(r: DateRange) -> List[Tuple[str, DateRange]]:
    out = []
    year, month = r.start_date.year, r.start_date.month
    while (year, month) <= (r.end_date.year, r.end_date.month):
        first = date(year, month, 1)
        last = date(year, month, last_day(year, month))
        out.append((
            _MONTHS[month - 1],
            DateRange(max(start_of(first), r.start), min(end_of(last), r.end)),
        ))
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return out


def build_buckets(chart_range: str, r: DateRange) -> List[Tuple[str, DateRange]]:
    """(label, sub-range) pairs covering r in order."""
    if chart_range not in CHART_RANGES:
        raise InvalidFilterError(f"Invalid chart range '{chart_range}'")
    if chart_range == "year":
        return _month_buckets(r)
    return [(_day_label(chart_range, d), day_range(d)) for d in r.days()]


# ----------------- per bucket jobs -----------------
def admin_point(db: Session, r: DateRange, scope: RoleScope) -> Dict:
    core_product = core_product_metrics(db, r, scope)
    other_product = other_product_metrics(db, r, scope)
    return {
        "coreSale": {
            "count": core_service_count_by_payment_date(db, r, scope),
            "amount": round_amount(core_sale_amount_by_payment_date(db, r, scope)),
        },
        "coreProduct": {"count": core_product.count, "amount": round_amount(core_product.amount)},
        "otherProduct": {"count": other_product.count, "amount": round_amount(other_product.amount)},
    }


def _format_products(values: Dict) -> Dict:
    out = {}
    for key in PRODUCT_KEYS:
        out[key] = {"count": values[key]["count"], "amount": format_amount(values[key]["amount"])}
    return out


async def build_chart(
    session_factory: SessionFactory,
    chart_range: str,
    r: DateRange,
    scope: RoleScope,
) -> Dict:
    buckets = build_buckets(chart_range, r)

    if scope.restricts_rows:
        counts = await run_concurrently(
            session_factory,
            [partial(total_clients, r=sub, scope=scope) for _, sub in buckets],
        )
        data = [{"label": label, "clientCount": n} for (label, _), n in zip(buckets, counts)]
        return {"range": chart_range, "data": data, "summary": {"total": sum(counts)}}

    points = await run_concurrently(
        session_factory,
        [partial(admin_point, r=sub, scope=scope) for _, sub in buckets],
    )

    totals = {key: {"count": 0, "amount": ZERO} for key in PRODUCT_KEYS}
    data = []
    for (label, _), point in zip(buckets, points):
        revenue = sum((point[key]["amount"] for key in PRODUCT_KEYS), ZERO)
        for key in PRODUCT_KEYS:
            totals[key]["count"] += point[key]["count"]
            totals[key]["amount"] += point[key]["amount"]
        data.append({"label": label, **_format_products(point), "revenue": format_amount(revenue)})

    total_revenue = sum((totals[key]["amount"] for key in PRODUCT_KEYS), ZERO)
    return {
        "range": chart_range,
        "data": data,
        "summary": {**_format_products(totals), "total": format_amount(total_revenue)},
    }
