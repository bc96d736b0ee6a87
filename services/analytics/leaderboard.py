# services/analytics/leaderboard.py
import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from functools import partial
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from db.models import LeaderBoard, UserRole
from services.analytics.aggregators import (
    ZERO, core_product_metrics, core_product_metrics_with_installments,
    core_sale_amount_by_payment_date, core_service_count_by_payment_date,
    format_amount, other_product_metrics, round_amount, total_clients,
)
from services.analytics.date_ranges import DateRange, month_range, validate_month_year
from services.analytics.errors import InvalidFilterError
from services.analytics.fanout import SessionFactory, run_concurrently, run_job
from services.analytics.scope import RoleScope, parse_role
from utils.user_tree import get_user, list_counsellors

logger = logging.getLogger(__name__)


# ----------------- per counsellor jobs -----------------
def counsellor_revenue(db: Session, r: DateRange, scope: RoleScope) -> Decimal:
    """core sale (by payment date) + core product + other product"""
    return (
        core_sale_amount_by_payment_date(db, r, scope)
        + core_product_metrics(db, r, scope).amount
        + other_product_metrics(db, r, scope).amount
    )


def counsellor_breakdown(db: Session, r: DateRange, scope: RoleScope) -> Dict:
    core_count = total_clients(db, r, scope)
    core_amount = core_sale_amount_by_payment_date(db, r, scope)
    core_product = core_product_metrics_with_installments(db, r, scope)
    other_product = other_product_metrics(db, r, scope)
    return {
        "enrollments": core_count,
        "coreSale": {"count": core_count, "amount": core_amount},
        "coreProduct": {"count": core_product.count, "amount": core_product.amount},
        "otherProduct": {"count": other_product.count, "amount": other_product.amount},
        "revenue": core_amount + core_product.amount + other_product.amount,
    }


def load_targets(db: Session, counsellor_ids: List[int], month: int, year: int) -> Dict[int, Dict]:
    """First target row per counsellor for the month, keyed by counsellor id."""
    if not counsellor_ids:
        return {}
    rows = (
        db.query(LeaderBoard)
          .filter(
              LeaderBoard.counsellor_id.in_(counsellor_ids),
              LeaderBoard.month == month,
              LeaderBoard.year == year,
          )
          .order_by(LeaderBoard.id)
          .all()
    )
    out: Dict[int, Dict] = {}
    for t in rows:
        out.setdefault(t.counsellor_id, {"id": t.id, "target": int(t.target or 0)})
    return out


# ----------------- ranking -----------------
def rank_rows(rows: List[Dict]) -> List[Dict]:
    """
    Order by enrollments then revenue, both descending, and number 1..N.
    sorted() is stable so equal rows keep roster order.
    """
    ordered = sorted(rows, key=lambda x: (-x["enrollments"], -x["revenue"]))
    for i, row in enumerate(ordered, start=1):
        row["rank"] = i
    return ordered


def _with_target(row: Dict, target: Optional[Dict]) -> Dict:
    row["target"] = target["target"] if target else 0
    row["targetId"] = target["id"] if target else None
    row["achievedTarget"] = row["enrollments"]
    return row


def _identity(c: Dict) -> Dict:
    return {
        "counsellorId": c["id"],
        "fullName": c["full_name"],
        "email": c["email"],
        "empId": c["emp_id"],
        "managerId": c["manager_id"],
        "designation": c["designation"],
    }


# ------------------------------
# Dashboard leaderboard
# ------------------------------
async def build_leaderboard(
    session_factory: SessionFactory,
    date_range: DateRange,
    actor_id: Optional[int] = None,
    role=None,
) -> List[Dict]:
    """
    Ranked counsellors for the dashboard. A manager only sees counsellors
    with manager_id == actor_id; everyone else sees all counsellors.
    """
    manager_id = actor_id if role is not None and parse_role(role) == UserRole.manager else None
    counsellors = await run_job(session_factory, partial(list_counsellors, manager_id=manager_id))
    if not counsellors:
        return []

    ids = [c["id"] for c in counsellors]
    start = date_range.start_date
    jobs = []
    for cid in ids:
        scope = RoleScope.counsellor(cid)
        jobs.append(partial(total_clients, r=date_range, scope=scope))
        jobs.append(partial(counsellor_revenue, r=date_range, scope=scope))
    jobs.append(partial(load_targets, counsellor_ids=ids, month=start.month, year=start.year))

    results = await run_concurrently(session_factory, jobs)
    targets = results[-1]

    rows = []
    for i, c in enumerate(counsellors):
        row = _identity(c)
        row["enrollments"] = int(results[2 * i])
        row["revenue"] = round_amount(results[2 * i + 1])
        rows.append(_with_target(row, targets.get(c["id"])))

    ranked = rank_rows(rows)
    for row in ranked:
        row["revenue"] = float(row["revenue"])
    return ranked


# ------------------------------
# Monthly leaderboard
# ------------------------------
def _format_breakdown(row: Dict) -> Dict:
    for key in ("coreSale", "coreProduct", "otherProduct"):
        row[key]["amount"] = format_amount(row[key]["amount"])
    row["revenue"] = float(round_amount(row["revenue"]))
    return row


async def get_leaderboard(
    session_factory: SessionFactory,
    month: int,
    year: int,
    actor_id: Optional[int] = None,
    role=None,
) -> Dict:
    """
    Calendar-month leaderboard with per-product breakdown. Ranks are
    computed over every counsellor; a counsellor then sees only its own row,
    a manager sees its team re-ranked, an admin sees everyone.
    """
    r = month_range(month, year)
    viewer = parse_role(role) if role is not None else UserRole.admin
    logger.info(f"Leaderboard {month}/{year} requested by {actor_id} ({viewer.value})")

    counsellors = await run_job(session_factory, list_counsellors)
    ids = [c["id"] for c in counsellors]
    jobs = [partial(counsellor_breakdown, r=r, scope=RoleScope.counsellor(cid)) for cid in ids]
    jobs.append(partial(load_targets, counsellor_ids=ids, month=month, year=year))
    results = await run_concurrently(session_factory, jobs)
    targets = results[-1]

    rows = []
    for c, breakdown in zip(counsellors, results[:-1]):
        row = {**_identity(c), **breakdown}
        rows.append(_with_target(row, targets.get(c["id"])))
    ranked = rank_rows(rows)

    if viewer == UserRole.counsellor:
        visible = [row for row in ranked if row["counsellorId"] == actor_id]
    elif viewer == UserRole.manager:
        visible = rank_rows([row for row in ranked if row["managerId"] == actor_id])
    else:
        visible = ranked

    total_revenue = sum((row["revenue"] for row in visible), ZERO)
    summary = {
        "totalCounsellors": len(visible),
        "totalEnrollments": sum(row["enrollments"] for row in visible),
        "totalRevenue": format_amount(total_revenue),
    }
    return {
        "month": month,
        "year": year,
        "leaderboard": [_format_breakdown(row) for row in visible],
        "summary": summary,
    }


# ------------------------------
# Enrollment goal
# ------------------------------
async def get_enrollment_goal(
    session_factory: SessionFactory,
    counsellor_id: int,
    month: Optional[int] = None,
    year: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict:
    current = now or datetime.now()
    month = current.month if month is None else month
    year = current.year if year is None else year
    validate_month_year(month, year)
    r = month_range(month, year)

    user = await run_job(session_factory, partial(get_user, user_id=counsellor_id))
    if user is None:
        raise LookupError(f"Counsellor {counsellor_id} not found")
    if user["role"] != UserRole.counsellor.value:
        raise InvalidFilterError(f"User {counsellor_id} is not a counsellor")

    achieved, targets = await run_concurrently(session_factory, [
        partial(core_service_count_by_payment_date, r=r, scope=RoleScope.counsellor(counsellor_id)),
        partial(load_targets, counsellor_ids=[counsellor_id], month=month, year=year),
    ])
    target_row = targets.get(counsellor_id)
    target = target_row["target"] if target_row else 0
    pct = 0
    if target > 0:
        pct = int((Decimal(achieved * 100) / target).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return {
        "counsellorId": counsellor_id,
        "fullName": user["full_name"],
        "month": month,
        "year": year,
        "target": target,
        "targetId": target_row["id"] if target_row else None,
        "achieved": achieved,
        "remaining": max(0, target - achieved),
        "percentageCompleted": pct,
    }
