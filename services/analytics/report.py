# services/analytics/report.py
"""
Performance report: per-counsellor revenue for a period plus, for each
manager in view, the targets overlapping that period and what the team
achieved against them.

Access rules
  counsellor  only itself
  admin       everyone, or one manager's counsellors with manager_id
  manager     its own team (every counsellor when it is a supervisor),
              optionally narrowed to one team member with counsellor_id
"""
import logging
from decimal import Decimal
from functools import partial
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from db.models import ManagerTarget, UserRole
from services.analytics.aggregators import (
    ZERO, archived_count_by_counsellor, core_product_metrics_with_installments,
    core_sale_amount_by_payment_date, core_service_count_by_payment_date,
    format_amount, other_product_metrics, round_amount,
)
from services.analytics.date_ranges import DateRange
from services.analytics.errors import UnauthorizedScopeError
from services.analytics.fanout import SessionFactory, run_concurrently, run_job
from services.analytics.scope import RoleScope, parse_role
from utils.user_tree import get_user, list_counsellors, list_managers

logger = logging.getLogger(__name__)

PRODUCT_KEYS = ("coreSale", "coreProduct", "otherProduct")


# ----------------- scope -----------------
def resolve_report_scope(
    db: Session,
    actor_id: int,
    role,
    manager_id: Optional[int] = None,
    counsellor_id: Optional[int] = None,
) -> Tuple[List[Dict], List[Dict]]:
    """(counsellors, managers) the actor may see in the report."""
    r = parse_role(role)

    if r == UserRole.counsellor:
        if counsellor_id is not None and counsellor_id != actor_id:
            raise UnauthorizedScopeError("Counsellors can only view their own report")
        me = get_user(db, actor_id)
        return ([me] if me else []), []

    if r == UserRole.admin:
        if manager_id is not None:
            manager = get_user(db, manager_id)
            if not manager or manager["role"] != UserRole.manager.value:
                return [], []
            counsellors = list_counsellors(db, manager_id=manager_id)
            managers = [manager]
        else:
            counsellors = list_counsellors(db)
            managers = list_managers(db)
        if counsellor_id is not None:
            counsellors = [c for c in counsellors if c["id"] == counsellor_id]
        return counsellors, managers

    # manager
    if manager_id is not None and manager_id != actor_id:
        raise UnauthorizedScopeError("Managers can only view their own team")
    me = get_user(db, actor_id)
    if not me:
        return [], []
    team = list_counsellors(db) if me["is_supervisor"] else list_counsellors(db, manager_id=actor_id)
    if counsellor_id is not None:
        team = [c for c in team if c["id"] == counsellor_id]
        if not team:
            raise UnauthorizedScopeError(f"Counsellor {counsellor_id} is not in your team")
    return team, [me]


# ----------------- per counsellor -----------------
def counsellor_performance(db: Session, r: DateRange, counsellor_id: int) -> Dict:
    scope = RoleScope.counsellor(counsellor_id)
    core_product = core_product_metrics_with_installments(db, r, scope)
    other_product = other_product_metrics(db, r, scope)
    return {
        "coreSale": {
            "clients": core_service_count_by_payment_date(db, r, scope),
            "revenue": core_sale_amount_by_payment_date(db, r, scope),
        },
        "coreProduct": {"clients": core_product.count, "revenue": core_product.amount},
        "otherProduct": {"clients": other_product.count, "revenue": other_product.amount},
    }


def load_manager_targets(db: Session, r: DateRange) -> List[ManagerTarget]:
    """Targets whose period overlaps r."""
    rows = (
        db.query(ManagerTarget)
          .filter(ManagerTarget.start_date <= r.end_date, ManagerTarget.end_date >= r.start_date)
          .order_by(ManagerTarget.start_date, ManagerTarget.id)
          .all()
    )
    return [_target_row(t) for t in rows]


def _target_row(t: ManagerTarget) -> Dict:
    return {
        "id": t.id,
        "manager_id": t.manager_id,
        "manager_ids": list(t.manager_ids or []),
        "start_date": t.start_date.isoformat(),
        "end_date": t.end_date.isoformat(),
        "core_sale_target_clients": int(t.core_sale_target_clients or 0),
        "core_sale_target_revenue": format_amount(t.core_sale_target_revenue),
        "core_product_target_clients": int(t.core_product_target_clients or 0),
        "core_product_target_revenue": format_amount(t.core_product_target_revenue),
        "other_product_target_clients": int(t.other_product_target_clients or 0),
        "other_product_target_revenue": format_amount(t.other_product_target_revenue),
        "overall": format_amount(t.overall),
    }


# ----------------- assembly -----------------
def _format_achieved(values: Dict) -> Dict:
    return {
        key: {"clients": values[key]["clients"], "revenue": format_amount(values[key]["revenue"])}
        for key in PRODUCT_KEYS
    }


def _sum_achieved(rows: List[Dict]) -> Dict:
    total = {key: {"clients": 0, "revenue": ZERO} for key in PRODUCT_KEYS}
    for row in rows:
        for key in PRODUCT_KEYS:
            total[key]["clients"] += row[key]["clients"]
            total[key]["revenue"] += row[key]["revenue"]
    return total


def _performance_entry(c: Dict, perf: Dict, archived: int) -> Dict:
    enrollments = perf["coreSale"]["clients"]
    total = sum((perf[key]["revenue"] for key in PRODUCT_KEYS), ZERO)
    average = total / enrollments if enrollments else ZERO
    return {
        "counsellor_id": c["id"],
        "full_name": c["full_name"],
        "email": c["email"],
        "manager_id": c["manager_id"],
        "total_enrollments": enrollments,
        "core_sale_revenue": format_amount(perf["coreSale"]["revenue"]),
        "core_product_count": perf["coreProduct"]["clients"],
        "core_product_revenue": format_amount(perf["coreProduct"]["revenue"]),
        "other_product_count": perf["otherProduct"]["clients"],
        "other_product_revenue": format_amount(perf["otherProduct"]["revenue"]),
        "total_revenue": format_amount(total),
        "average_revenue_per_client": format_amount(average),
        "archived_count": archived,
    }


def _manager_entries(manager: Dict, targets: List[Dict], team: List[Tuple[Dict, Dict]]) -> List[Dict]:
    mid = manager["id"]
    achieved = _format_achieved(_sum_achieved([perf for _, perf in team]))
    by_counsellor = [
        {"counsellor_id": c["id"], "full_name": c["full_name"], **_format_achieved(perf)}
        for c, perf in team
    ]
    mine = [t for t in targets if t["manager_id"] == mid or mid in t["manager_ids"]]

    base = {
        "manager_id": mid,
        "manager_name": manager["full_name"],
        "achieved": achieved,
        "achieved_by_counsellor": by_counsellor,
    }
    if not mine:
        return [{**base, "target": None}]
    return [{**base, "target": t} for t in mine]


async def get_report(
    session_factory: SessionFactory,
    actor_id: int,
    role,
    date_range: DateRange,
    manager_id: Optional[int] = None,
    counsellor_id: Optional[int] = None,
) -> Dict:
    logger.info(
        f"Report requested by {actor_id} ({role}) manager_id={manager_id} "
        f"counsellor_id={counsellor_id} {date_range.start_date}..{date_range.end_date}"
    )
    counsellors, managers = await run_job(
        session_factory,
        partial(
            resolve_report_scope,
            actor_id=actor_id, role=role, manager_id=manager_id, counsellor_id=counsellor_id,
        ),
    )
    ids = [c["id"] for c in counsellors]

    jobs = [partial(counsellor_performance, r=date_range, counsellor_id=cid) for cid in ids]
    jobs.append(partial(archived_count_by_counsellor, counsellor_ids=ids))
    jobs.append(partial(load_manager_targets, r=date_range))
    results = await run_concurrently(session_factory, jobs)
    performances, archived, targets = results[:-2], results[-2], results[-1]

    pairs = list(zip(counsellors, performances))
    counsellor_rows = [_performance_entry(c, perf, archived.get(c["id"], 0)) for c, perf in pairs]

    # counsellors already are the team when one manager is in view
    single_team = manager_id is not None or parse_role(role) == UserRole.manager
    manager_data = []
    for m in managers:
        if single_team or m["is_supervisor"]:
            team = pairs
        else:
            team = [(c, perf) for c, perf in pairs if c["manager_id"] == m["id"]]
        manager_data.extend(_manager_entries(m, targets, team))

    total_revenue = sum((Decimal(row["total_revenue"]) for row in counsellor_rows), ZERO)
    return {
        "filter_start_date": date_range.start_date.isoformat(),
        "filter_end_date": date_range.end_date.isoformat(),
        "counsellor_performance": counsellor_rows,
        "manager_data": manager_data,
        "summary": {
            "total_counsellors": len(counsellor_rows),
            "total_enrollments": sum(row["total_enrollments"] for row in counsellor_rows),
            "total_revenue": format_amount(round_amount(total_revenue)),
        },
    }
