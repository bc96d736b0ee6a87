# services/analytics/aggregators.py
"""
Metric aggregators.

Every function here is a pure read: (db, DateRange, RoleScope) in, a count
and/or a Decimal amount out. Two date semantics are kept as separately named
functions on purpose:

  * "enrollment" variants place a client by Client.enrollment_date
  * "by_payment_date" variants place a payment by its payment_date, falling
    back to created_at when payment_date was never filled in

Amounts stay Decimal until they reach the response; format_amount() renders
them with two fraction digits.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List

from sqlalchemy import and_, or_, func, select, distinct
from sqlalchemy.orm import Session

from db.models import (
    AllFinance, Client, ClientPayment, ClientProductPayment, PaymentStage, PAYING_STAGES,
)
from services.analytics.date_ranges import DateRange
from services.analytics.entities import (
    CORE_ENTITY_TYPE, CORE_PRODUCT, COUNT_ONLY_PRODUCTS_LOWER, OTHER_PRODUCT_ENTITIES,
    ProductEntity, resolve_entity,
)
from services.analytics.scope import RoleScope

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


# ----------------- value helpers -----------------
def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

def round_amount(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

def format_amount(value) -> str:
    return f"{round_amount(value):.2f}"


@dataclass(frozen=True)
class ProductMetrics:
    count: int = 0
    amount: Decimal = ZERO

    def __add__(self, other: "ProductMetrics") -> "ProductMetrics":
        return ProductMetrics(self.count + other.count, self.amount + other.amount)


@dataclass(frozen=True)
class PendingAmount:
    pending: Decimal = ZERO
    expected: Decimal = ZERO
    paid: Decimal = ZERO
    breakdown: Dict[str, Decimal] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, object]:
        return {
            "pendingAmount": format_amount(self.pending),
            "breakdown": {k: format_amount(v) for k, v in self.breakdown.items()},
        }


_BREAKDOWN_KEYS = {
    PaymentStage.INITIAL: "initial",
    PaymentStage.BEFORE_VISA: "beforeVisa",
    PaymentStage.AFTER_VISA: "afterVisa",
    PaymentStage.SUBMITTED_VISA: "submittedVisa",
}


# ----------------- predicate helpers -----------------
def _client_conditions(scope: RoleScope) -> list:
    conds = [Client.archived.is_(False)]
    if scope.restricts_rows:
        conds.append(Client.counsellor_id == scope.counsellor_id)
    return conds

def _enrolled_within(r: DateRange):
    return and_(Client.enrollment_date >= r.start_date, Client.enrollment_date <= r.end_date)

def _date_within(column, r: DateRange):
    return and_(column.isnot(None), column >= r.start_date, column <= r.end_date)

def _paid_within(r: DateRange, date_column, created_column):
    """payment_date in range, or no payment_date and created_at in range"""
    return or_(
        _date_within(date_column, r),
        and_(date_column.is_(None), created_column >= r.start, created_column <= r.end),
    )

def _has_paying_payment():
    return Client.id.in_(
        select(ClientPayment.client_id).where(ClientPayment.stage.in_(PAYING_STAGES))
    )


# ------------------------------
# 1) Clients / core sale counts
# ------------------------------
def total_clients(db: Session, r: DateRange, scope: RoleScope) -> int:
    """Non-archived clients enrolled in range with at least one paying-stage payment (any date)."""
    count = (
        db.query(func.count(Client.id))
          .filter(*_client_conditions(scope), _enrolled_within(r), _has_paying_payment())
          .scalar()
    )
    return int(count or 0)


def core_service_count(db: Session, r: DateRange, scope: RoleScope) -> int:
    """Core sale count by enrollment date. One client counts once however many stages it paid."""
    return total_clients(db, r, scope)


def core_service_count_by_payment_date(db: Session, r: DateRange, scope: RoleScope) -> int:
    count = (
        db.query(func.count(distinct(ClientPayment.client_id)))
          .select_from(ClientPayment)
          .join(Client, ClientPayment.client_id == Client.id)
          .filter(
              *_client_conditions(scope),
              ClientPayment.stage.in_(PAYING_STAGES),
              _paid_within(r, ClientPayment.payment_date, ClientPayment.created_at),
          )
          .scalar()
    )
    return int(count or 0)


# ------------------------------
# 2) Core sale amounts
# ------------------------------
def core_sale_amount(db: Session, r: DateRange, scope: RoleScope) -> Decimal:
    """
    Paying-stage amounts dated in range, for clients who also enrolled in
    range. An old client paying this month does not add here.
    """
    total = (
        db.query(func.coalesce(func.sum(ClientPayment.amount), 0))
          .select_from(ClientPayment)
          .join(Client, ClientPayment.client_id == Client.id)
          .filter(
              *_client_conditions(scope),
              _enrolled_within(r),
              ClientPayment.stage.in_(PAYING_STAGES),
              _date_within(ClientPayment.payment_date, r),
          )
          .scalar()
    )
    return to_decimal(total)


def core_sale_amount_by_payment_date(db: Session, r: DateRange, scope: RoleScope) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(ClientPayment.amount), 0))
          .select_from(ClientPayment)
          .join(Client, ClientPayment.client_id == Client.id)
          .filter(
              *_client_conditions(scope),
              ClientPayment.stage.in_(PAYING_STAGES),
              _paid_within(r, ClientPayment.payment_date, ClientPayment.created_at),
          )
          .scalar()
    )
    return to_decimal(total)


# ------------------------------
# 3) Core product (finance approvals)
# ------------------------------
def _core_product_row(db: Session, scope: RoleScope, date_condition, amount_column):
    # count and amount come out of one statement so they share the predicate
    return (
        db.query(
            func.count(ClientProductPayment.id),
            func.coalesce(func.sum(amount_column), 0),
        )
        .select_from(ClientProductPayment)
        .join(
            AllFinance,
            and_(
                ClientProductPayment.entity_id == AllFinance.id,
                ClientProductPayment.entity_type == CORE_ENTITY_TYPE,
            ),
        )
        .join(Client, ClientProductPayment.client_id == Client.id)
        .filter(
            *_client_conditions(scope),
            ClientProductPayment.product_name == CORE_PRODUCT,
            date_condition,
        )
        .one()
    )


def core_product_metrics(db: Session, r: DateRange, scope: RoleScope) -> ProductMetrics:
    """Core product sales placed by all_finance.payment_date."""
    count, amount = _core_product_row(
        db, scope, _date_within(AllFinance.payment_date, r), AllFinance.amount
    )
    return ProductMetrics(int(count or 0), to_decimal(amount))


def core_product_metrics_with_installments(db: Session, r: DateRange, scope: RoleScope) -> ProductMetrics:
    """
    Same as core_product_metrics plus second installments, each placed by
    its own another_payment_date. Used by the monthly leaderboard and reports.
    """
    main = core_product_metrics(db, r, scope)
    count, amount = _core_product_row(
        db,
        scope,
        and_(
            _date_within(AllFinance.another_payment_date, r),
            AllFinance.another_payment_amount.isnot(None),
        ),
        AllFinance.another_payment_amount,
    )
    return main + ProductMetrics(int(count or 0), to_decimal(amount))


# ------------------------------
# 4) Other products
# ------------------------------
def entity_amounts(db: Session, entity_type: str, entity_ids: Iterable[int]) -> Decimal:
    """
    Sum of the entity table's amount over entity_ids. An entity type the
    registry does not know, or one without an amount column, is worth zero.
    """
    ids = sorted({i for i in entity_ids if i is not None})
    entity = resolve_entity(entity_type)
    if entity is None:
        logger.warning(f"Unknown product entity type '{entity_type}', counted as 0")
        return ZERO
    if entity.amount_column is None or not ids:
        return ZERO

    total = (
        db.query(func.coalesce(func.sum(entity.amount_column), 0))
          .filter(entity.model.id.in_(ids))
          .scalar()
    )
    return to_decimal(total)


def _entity_product_ids(db: Session, entity: ProductEntity, r: DateRange, scope: RoleScope) -> List[int]:
    rows = (
        db.query(ClientProductPayment.entity_id)
          .join(entity.model, ClientProductPayment.entity_id == entity.model.id)
          .join(Client, ClientProductPayment.client_id == Client.id)
          .filter(
              *_client_conditions(scope),
              ClientProductPayment.entity_type == entity.entity_type,
              ClientProductPayment.product_name != CORE_PRODUCT,
              _date_within(entity.date_column, r),
          )
          .all()
    )
    return [row.entity_id for row in rows]


def entity_product_metrics(db: Session, r: DateRange, scope: RoleScope) -> ProductMetrics:
    """Entity-backed other-product sales, each placed by its own table's date."""
    total = ProductMetrics()
    for entity in OTHER_PRODUCT_ENTITIES:
        ids = _entity_product_ids(db, entity, r, scope)
        amount = entity_amounts(db, entity.entity_type, ids) if entity.contributes_amount else ZERO
        total = total + ProductMetrics(len(ids), amount)
    return total


def direct_product_metrics(db: Session, r: DateRange, scope: RoleScope) -> ProductMetrics:
    """
    Other-product rows placed by ProductPayment.payment_date (no created_at
    fallback). Every non-core row counts; only priced, non count-only rows
    add to the amount.
    """
    base = (
        db.query(ClientProductPayment)
          .join(Client, ClientProductPayment.client_id == Client.id)
          .filter(
              *_client_conditions(scope),
              ClientProductPayment.product_name != CORE_PRODUCT,
              _date_within(ClientProductPayment.payment_date, r),
          )
    )
    count = base.with_entities(func.count(ClientProductPayment.id)).scalar()
    amount = (
        base.filter(
                ClientProductPayment.amount.isnot(None),
                func.lower(ClientProductPayment.product_name).notin_(COUNT_ONLY_PRODUCTS_LOWER),
            )
            .with_entities(func.coalesce(func.sum(ClientProductPayment.amount), 0))
            .scalar()
    )
    return ProductMetrics(int(count or 0), to_decimal(amount))


def other_product_metrics(db: Session, r: DateRange, scope: RoleScope) -> ProductMetrics:
    return direct_product_metrics(db, r, scope) + entity_product_metrics(db, r, scope)


# ------------------------------
# 5) Outstanding balance
# ------------------------------
def pending_amount(db: Session, r: DateRange, scope: RoleScope) -> PendingAmount:
    """
    expected = first total_payment seen per client (lowest payment id)
    paid     = every INITIAL/BEFORE_VISA/AFTER_VISA amount, any date
    pending  = max(0, expected - paid)

    Clients are those enrolled in r; callers pass the all-time range.
    """
    clients = (
        select(Client.id)
        .where(*_client_conditions(scope), _enrolled_within(r))
    )

    expected_by_client: Dict[int, Decimal] = {}
    rows = (
        db.query(ClientPayment.client_id, ClientPayment.total_payment)
          .filter(ClientPayment.client_id.in_(clients))
          .order_by(ClientPayment.client_id, ClientPayment.id)
          .all()
    )
    for client_id, total_payment in rows:
        expected_by_client.setdefault(client_id, to_decimal(total_payment))
    expected = sum(expected_by_client.values(), ZERO)

    breakdown = {key: ZERO for key in _BREAKDOWN_KEYS.values()}
    paid = ZERO
    stage_rows = (
        db.query(ClientPayment.stage, func.coalesce(func.sum(ClientPayment.amount), 0))
          .filter(ClientPayment.client_id.in_(clients))
          .group_by(ClientPayment.stage)
          .all()
    )
    for stage, total in stage_rows:
        amount = to_decimal(total)
        breakdown[_BREAKDOWN_KEYS[PaymentStage(stage)]] = amount
        if stage in PAYING_STAGES:
            paid += amount

    return PendingAmount(
        pending=max(ZERO, expected - paid),
        expected=expected,
        paid=paid,
        breakdown=breakdown,
    )


# ------------------------------
# 6) Report helpers
# ------------------------------
def archived_count_by_counsellor(db: Session, counsellor_ids: List[int]) -> Dict[int, int]:
    if not counsellor_ids:
        return {}
    rows = (
        db.query(Client.counsellor_id, func.count(Client.id))
          .filter(Client.archived.is_(True), Client.counsellor_id.in_(counsellor_ids))
          .group_by(Client.counsellor_id)
          .all()
    )
    return {cid: int(n) for cid, n in rows}
