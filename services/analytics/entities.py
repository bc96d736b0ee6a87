"""
Product entity registry.

A ProductPayment without its own amount points into one of the product
tables through (entity_type, entity_id). The set of tables is closed: every
entity_type the engine understands is listed here with the date column that
places it in time and the amount column (if any) that makes it revenue.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from db.models import (
    AirTicket, AllFinance, BeaconAccount, CreditCard, ForexCard, ForexFees,
    Ielts, Insurance, Loan, NewSell, SimCard, TutionFees, VisaExtension,
)

CORE_PRODUCT = "ALL_FINANCE_EMPLOYEMENT"
CORE_ENTITY_TYPE = "allFinance_id"

# counted as sales, never added to revenue
COUNT_ONLY_PRODUCTS = (
    "LOAN_DETAILS",
    "FOREX_CARD",
    "TUTION_FEES",
    "CREDIT_CARD",
    "SIM_CARD_ACTIVATION",
    "INSURANCE",
    "BEACON_ACCOUNT",
    "AIR_TICKET",
    "FOREX_FEES",
)
COUNT_ONLY_PRODUCTS_LOWER = tuple(p.lower() for p in COUNT_ONLY_PRODUCTS)


@dataclass(frozen=True)
class ProductEntity:
    entity_type: str
    model: type
    date_column: object
    amount_column: Optional[object]
    count_only: bool

    @property
    def contributes_amount(self) -> bool:
        return self.amount_column is not None and not self.count_only


def _entity(entity_type, model, date_column, amount_column, count_only) -> ProductEntity:
    return ProductEntity(entity_type, model, date_column, amount_column, count_only)


# other-product entities, in the order they are aggregated
OTHER_PRODUCT_ENTITIES: Tuple[ProductEntity, ...] = (
    _entity("visaextension_id", VisaExtension, VisaExtension.extension_date, VisaExtension.amount, False),
    _entity("newSell_id", NewSell, NewSell.sell_date, NewSell.amount, False),
    _entity("ielts_id", Ielts, Ielts.enrollment_date, Ielts.amount, False),
    _entity("loan_id", Loan, Loan.disbursment_date, Loan.amount, True),
    _entity("airTicket_id", AirTicket, AirTicket.ticket_date, AirTicket.amount, True),
    _entity("insurance_id", Insurance, Insurance.insurance_date, Insurance.amount, True),
    _entity("forexCard_id", ForexCard, ForexCard.card_date, None, True),
    _entity("forexFees_id", ForexFees, ForexFees.fee_date, ForexFees.amount, True),
    _entity("tutionFees_id", TutionFees, TutionFees.fee_date, None, True),
    _entity("creditCard_id", CreditCard, CreditCard.card_date, None, True),
    _entity("simCard_id", SimCard, SimCard.sim_card_giving_date, None, True),
    _entity("beaconAccount_id", BeaconAccount, BeaconAccount.opening_date, BeaconAccount.amount, True),
)

CORE_ENTITY = _entity(CORE_ENTITY_TYPE, AllFinance, AllFinance.payment_date, AllFinance.amount, False)

ENTITY_REGISTRY: Dict[str, ProductEntity] = {
    e.entity_type: e for e in OTHER_PRODUCT_ENTITIES + (CORE_ENTITY,)
}


def resolve_entity(entity_type: Optional[str]) -> Optional[ProductEntity]:
    if not entity_type:
        return None
    return ENTITY_REGISTRY.get(entity_type)

