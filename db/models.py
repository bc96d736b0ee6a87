from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Boolean, Numeric,
    JSON, ForeignKey, func, Enum as SAEnum, Index,
)
from sqlalchemy.orm import relationship
from db.connection import Base
import enum


class UserRole(str, enum.Enum):
    admin = "admin"
    manager = "manager"
    counsellor = "counsellor"


class PaymentStage(str, enum.Enum):
    INITIAL = "INITIAL"
    BEFORE_VISA = "BEFORE_VISA"
    AFTER_VISA = "AFTER_VISA"
    SUBMITTED_VISA = "SUBMITTED_VISA"


# stages whose amount counts as money received
PAYING_STAGES = (
    PaymentStage.INITIAL,
    PaymentStage.BEFORE_VISA,
    PaymentStage.AFTER_VISA,
)


class FinanceApprovalStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class UserDetails(Base):
    __tablename__ = "users"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    emp_id        = Column(String(50), nullable=True, unique=True)
    full_name     = Column(String(150), nullable=False)
    email         = Column(String(150), nullable=False, unique=True, index=True)
    role          = Column(SAEnum(UserRole, name="user_role_enum"), nullable=False, index=True)
    manager_id    = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    designation   = Column(String(100), nullable=True)
    is_supervisor = Column(Boolean, nullable=False, default=False)
    is_active     = Column(Boolean, nullable=False, default=True)

    created_at    = Column(DateTime, server_default=func.now(), nullable=False)

    manager = relationship("UserDetails", remote_side=[id], backref="counsellors")


class Client(Base):
    __tablename__ = "client_information"

    id              = Column(Integer, primary_key=True, autoincrement=True)
    counsellor_id   = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    fullname        = Column(String(150), nullable=False)
    enrollment_date = Column(Date, nullable=False, index=True)
    archived        = Column(Boolean, nullable=False, default=False)
    created_at      = Column(DateTime, server_default=func.now(), nullable=False)

    counsellor = relationship("UserDetails")
    payments   = relationship("ClientPayment", back_populates="client")


class ClientPayment(Base):
    __tablename__ = "client_payment"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    client_id     = Column(Integer, ForeignKey("client_information.id"), nullable=False, index=True)
    # expected total for the client, repeated on each of its payments
    total_payment = Column(Numeric(12, 2), nullable=True)
    stage         = Column(SAEnum(PaymentStage, name="payment_stage_enum"), nullable=False, index=True)
    amount        = Column(Numeric(12, 2), nullable=False)
    payment_date  = Column(Date, nullable=True, index=True)
    created_at    = Column(DateTime, server_default=func.now(), nullable=False)

    client = relationship("Client", back_populates="payments")


class ClientProductPayment(Base):
    __tablename__ = "client_product_payment"

    id           = Column(Integer, primary_key=True, autoincrement=True)
    client_id    = Column(Integer, ForeignKey("client_information.id"), nullable=False, index=True)
    product_name = Column(String(100), nullable=False, index=True)
    # set for self-contained sales; null when the sale lives in an entity table
    amount       = Column(Numeric(12, 2), nullable=True)
    entity_type  = Column(String(50), nullable=True)
    entity_id    = Column(Integer, nullable=True)
    payment_date = Column(Date, nullable=True, index=True)
    created_at   = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_product_payment_entity", "entity_type", "entity_id"),
    )


# ----------------- product entity tables -----------------

class VisaExtension(Base):
    __tablename__ = "visa_extension"

    id             = Column(Integer, primary_key=True, autoincrement=True)
    extension_type = Column(String(100), nullable=True)
    amount         = Column(Numeric(12, 2), nullable=False)
    extension_date = Column(Date, nullable=True)
    created_at     = Column(DateTime, server_default=func.now(), nullable=False)


class NewSell(Base):
    __tablename__ = "new_sell"

    id           = Column(Integer, primary_key=True, autoincrement=True)
    service_name = Column(String(150), nullable=True)
    amount       = Column(Numeric(12, 2), nullable=False)
    sell_date    = Column(Date, nullable=True)
    created_at   = Column(DateTime, server_default=func.now(), nullable=False)


class Ielts(Base):
    __tablename__ = "ielts"

    id              = Column(Integer, primary_key=True, autoincrement=True)
    amount          = Column(Numeric(12, 2), nullable=False)
    enrollment_date = Column(Date, nullable=True)
    created_at      = Column(DateTime, server_default=func.now(), nullable=False)


class Loan(Base):
    __tablename__ = "loan"

    id               = Column(Integer, primary_key=True, autoincrement=True)
    amount           = Column(Numeric(12, 2), nullable=False)
    disbursment_date = Column(Date, nullable=True)
    created_at       = Column(DateTime, server_default=func.now(), nullable=False)


class AirTicket(Base):
    __tablename__ = "air_ticket"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    is_ticket_booked = Column(Boolean, nullable=False, default=False)
    amount      = Column(Numeric(12, 2), nullable=True)
    ticket_date = Column(Date, nullable=True)
    created_at  = Column(DateTime, server_default=func.now(), nullable=False)


class Insurance(Base):
    __tablename__ = "insurance"

    id             = Column(Integer, primary_key=True, autoincrement=True)
    amount         = Column(Numeric(12, 2), nullable=True)
    policy_number  = Column(String(100), nullable=True)
    insurance_date = Column(Date, nullable=True)
    created_at     = Column(DateTime, server_default=func.now(), nullable=False)


class ForexCard(Base):
    __tablename__ = "forex_card"

    id         = Column(Integer, primary_key=True, autoincrement=True)
    status     = Column(String(50), nullable=True)
    card_date  = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class ForexFees(Base):
    __tablename__ = "forex_fees"

    id         = Column(Integer, primary_key=True, autoincrement=True)
    side       = Column(String(10), nullable=True)
    amount     = Column(Numeric(12, 2), nullable=True)
    fee_date   = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class TutionFees(Base):
    __tablename__ = "tution_fees"

    id         = Column(Integer, primary_key=True, autoincrement=True)
    status     = Column(String(50), nullable=True)
    fee_date   = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class CreditCard(Base):
    __tablename__ = "credit_card"

    id         = Column(Integer, primary_key=True, autoincrement=True)
    activated  = Column(Boolean, nullable=False, default=False)
    card_date  = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class SimCard(Base):
    __tablename__ = "sim_card"

    id                   = Column(Integer, primary_key=True, autoincrement=True)
    activated            = Column(Boolean, nullable=False, default=False)
    sim_card_giving_date = Column(Date, nullable=True)
    created_at           = Column(DateTime, server_default=func.now(), nullable=False)


class BeaconAccount(Base):
    __tablename__ = "beacon_account"

    id           = Column(Integer, primary_key=True, autoincrement=True)
    amount       = Column(Numeric(12, 2), nullable=True)
    opening_date = Column(Date, nullable=True)
    created_at   = Column(DateTime, server_default=func.now(), nullable=False)


class AllFinance(Base):
    """Finance/employment approvals backing the core product."""
    __tablename__ = "all_finance"

    id                     = Column(Integer, primary_key=True, autoincrement=True)
    amount                 = Column(Numeric(12, 2), nullable=False)
    payment_date           = Column(Date, nullable=True, index=True)
    # second installment of a partially paid approval
    another_payment_amount = Column(Numeric(12, 2), nullable=True)
    another_payment_date   = Column(Date, nullable=True)
    invoice_no             = Column(String(50), nullable=True, unique=True)
    partial_payment        = Column(Boolean, nullable=False, default=False)
    approval_status        = Column(
                                SAEnum(FinanceApprovalStatus, name="finance_approval_status_enum"),
                                nullable=False,
                                default=FinanceApprovalStatus.pending,
                             )
    remarks                = Column(Text, nullable=True)
    created_at             = Column(DateTime, server_default=func.now(), nullable=False)


# ----------------- targets -----------------

class LeaderBoard(Base):
    __tablename__ = "leader_board"

    id              = Column(Integer, primary_key=True, autoincrement=True)
    manager_id      = Column(Integer, ForeignKey("users.id"), nullable=True)
    counsellor_id   = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    target          = Column(Integer, nullable=False, default=0)
    achieved_target = Column(Integer, nullable=False, default=0)
    rank            = Column(Integer, nullable=False, default=0)
    month           = Column(Integer, nullable=False)
    year            = Column(Integer, nullable=False)
    created_at      = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_leader_board_period", "counsellor_id", "year", "month"),
    )


class ManagerTarget(Base):
    __tablename__ = "manager_targets"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    # single-manager targets set manager_id; shared targets list everyone in manager_ids
    manager_id  = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    manager_ids = Column(JSON, nullable=False, default=list)
    start_date  = Column(Date, nullable=False)
    end_date    = Column(Date, nullable=False)

    core_sale_target_clients     = Column(Integer, nullable=False, default=0)
    core_sale_target_revenue     = Column(Numeric(14, 2), nullable=False, default=0)
    core_product_target_clients  = Column(Integer, nullable=False, default=0)
    core_product_target_revenue  = Column(Numeric(14, 2), nullable=False, default=0)
    other_product_target_clients = Column(Integer, nullable=False, default=0)
    other_product_target_revenue = Column(Numeric(14, 2), nullable=False, default=0)
    overall                      = Column(Numeric(14, 2), nullable=False, default=0)

    created_at  = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at  = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_manager_targets_manager_dates", "manager_id", "start_date", "end_date"),
    )
