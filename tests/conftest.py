"""
Shared fixtures: a throwaway SQLite database per test, a seeding helper and
an authenticated HTTP client.
"""
import os
import uuid

# must be set before config/db.connection are imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./analytics_test.db")

from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from fastapi_cache import FastAPICache
from fastapi_cache.backends.inmemory import InMemoryBackend
from sqlalchemy.orm import sessionmaker

from db.connection import Base, get_db, get_session_factory, make_engine
from db.models import (
    AllFinance, Client, ClientPayment, ClientProductPayment, LeaderBoard,
    ManagerTarget, PaymentStage, UserDetails, UserRole,
)
from routes.auth.JWTSecurity import create_access_token

# Tuesday
FIXED_NOW = datetime(2026, 1, 20, 12, 0, 0)


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'analytics.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


class Seeder:
    """Small builders for the rows the engine reads. Every call commits."""

    def __init__(self, db):
        self.db = db
        self._n = 0

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def user(self, role=UserRole.counsellor, manager=None, name=None, **kw):
        self._n += 1
        return self._save(UserDetails(
            full_name=name or f"User {self._n}",
            email=f"user{self._n}@example.com",
            emp_id=f"EMP{self._n:03d}",
            role=role,
            manager_id=manager.id if manager else None,
            **kw,
        ))

    def counsellor(self, manager=None, **kw):
        return self.user(UserRole.counsellor, manager=manager, **kw)

    def manager(self, **kw):
        return self.user(UserRole.manager, **kw)

    def admin(self, **kw):
        return self.user(UserRole.admin, **kw)

    def client(self, counsellor, enrollment_date, archived=False):
        self._n += 1
        return self._save(Client(
            counsellor_id=counsellor.id,
            fullname=f"Client {self._n}",
            enrollment_date=enrollment_date,
            archived=archived,
        ))

    def payment(self, client, amount, payment_date=None, stage=PaymentStage.INITIAL,
                total_payment=None, created_at=None):
        return self._save(ClientPayment(
            client_id=client.id,
            stage=stage,
            amount=Decimal(str(amount)),
            total_payment=Decimal(str(total_payment)) if total_payment is not None else None,
            payment_date=payment_date,
            created_at=created_at or datetime(2026, 1, 1, 9, 0),
        ))

    def product(self, client, product_name, amount=None, payment_date=None,
                entity=None, entity_type=None, created_at=None):
        return self._save(ClientProductPayment(
            client_id=client.id,
            product_name=product_name,
            amount=Decimal(str(amount)) if amount is not None else None,
            entity_type=entity_type,
            entity_id=entity.id if entity is not None else None,
            payment_date=payment_date,
            created_at=created_at or datetime(2026, 1, 1, 9, 0),
        ))

    def entity(self, model, **fields):
        return self._save(model(**fields))

    def finance(self, client, amount, payment_date, another_amount=None, another_date=None):
        self._n += 1
        fin = self._save(AllFinance(
            amount=Decimal(str(amount)),
            payment_date=payment_date,
            another_payment_amount=Decimal(str(another_amount)) if another_amount is not None else None,
            another_payment_date=another_date,
            invoice_no=f"INV-{self._n}",
        ))
        self.product(client, "ALL_FINANCE_EMPLOYEMENT", entity=fin, entity_type="allFinance_id")
        return fin

    def target(self, counsellor, target, month, year, manager=None):
        return self._save(LeaderBoard(
            counsellor_id=counsellor.id,
            manager_id=manager.id if manager else None,
            target=target,
            month=month,
            year=year,
        ))

    def manager_target(self, start_date, end_date, manager=None, manager_ids=None, **targets):
        return self._save(ManagerTarget(
            manager_id=manager.id if manager else None,
            manager_ids=manager_ids or [],
            start_date=start_date,
            end_date=end_date,
            **targets,
        ))


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def jan_2026():
    """(start, end) dates of January 2026"""
    return date(2026, 1, 1), date(2026, 1, 31)


@pytest.fixture
def app(session_factory):
    from main import app as fastapi_app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _get_db
    fastapi_app.dependency_overrides[get_session_factory] = lambda: session_factory
    # the in-memory store is shared between instances; a fresh prefix isolates tests
    # init() is a no-op once initialised, so reset first for the new prefix to apply
    FastAPICache.reset()
    FastAPICache.init(InMemoryBackend(), prefix=f"test-{uuid.uuid4().hex}")
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def http(app):
    return TestClient(app)


@pytest.fixture
def auth():
    """Returns a function building the bearer header for a user"""
    def _headers(user):
        token = create_access_token({"sub": user.id, "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def now():
    return FIXED_NOW
