"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for tests; the database is always in-memory SQLite
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("JWT_SECRET_KEY", "test_secret_key_for_testing_only")
os.environ.setdefault("LOG_TO_FILE", "False")
os.environ.setdefault("PRODUCTION", "False")
os.environ["REALTIME_WEBHOOK_URL"] = ""
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["EMAIL_USERNAME"] = ""

# Add the project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import itertools
from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from maxpulse_backend.core.config import settings
from maxpulse_backend.core.security import create_jwt_token
from maxpulse_backend.db.session import engine, SessionLocal, get_db
from maxpulse_backend.models import (
    Base,
    Distributor,
    Commission,
    LedgerTransaction,
    ActivationCode,
)
from maxpulse_backend.models.base import utcnow
from maxpulse_backend.services.realtime_service import RealtimeService


@pytest.fixture(autouse=True)
def reset_realtime_subscribers():
    """Subscribers are class level; start every test without any."""
    RealtimeService._subscribers.clear()
    yield
    RealtimeService._subscribers.clear()


@pytest.fixture
def db_session():
    """Session on a freshly created schema, dropped after the test."""
    Base.metadata.create_all(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def client(db_session):
    """TestClient whose requests share the test session."""
    from app import app

    app.dependency_overrides[get_db] = lambda: db_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def service_headers():
    return {"Authorization": f"Bearer {settings.SERVICE_ROLE_KEY}"}


@pytest.fixture
def auth_headers():
    """Bearer headers for a JWT caller: auth_headers(subject, role)."""
    def _headers(subject, role="distributor"):
        token = create_jwt_token(subject, extra_claims={"role": role})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def make_distributor(db_session):
    counter = itertools.count(1)

    def _make(**overrides):
        number = next(counter)
        values = {
            "distributor_code": f"WB20259{number:02d}",
            "name": f"Distributor {number}",
            "email": f"distributor{number}@maxpulse.app",
            "phone": f"+1555000{number:04d}",
            "commission_rate": Decimal("15.00"),
            "tier_level": 1,
            "status": "active",
        }
        values.update(overrides)
        distributor = Distributor(**values)
        db_session.add(distributor)
        db_session.commit()
        db_session.refresh(distributor)
        return distributor

    return _make


@pytest.fixture
def make_commission(db_session):
    """Commission plus its ledger line, as a purchase would write them."""
    def _make(distributor, amount="50.00", status="pending", session_id=None):
        amount = Decimal(amount)
        commission = Commission(
            distributor_id=distributor.id,
            product_id="prod_health_001",
            product_name="MaxPulse Health Assessment Package",
            product_type="product",
            client_name="Test Client",
            client_email="client@gmail.com",
            sale_amount=amount * 4,
            commission_rate=Decimal("25"),
            commission_amount=amount,
            status=status,
            session_id=session_id,
        )
        db_session.add(commission)
        db_session.flush()
        db_session.add(LedgerTransaction(
            distributor_id=distributor.id,
            transaction_type="commission_earned",
            amount=amount,
            status="completed" if status == "approved" else "pending",
            reference_id=commission.id,
        ))
        db_session.commit()
        db_session.refresh(commission)
        return commission

    return _make


@pytest.fixture
def make_activation_code(db_session):
    counter = itertools.count(1)

    def _make(distributor=None, **overrides):
        number = next(counter)
        values = {
            "code": f"TEST{number:04d}".replace("0", "A").replace("1", "B"),
            "distributor_id": distributor.id if distributor else None,
            "session_id": f"cs_test_{number}",
            "customer_name": f"Customer {number}",
            "customer_email": f"customer{number}@gmail.com",
            "assessment_type": "individual",
            "plan_type": "annual",
            "status": "pending",
            "expires_at": utcnow() + timedelta(days=30),
        }
        values.update(overrides)
        activation_code = ActivationCode(**values)
        db_session.add(activation_code)
        db_session.commit()
        db_session.refresh(activation_code)
        return activation_code

    return _make
