"""
Shared pytest fixtures for the SalesDesk test suite.

Environment is set BEFORE any salesdesk import so the cached settings see it.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["ENABLE_REFRESH_LOOPS"] = "false"
os.environ["ADMIN_EMAILS"] = "boss@example.com"

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import salesdesk.models  # noqa: F401  (registers tables)
from salesdesk.db import Base, get_db
from salesdesk.main import app
from salesdesk.services.roles import role_cache

SALESMAN = {"X-User-Id": "user-anna", "X-User-Email": "anna@example.com"}
OTHER_SALESMAN = {"X-User-Id": "user-ben", "X-User-Email": "ben@example.com"}
ADMIN = {"X-User-Id": "user-boss", "X-User-Email": "boss@example.com"}

NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


# ── Database (in-memory, one per test) ───────────────────────────────────────

@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def clear_role_cache():
    role_cache.clear()
    yield
    role_cache.clear()


# ── HTTP client ──────────────────────────────────────────────────────────────

@pytest.fixture
def client(session_factory):
    """TestClient against the in-memory DB. Not used as a context manager,
    so startup (init_db + refresh loops) does not run."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.pop(get_db, None)


def lead_payload(**overrides):
    payload = {
        "name": "Matti Meikäläinen",
        "company": "Acme Oy",
        "email": "matti@acme.fi",
        "phone": "+358401234567",
        "status": "prospect",
        "call_status": "not_called",
        "revenue": "1M",
        "industry": "IT",
    }
    payload.update(overrides)
    return payload


def deal_payload(**overrides):
    payload = {
        "title": "Acme rollout",
        "company": "Acme Oy",
        "deal_value": 1000,
        "payment_type": "one_time",
        "installation_fee": 200,
        "closed_date": "2024-05-02",
        "status": "active",
    }
    payload.update(overrides)
    return payload
