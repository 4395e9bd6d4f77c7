"""
Shared fixtures: an in-memory SQLite database per test, account factories,
and a TestClient wired to the same database.
"""
import os
import sys
from datetime import datetime
from itertools import count
from uuid import uuid4

# Must be set before app modules create their engine
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_ENV", "test")

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth import AuthContext, create_token_pair, hash_password
from app.database import Base, get_db
from app.main import app
from app.models.db_models import AccountDB, AccountRole, ComplaintDB, utcnow


_complaint_numbers = count(1)


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# FACTORIES
# =============================================================================

def make_account(
    db,
    email: str = "admin@railmadad.com",
    password: str = "Admin@123",
    role: AccountRole = AccountRole.ADMIN,
    is_active: bool = True,
    name: str = "Control Room",
) -> AccountDB:
    account = AccountDB(
        id=str(uuid4()),
        name=name,
        email=email.lower(),
        password_hash=hash_password(password),
        role=role.value,
        is_active=is_active,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def make_complaint(db, **fields) -> ComplaintDB:
    """Insert a complaint row directly, bypassing the service (for read-side tests)."""
    created_at = fields.pop("created_at", None) or utcnow()
    values = {
        "id": str(uuid4()),
        "complaint_id": f"CMP-{created_at.year}-{next(_complaint_numbers):04d}",
        "name": "Test Rider",
        "email": "rider@example.com",
        "category": "cleanliness",
        "description": "Coach was not cleaned before departure.",
        "status": "pending",
        "priority": "medium",
        "created_at": created_at,
        "updated_at": created_at,
    }
    values.update(fields)
    complaint = ComplaintDB(**values)
    db.add(complaint)
    db.commit()
    db.refresh(complaint)
    return complaint


def context_for(account: AccountDB) -> AuthContext:
    return AuthContext(account_id=account.id, email=account.email, role=account.role)


def bearer(account: AccountDB) -> dict:
    tokens = create_token_pair(account.id, account.email, account.role)
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


def submission(**overrides) -> dict:
    """Service-level submission payload (snake_case keys)."""
    data = {
        "name": "Rajesh Kumar",
        "email": "Rajesh.Kumar@Example.com",
        "phone_number": "9876543210",
        "pnr": "1234567890",
        "train_number": "12345",
        "train_name": "Rajdhani Express",
        "category": "maintenance",
        "description": "Broken berth",
        "journey_date": datetime(2024, 11, 10),
        "station": "New Delhi",
        "coach": "A1",
        "seat_number": "45",
    }
    data.update(overrides)
    return data


@pytest.fixture
def admin_account(db):
    return make_account(db)


@pytest.fixture
def admin_context(admin_account):
    return context_for(admin_account)


@pytest.fixture
def rider_account(db):
    return make_account(db, email="rider@example.com", password="rider-pass", role=AccountRole.USER, name="Rider")


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
