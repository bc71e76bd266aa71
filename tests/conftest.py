"""Pytest fixtures for storefront tests."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "storefront-test-secret-0123456789abcdef")
os.environ.setdefault("ADMIN_EMAILS", "admin@example.com")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api.deps import get_db
from storefront.db.models import User
from storefront.db.session import Base
from storefront.main import app
from storefront.security.utils import create_access_token

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session():
    Base.metadata.create_all(engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def client(db_session):
    """Test client whose requests share the per-test database."""

    def _get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _make_user(db, username, email, role="customer"):
    user = User(username=username, email=email, password_hash="not-a-real-hash", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token, _ = create_access_token(user.email, user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(db_session):
    return _make_user(db_session, "alice", "alice@example.com")


@pytest.fixture
def other_customer(db_session):
    return _make_user(db_session, "bob", "bob@example.com")


@pytest.fixture
def admin(db_session):
    return _make_user(db_session, "root", "admin@example.com", role="admin")


@pytest.fixture
def order_payload():
    return {
        "items": [
            {"productId": 1, "name": "Grilled Chicken", "image": "chicken.png", "price": 15.99, "quantity": 2},
            {"productId": 2, "name": "Coke", "image": "coke.png", "price": 2.5, "quantity": 3},
        ],
        "amount": 39.48,
        "address": {"street": "1 Main St", "city": "Dublin", "state": "", "zip": "D01", "country": "IE"},
        "paymentMethod": "credit_card",
    }
