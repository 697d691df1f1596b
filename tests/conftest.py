"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from api import app, get_uow
from infrastructure import InMemoryDatabase, InMemoryUnitOfWork
from model import UserContext


@pytest.fixture
def db():
    """A fresh, empty in-memory database per test."""
    return InMemoryDatabase()


@pytest.fixture
def uow(db):
    """Unit of Work bound to the per-test database."""
    return InMemoryUnitOfWork(db)


@pytest.fixture
def user():
    return UserContext(user_id="user-1", user_email="planner@example.com")


@pytest.fixture
def today():
    return datetime.now(timezone.utc).date()


@pytest.fixture
def days(today):
    """Shift today by n days: days(-1) is yesterday."""
    return lambda n: today + timedelta(days=n)


@pytest.fixture
def api_client(db):
    """FastAPI TestClient whose Unit of Work uses the per-test database."""
    app.dependency_overrides[get_uow] = lambda: InMemoryUnitOfWork(db)
    yield TestClient(app)
    app.dependency_overrides.pop(get_uow, None)


@pytest.fixture
def auth_headers():
    return {"X-User-Id": "user-1", "X-User-Email": "planner@example.com"}
