"""Pytest fixtures for housekeeping testing.

Provides reusable test fixtures for:
- Database session with fresh tables per test
- A fixed reference clock for deterministic threshold checks
- Test clients with and without the API secret

Usage:
    def test_sweep(db_session, now):
        service = HousekeepingService(db=db_session)
        service.run_sweep(now)
"""

import sys
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

# Set environment variables BEFORE any imports to ensure they take effect
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("API_SECRET", "test-api-secret")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from models.base import Base
from models.poll import Poll  # noqa: F401
from models.option import Option  # noqa: F401
from models.participant import Participant  # noqa: F401
from models.vote import Vote  # noqa: F401
from database import get_db as database_get_db


TEST_API_SECRET = os.environ["API_SECRET"]

# SQLite in-memory by default; set DATABASE_URL to run against PostgreSQL
TEST_DATABASE_URL = os.environ["DATABASE_URL"]

if TEST_DATABASE_URL.startswith("sqlite"):
    # One shared connection so the TestClient thread sees the same database
    test_engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    test_engine = create_engine(TEST_DATABASE_URL)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    Each test gets a clean database state.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time every sweep in a test is evaluated against."""
    return datetime(2024, 6, 1, 2, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def client(db_session: Session):
    """Create a test client without credentials."""
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def authenticated_client(client: TestClient):
    """Create a test client sending the API secret as bearer token."""
    client.headers.update({"Authorization": f"Bearer {TEST_API_SECRET}"})
    return client
