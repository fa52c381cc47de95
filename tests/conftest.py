"""
Pytest fixtures for clipbin tests.

Every test gets its own application backed by an in-memory SQLite database
and a frozen clock, so expiry can be exercised by advancing time.
"""

from collections.abc import Iterator
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from clipbin.core.config import Settings
from clipbin.core.timezone_utils import FrozenClock
from clipbin.db.session import Database
from clipbin.main import create_app
from clipbin.services.tokens import TokenCodec

TEST_SECRET = "test-signing-secret"
START = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings() -> Settings:
    return Settings(DATABASE_URL="sqlite://", JWT_SECRET=TEST_SECRET, LOG_LEVEL="WARNING")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
def codec(settings) -> TokenCodec:
    return TokenCodec.from_settings(settings)


@pytest.fixture
def database(settings) -> Iterator[Database]:
    database = Database(settings)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def db(database) -> Iterator[Session]:
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(settings, clock):
    return create_app(settings, clock=clock)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as c:
        yield c


@pytest.fixture
def app_db(app) -> Iterator[Session]:
    """A session on the application's own database, for asserting on rows."""
    session = app.state.db.SessionLocal()
    try:
        yield session
    finally:
        session.close()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client, username="alice", email="a@x.com", password="secret123"):
    return client.post("/api/auth/register", json={"username": username, "email": email, "password": password})


def login(client, username="alice", password="secret123"):
    return client.post("/api/auth/login", json={"username": username, "password": password})


@pytest.fixture
def alice_tokens(client) -> dict:
    """Register and log in alice; returns the login ``data`` payload."""
    assert register(client).status_code == 201
    resp = login(client)
    assert resp.status_code == 200
    return resp.json()["data"]
