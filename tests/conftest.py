# tests/conftest.py
# PURPOSE: create a TestClient and override DB dependency to use a temp SQLite file.

# Ensure project root is on sys.path so `import taskflow` works when running pytest.
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Settings are read at import time: keep hashing cheap and limits predictable.
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_SIGNUP", "5/minute")
os.environ.setdefault("RATE_LIMIT_LOGIN", "5/minute")
os.environ.setdefault("RATE_LIMIT_PASSWORD_RESET", "3/minute")

import tempfile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from taskflow.db import Base, enable_sqlite_foreign_keys  # DB metadata
from taskflow.mailer import get_mailer
from taskflow.main import app  # FastAPI app
from taskflow.rate_limit import limiter
from taskflow.store import get_db  # original dependency to override

DEFAULT_PASSWORD = "password123"


class OutboxMailer:
    """Keeps messages in memory instead of sending them."""

    def __init__(self):
        self.messages = []

    def send(self, message) -> None:
        self.messages.append(message)


@pytest.fixture()
def session_factory():
    # 1) Create a temporary SQLite file (so data is isolated per test)
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    test_db_url = f"sqlite:///{tmp.name}"

    # 2) Engine with FK enforcement (ON DELETE CASCADE / SET NULL need it)
    engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    enable_sqlite_foreign_keys(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # 3) Create tables for tests
    Base.metadata.create_all(bind=engine)

    yield TestingSessionLocal

    # 4) Cleanup: drop tables, dispose engine, delete temp file
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    os.unlink(tmp.name)


@pytest.fixture()
def db(session_factory):
    """A separate session for asserting on (or arranging) database state."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def outbox():
    return OutboxMailer()


@pytest.fixture()
def client(session_factory, outbox):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: outbox
    limiter.reset()

    # context manager ensures proper startup/shutdown
    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def signup(client, email: str, password: str = DEFAULT_PASSWORD, name: str | None = "Test User"):
    r = client.post("/api/v1/auth/signup", json={"email": email, "password": password, "name": name})
    assert r.status_code == 201, r.text
    return r.json()["data"]["user"]


def login(client, email: str, password: str = DEFAULT_PASSWORD) -> dict:
    r = client.post("/api/v1/auth/login", data={"username": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture()
def make_user(client):
    """Factory: sign up + log in, returns auth headers."""

    def _make(email: str = "user@example.com", password: str = DEFAULT_PASSWORD) -> dict:
        signup(client, email, password)
        return login(client, email, password)

    return _make


@pytest.fixture()
def auth(make_user):
    return make_user()
