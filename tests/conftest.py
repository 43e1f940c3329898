"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
Environment is set before the app is imported so Settings picks it up.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_ruya.db")
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")
os.environ.setdefault("APP_ENV", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ruya.db.base import Base, get_db
from ruya.main import app
from ruya.models.dream import Dream
from ruya.services.submission import submission_limiter

SQLITE_URL = "sqlite:///./test_ruya.db"
ADMIN_TOKEN = os.environ["ADMIN_TOKEN"]

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_state():
    submission_limiter.reset()
    yield
    db = TestingSessionLocal()
    try:
        db.query(Dream).delete()
        db.commit()
    finally:
        db.close()
    submission_limiter.reset()


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture()
def clock():
    return FakeClock()


def make_dream_fields(**overrides) -> dict:
    fields = {
        "name": "Aisha",
        "gender": "female",
        "marital_status": "single",
        "dream": "I was walking beside a river of clear water at dawn.",
        "ip_address": "10.0.0.1",
    }
    fields.update(overrides)
    return fields


def submission_body(**overrides) -> dict:
    body = {
        "name": "Aisha",
        "gender": "female",
        "maritalStatus": "single",
        "dream": "I was walking beside a river of clear water at dawn.",
    }
    body.update(overrides)
    return body
