"""
Shared pytest fixtures.

Uses a SQLite file database so no Postgres is required for tests. The
URL is exported before `habitchain` is imported so the app's own engine,
the start-up seeding and these fixtures all share one database.
"""
import os

os.environ["DATABASE_URL"] = "sqlite:///./test_habitchain.db"

import uuid

import pytest
from fastapi.testclient import TestClient

import habitchain.models  # noqa: F401  (register tables on Base.metadata)
from habitchain.db.base import Base, SessionLocal, engine, get_db
from habitchain.main import app
from habitchain.models.badge import BadgeDefinition
from habitchain.services.badge_catalog import seed_default_badges


def override_get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    # Default catalog (normally seeded at app start-up)
    db = SessionLocal()
    try:
        seed_default_badges(db)
    finally:
        db.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = SessionLocal()
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
def user_id() -> str:
    """A fresh user per test; the database is shared across the session."""
    return f"user-{uuid.uuid4().hex[:12]}"


@pytest.fixture()
def badge_ids(db) -> dict[str, int]:
    """Catalog badge name -> id."""
    return {b.name: b.id for b in db.query(BadgeDefinition).all()}
