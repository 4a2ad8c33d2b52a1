from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tablescout.analytics.store import clear_events
from tablescout.app import app
from tablescout.auth.users import register
from tablescout.db import models  # noqa: F401
from tablescout.db.database import Base, get_db
from tablescout.places.cache import clear_cache_stats
from tablescout.places.google_client import clear_inflight

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def _override_get_db():
    session = TestingSession()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture(autouse=True)
def _fresh_state():
    Base.metadata.create_all(bind=engine)
    clear_events()
    clear_cache_stats()
    clear_inflight()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSession()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def signup(c: TestClient, username: str = "diner", password: str = "password123") -> dict:
    resp = c.post("/auth/signup", json={"username": username, "password": password})
    assert resp.status_code == 200
    return resp.json()["user"]


@pytest.fixture
def user_client(client):
    signup(client)
    return client


@pytest.fixture
def admin_client(client, db):
    register(db, "admin", "admin-password", role="admin")
    db.commit()
    resp = client.post("/auth/login", json={"username": "admin", "password": "admin-password"})
    assert resp.status_code == 200
    return client
