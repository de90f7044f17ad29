"""
Pytest fixtures for the cashdesk test suite.

Every test gets its own file-backed SQLite database under ``tmp_path`` so that
threaded tests can open independent connections.
"""
import logging
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from cashdesk.database import get_db
from cashdesk.logging_config import configure_logging, reset_logging
from cashdesk.main import app
from cashdesk.models import Base, Role, User
from cashdesk.security import create_access_token


class FakeClock:
    """Deterministic clock; call it to read, ``advance`` to move forward."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current

    def set(self, value: datetime) -> datetime:
        self.current = value
        return self.current


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture
def engine(tmp_path):
    db_engine = create_engine(
        f"sqlite:///{tmp_path / 'cashdesk_test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=db_engine)
    yield db_engine
    db_engine.dispose()


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


def _make_user(db, username, role=Role.CASHIER):
    user = User(username=username, full_name=username.title(), password_hash="not-a-real-hash", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def owner(db):
    return _make_user(db, "cashier1")


@pytest.fixture
def other_user(db):
    return _make_user(db, "cashier2")


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 10, 9, 0, 0))


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


def auth_headers(user) -> dict:
    token = create_access_token({"sub": user.username, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers(owner):
    return auth_headers(owner)


@pytest.fixture
def other_headers(other_user):
    return auth_headers(other_user)
