"""Shared pytest fixtures for backend tests."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterator

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from app.config import get_settings
from app.database import Database, get_db
from app.main import app
from app.models import Base, User


@pytest.fixture()
def test_engine() -> Iterator[Engine]:
    """Provide an in-memory SQLite engine for isolated tests."""

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def database(test_engine) -> Database:
    return Database("sqlite+pysqlite:///:memory:", engine=test_engine)


@pytest.fixture()
def session_factory(database) -> sessionmaker[Session]:
    """Return a session factory bound to the test engine."""

    return database.session_factory


@pytest.fixture()
def db_session(database) -> Iterator[Session]:
    """Yield a SQLAlchemy session for unit tests."""

    with database.session() as session:
        yield session


@pytest.fixture()
def client(database) -> Iterator[TestClient]:
    """Yield a FastAPI TestClient with the database dependency overridden."""

    def override_get_db() -> Iterator[Session]:
        with database.session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(session_factory) -> Callable[..., User]:
    """Create users directly in the database, as the identity provider would."""

    counter = {"value": 0}

    def _make_user(name: str | None = None, **fields) -> User:
        counter["value"] += 1
        with session_factory() as session:
            user = User(
                open_id=fields.pop("open_id", f"open-{counter['value']}"),
                name=name or f"User {counter['value']}",
                **fields,
            )
            session.add(user)
            session.commit()
            return user

    return _make_user


def issue_token(user_id: int, lifetime: timedelta = timedelta(hours=1)) -> str:
    """Sign a token the way the external identity provider does."""

    settings = get_settings()
    payload = {"sub": str(user_id), "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def auth_headers(user: User | int) -> dict[str, str]:
    user_id = user if isinstance(user, int) else user.id
    token = issue_token(user_id)
    return {"Authorization": f"Bearer {token}"}
