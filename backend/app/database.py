from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.config import Settings

logger = logging.getLogger(__name__)


class Database:
    """Explicitly constructed database handle with a defined lifecycle.

    The application creates one instance at startup and disposes it at
    shutdown; request handlers receive sessions through :func:`get_db`.
    """

    def __init__(self, url: str, *, echo: bool = False, engine: Engine | None = None) -> None:
        if engine is None:
            options: dict = {"echo": echo, "future": True, "pool_pre_ping": True}
            if not url.startswith("sqlite"):
                # pool_size: connections kept open persistently
                # max_overflow: extra connections created on demand
                options.update(pool_size=10, max_overflow=20)
            engine = create_engine(url, **options)
        self.engine = engine
        self.session_factory = sessionmaker(
            bind=engine, autocommit=False, autoflush=False, expire_on_commit=False, future=True
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.database_url, echo=settings.debug)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager for short-lived database sessions."""

        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def dispose(self) -> None:
        logger.info("Disposing database engine")
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.database
    with database.session() as db:
        yield db
