"""
Content store handle.

A single ``Database`` is built when the application starts, kept on
``app.state`` and disposed on shutdown. Request handlers receive sessions from
it through the ``get_db`` dependency.
"""

import logging
from typing import Generator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

MAX_DB_INT = 2147483647  # Max PostgreSQL integer


class Database:
    """Owns the SQLAlchemy engine and session factory for one process."""

    def __init__(self, url: str, echo: bool = False, engine: Optional[Engine] = None):
        self.url = url
        if engine is None:
            engine = create_engine(url, echo=echo, **self._engine_options(url))
        self.engine = engine
        self.session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    @staticmethod
    def _engine_options(url: str) -> dict:
        if url.startswith("sqlite"):
            options = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url:
                options["poolclass"] = StaticPool
            return options
        return {"pool_pre_ping": True}

    def create_all(self) -> None:
        """Create any missing tables."""
        # Import models so every table is registered on the metadata
        import app.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def ping(self) -> bool:
        """Check that the store answers a trivial query."""
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connections closed")


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a session bound to the application's store handle."""
    db = get_database(request).session()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
