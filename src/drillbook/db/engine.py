"""Database engine configuration and initialization."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from drillbook.db.models import Base

logger = logging.getLogger(__name__)

_engine: Engine | None = None
SessionLocal: sessionmaker[Session] = sessionmaker()


def configure_sqlite(engine: Engine, wal: bool = True) -> None:
    """Install the SQLite connection hooks.

    Turns on foreign keys (and WAL for file databases) and takes over
    BEGIN from pysqlite so SAVEPOINTs behave.
    """

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, _connection_record):
        # Stop pysqlite from issuing its own BEGIN
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        if wal:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def get_engine(db_url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy engine.

    Defaults:
      - ENVIRONMENT=development → sqlite:///data/drillbook.db
      - ENVIRONMENT=production  → DATABASE_URL env var
    """
    global _engine
    if _engine is not None:
        return _engine

    if db_url is None:
        env = os.environ.get("ENVIRONMENT", "development")
        if env == "production":
            db_url = os.environ.get("DATABASE_URL")
            if not db_url:
                raise ValueError(
                    "DATABASE_URL environment variable must be set in production"
                )
        else:
            data_dir = os.environ.get("DATA_DIR", "data")
            os.makedirs(data_dir, exist_ok=True)
            db_url = f"sqlite:///{data_dir}/drillbook.db"

    connect_args = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = float(os.environ.get("DRILLBOOK_DB_TIMEOUT", "30"))

    _engine = create_engine(db_url, connect_args=connect_args)
    SessionLocal.configure(bind=_engine)

    if db_url.startswith("sqlite"):
        configure_sqlite(_engine, wal=":memory:" not in db_url and db_url != "sqlite://")

    logger.info("Database engine created: %s", db_url.split("@")[-1])
    return _engine


def reset_engine() -> None:
    """Reset the singleton engine (for testing)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None
    SessionLocal.configure(bind=None)


def init_db(engine: Engine | None = None) -> None:
    """Create all tables. Use in dev mode; prod uses Alembic."""
    engine = engine or get_engine()
    Base.metadata.create_all(engine)
    logger.info("Database tables created")


@contextmanager
def session_scope() -> Iterator[Session]:
    """Yield a SQLAlchemy session, committing on success or rolling back on error."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
