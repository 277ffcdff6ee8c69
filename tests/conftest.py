"""Shared test fixtures."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from drillbook.config import RetentionPolicy
from drillbook.db.engine import configure_sqlite
from drillbook.db.models import Base
from drillbook.models import CommandCreate, EventKind
from drillbook.storage import DocumentBackend, DrillStorage, LocalBlobStore, SqlBackend


@pytest.fixture
def db_engine():
    """In-memory SQLite engine for tests."""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool,
    )
    configure_sqlite(engine, wal=False)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Yield a SQLAlchemy session per test, rolled back after."""
    session = sessionmaker(bind=db_engine)()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(tmp_path / "uploads")


@pytest.fixture(params=["sql", "document"])
def backend(request, db_session):
    """Each backend adapter in turn."""
    if request.param == "sql":
        return SqlBackend(db_session)
    return DocumentBackend()


@pytest.fixture
def storage(backend, blob_store):
    return DrillStorage(backend, blob_store, RetentionPolicy())


@pytest.fixture
def rifle_inspection(storage):
    return storage.create_command(CommandCreate(name="Rifle Inspection", kind=EventKind.DRILL))
