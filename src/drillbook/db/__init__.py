"""Database package: SQLAlchemy models, engine, and session scope."""

from drillbook.db.engine import SessionLocal, get_engine, init_db, session_scope
from drillbook.db.models import Base

__all__ = ["Base", "SessionLocal", "get_engine", "init_db", "session_scope"]
