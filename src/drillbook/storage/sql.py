"""Relational backend: SQLAlchemy session over the ORM rows."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Any, Optional

from sqlalchemy import Enum as SqlEnum
from sqlalchemy import String, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from drillbook.config import DEFAULT_RECORD_BYTES
from drillbook.db.models import CommandRow, FileRow, HistoryRow, NoteRow, PlanRow
from drillbook.errors import BackendError
from drillbook.storage.backend import (
    RECORD_TYPES,
    Backend,
    Collection,
    Record,
    SizeEstimator,
    collection_for,
)

logger = logging.getLogger(__name__)

ROW_TYPES = {
    Collection.COMMANDS: CommandRow,
    Collection.PLANS: PlanRow,
    Collection.FILES: FileRow,
    Collection.NOTES: NoteRow,
    Collection.HISTORY: HistoryRow,
}

# Model field -> ORM attribute where the two differ
_ATTR_ALIASES = {"metadata": "metadata_"}


def _attr(field: str) -> str:
    return _ATTR_ALIASES.get(field, field)


def _bind(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


# Code-point collations; SQLite's default BINARY already sorts this way
_BINARY_COLLATIONS = {
    "postgresql": "C",
    "mysql": "utf8mb4_bin",
    "mariadb": "utf8mb4_bin",
}


def _order_by(column, dialect: str, descending: bool = False):
    """Order clause for ``column``, comparing text by code point on every dialect."""
    collation = _BINARY_COLLATIONS.get(dialect)
    col_type = column.expression.type
    if collation and isinstance(col_type, String) and not isinstance(col_type, SqlEnum):
        column = column.collate(collation)
    return column.desc() if descending else column.asc()


# --- Conversion helpers ---


def _record_to_values(record: Record) -> dict[str, Any]:
    return {_attr(k): _bind(v) for k, v in record.model_dump().items()}


def _row_to_record(collection: Collection, row) -> Record:
    model = RECORD_TYPES[collection]
    return model.model_validate(
        {name: getattr(row, _attr(name)) for name in model.model_fields}
    )


class SqlBackend(Backend):
    """Backend over a caller-owned SQLAlchemy session.

    Writes are flushed, never committed: the session scope that created the
    session decides when the transaction ends.
    """

    name = "sql"

    def __init__(
        self,
        session: Session,
        estimator: Optional[SizeEstimator] = None,
        record_bytes: int = DEFAULT_RECORD_BYTES,
    ):
        super().__init__(estimator, record_bytes)
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def _dialect(self) -> str:
        return self._session.get_bind().dialect.name

    @contextmanager
    def _translate(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error("SQL backend %s failed: %s", operation, exc)
            raise BackendError(self.name, operation, exc) from exc

    def get(self, collection: Collection, record_id: str) -> Optional[Record]:
        with self._translate(f"get {collection.value}"):
            row = self._session.get(ROW_TYPES[collection], record_id)
            return _row_to_record(collection, row) if row is not None else None

    def put(self, record: Record) -> None:
        collection = collection_for(record)
        row_cls = ROW_TYPES[collection]
        values = _record_to_values(record)
        with self._translate(f"put {collection.value}"):
            row = self._session.get(row_cls, record.id)
            if row is None:
                self._session.add(row_cls(**values))
            else:
                for attr, value in values.items():
                    setattr(row, attr, value)
            self._session.flush()

    def delete(self, collection: Collection, record_id: str) -> bool:
        with self._translate(f"delete {collection.value}"):
            row = self._session.get(ROW_TYPES[collection], record_id)
            if row is None:
                return False
            self._session.delete(row)
            self._session.flush()
            return True

    def find(
        self,
        collection: Collection,
        field: Optional[str] = None,
        value: Any = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Record]:
        row_cls = ROW_TYPES[collection]
        stmt = select(row_cls)
        if field is not None:
            stmt = stmt.where(getattr(row_cls, _attr(field)) == _bind(value))
        if order_by is not None:
            column = getattr(row_cls, _attr(order_by))
            stmt = stmt.order_by(_order_by(column, self._dialect(), descending))
        with self._translate(f"find {collection.value}"):
            rows = self._session.execute(stmt).scalars().all()
        return [_row_to_record(collection, r) for r in rows]

    def count(self, collection: Optional[Collection] = None) -> int:
        collections = [collection] if collection is not None else list(Collection)
        total = 0
        with self._translate("count"):
            for coll in collections:
                stmt = select(func.count()).select_from(ROW_TYPES[coll])
                total += self._session.execute(stmt).scalar_one()
        return total

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run the block inside a SAVEPOINT; roll it back on any exception."""
        with self._translate("atomic block"):
            with self._session.begin_nested():
                yield

    def native_size(self) -> int:
        """Ask the database engine for its size.

        SQLite counts in-use pages, PostgreSQL and MySQL report their own
        accounting; other dialects fall back to the per-record estimate.
        """
        dialect = self._dialect()
        with self._translate("size query"):
            if dialect == "sqlite":
                page_count = self._session.execute(text("PRAGMA page_count")).scalar_one()
                freelist = self._session.execute(text("PRAGMA freelist_count")).scalar_one()
                page_size = self._session.execute(text("PRAGMA page_size")).scalar_one()
                return (page_count - freelist) * page_size
            if dialect == "postgresql":
                return self._session.execute(
                    text("SELECT pg_database_size(current_database())")
                ).scalar_one()
            if dialect in ("mysql", "mariadb"):
                size = self._session.execute(text(
                    "SELECT COALESCE(SUM(data_length + index_length), 0) "
                    "FROM information_schema.tables WHERE table_schema = DATABASE()"
                )).scalar_one()
                return int(size)
        logger.debug("No native size query for dialect %s, estimating", dialect)
        return super().native_size()
