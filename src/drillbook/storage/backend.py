"""Primitive storage contract implemented by every backend adapter.

Adapters only know how to get, put, delete and list records by a single
equality predicate with a single ordering field. Business rules (fan-out,
cascade, duplication, pruning) live above this layer in the storage port.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from enum import Enum
from typing import Any, Callable, Optional, Union

from drillbook.config import DEFAULT_RECORD_BYTES
from drillbook.models import Command, File, HistoryEntry, Note, Plan

Record = Union[Command, Plan, File, Note, HistoryEntry]


class Collection(str, Enum):
    """Logical record collections, one per entity type."""

    COMMANDS = "commands"
    PLANS = "plans"
    FILES = "files"
    NOTES = "notes"
    HISTORY = "history"


RECORD_TYPES: dict[Collection, type] = {
    Collection.COMMANDS: Command,
    Collection.PLANS: Plan,
    Collection.FILES: File,
    Collection.NOTES: Note,
    Collection.HISTORY: HistoryEntry,
}

_COLLECTION_BY_TYPE = {model: coll for coll, model in RECORD_TYPES.items()}


def collection_for(record: Record) -> Collection:
    """Return the collection a record is stored in."""
    try:
        return _COLLECTION_BY_TYPE[type(record)]
    except KeyError:
        raise TypeError(f"Not a storable record: {type(record).__name__}")


SizeEstimator = Callable[["Backend"], int]


class PerRecordEstimator:
    """Approximate size as ``record count × fixed bytes per record``."""

    def __init__(self, record_bytes: int = DEFAULT_RECORD_BYTES):
        if record_bytes <= 0:
            raise ValueError("record_bytes must be positive")
        self.record_bytes = record_bytes

    def __call__(self, backend: Backend) -> int:
        return backend.count() * self.record_bytes

    def __repr__(self) -> str:
        return f"PerRecordEstimator(record_bytes={self.record_bytes})"


class Backend(ABC):
    """Single-record storage primitives plus an atomic block."""

    name = "backend"

    def __init__(
        self,
        estimator: Optional[SizeEstimator] = None,
        record_bytes: int = DEFAULT_RECORD_BYTES,
    ):
        self.estimator = estimator
        self.record_bytes = record_bytes

    @abstractmethod
    def get(self, collection: Collection, record_id: str) -> Optional[Record]:
        """Fetch one record, or None if absent."""

    @abstractmethod
    def put(self, record: Record) -> None:
        """Insert or replace one record."""

    @abstractmethod
    def delete(self, collection: Collection, record_id: str) -> bool:
        """Delete one record. Returns False if it was already absent."""

    @abstractmethod
    def find(
        self,
        collection: Collection,
        field: Optional[str] = None,
        value: Any = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Record]:
        """List records where ``field == value`` (all records if no field)."""

    @abstractmethod
    def count(self, collection: Optional[Collection] = None) -> int:
        """Number of records in one collection, or across all of them."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Context manager: writes inside either all land or none do."""

    def native_size(self) -> int:
        """Backend-reported size in bytes. Defaults to ``record_bytes`` per record."""
        return PerRecordEstimator(self.record_bytes)(self)

    def estimate_size(self) -> int:
        """Size in bytes from the configured estimator, else the native size."""
        if self.estimator is not None:
            return self.estimator(self)
        return self.native_size()

