"""Document backend: JSON documents per collection, optionally file-backed.

Each record is kept as its JSON-mode dump, the way a document database
would hold it. With a ``path`` every committed write is written through to a
single JSON file (write to a temp file, then rename).
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

from drillbook.config import DEFAULT_RECORD_BYTES
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


class DocumentBackend(Backend):
    """In-process document store with snapshot-based atomic blocks."""

    name = "document"

    def __init__(
        self,
        path: Path | str | None = None,
        estimator: Optional[SizeEstimator] = None,
        record_bytes: int = DEFAULT_RECORD_BYTES,
    ):
        super().__init__(estimator, record_bytes)
        self._path = Path(path) if path is not None else None
        self._lock = threading.RLock()
        self._depth = 0
        self._docs: dict[str, dict[str, dict[str, Any]]] = {c.value: {} for c in Collection}
        if self._path is not None and self._path.exists():
            self._load()

    def _load(self) -> None:
        try:
            raw = json.loads(self._path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise BackendError(self.name, f"load {self._path}", exc) from exc
        for coll in Collection:
            self._docs[coll.value] = dict(raw.get(coll.value, {}))
        logger.info("Loaded %d documents from %s", self.count(), self._path)

    def _write_through(self) -> None:
        if self._path is None or self._depth:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_name(self._path.name + ".tmp")
            tmp.write_text(json.dumps(self._docs, indent=2))
            tmp.replace(self._path)
        except OSError as exc:
            raise BackendError(self.name, f"write {self._path}", exc) from exc

    def get(self, collection: Collection, record_id: str) -> Optional[Record]:
        with self._lock:
            doc = self._docs[collection.value].get(record_id)
            if doc is None:
                return None
            return RECORD_TYPES[collection].model_validate(doc)

    def put(self, record: Record) -> None:
        collection = collection_for(record)
        with self._lock:
            docs = self._docs[collection.value]
            previous = docs.get(record.id)
            docs[record.id] = record.model_dump(mode="json")
            try:
                self._write_through()
            except BackendError:
                if previous is None:
                    docs.pop(record.id, None)
                else:
                    docs[record.id] = previous
                raise

    def delete(self, collection: Collection, record_id: str) -> bool:
        with self._lock:
            docs = self._docs[collection.value]
            previous = docs.pop(record_id, None)
            if previous is None:
                return False
            try:
                self._write_through()
            except BackendError:
                docs[record_id] = previous
                raise
            return True

    def find(
        self,
        collection: Collection,
        field: Optional[str] = None,
        value: Any = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Record]:
        model = RECORD_TYPES[collection]
        with self._lock:
            records = [model.model_validate(d) for d in self._docs[collection.value].values()]
        if field is not None:
            records = [r for r in records if getattr(r, field) == value]
        if order_by is not None:
            records.sort(key=lambda r: getattr(r, order_by), reverse=descending)
        return records

    def count(self, collection: Optional[Collection] = None) -> int:
        with self._lock:
            if collection is not None:
                return len(self._docs[collection.value])
            return sum(len(docs) for docs in self._docs.values())

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Restore every collection to its state at entry if the block raises.

        A failed write-through at the end of the outermost block counts as a
        failure of the block.
        """
        with self._lock:
            snapshot = copy.deepcopy(self._docs)
            self._depth += 1
            try:
                try:
                    yield
                finally:
                    self._depth -= 1
                self._write_through()
            except BaseException:
                self._docs = snapshot
                raise
