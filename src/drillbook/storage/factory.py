"""Open the configured storage backend behind a DrillStorage port."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from drillbook.config import RetentionPolicy, backend_name, data_dir, load_retention_policy
from drillbook.db.engine import get_engine, session_scope
from drillbook.storage.blobs import BlobStore, LocalBlobStore
from drillbook.storage.document import DocumentBackend
from drillbook.storage.sql import SqlBackend
from drillbook.storage.store import DrillStorage

logger = logging.getLogger(__name__)


@contextmanager
def open_storage(
    backend: Optional[str] = None,
    policy: Optional[RetentionPolicy] = None,
    blobs: Optional[BlobStore] = None,
) -> Iterator[DrillStorage]:
    """Yield a storage port for one unit of work.

    The SQL backend runs inside a session scope that commits when the block
    exits cleanly; the document backend writes through on every change.
    """
    backend = backend or backend_name()
    policy = policy or load_retention_policy()
    blobs = blobs or LocalBlobStore()

    if backend == "document":
        path = data_dir() / "drillbook.json"
        logger.debug("Opening document store at %s", path)
        store = DocumentBackend(path, record_bytes=policy.record_bytes)
        yield DrillStorage(store, blobs, policy)
        return

    get_engine()
    with session_scope() as session:
        yield DrillStorage(SqlBackend(session, record_bytes=policy.record_bytes), blobs, policy)
