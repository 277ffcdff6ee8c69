"""Cascading deletes expressed once, as a table of dependents."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from drillbook.models import File
from drillbook.storage.backend import Backend, Collection

logger = logging.getLogger(__name__)

# parent collection -> (child collection, foreign key field on the child)
DEPENDENTS: dict[Collection, tuple[tuple[Collection, str], ...]] = {
    Collection.COMMANDS: (
        (Collection.PLANS, "command_id"),
        (Collection.FILES, "command_id"),
        (Collection.NOTES, "command_id"),
        (Collection.HISTORY, "command_id"),
    ),
    Collection.PLANS: (
        (Collection.FILES, "plan_id"),
        (Collection.NOTES, "plan_id"),
        (Collection.HISTORY, "plan_id"),
    ),
}


def cascade_delete(
    backend: Backend,
    collection: Collection,
    record_id: str,
    release_blob: Optional[Callable[[File], None]] = None,
) -> bool:
    """Delete a record and, depth first, everything that depends on it.

    Files get ``release_blob`` called before their metadata row goes.
    Returns False if the record was already absent, so retries are safe.
    """
    record = backend.get(collection, record_id)
    if record is None:
        return False

    for child_collection, foreign_key in DEPENDENTS.get(collection, ()):
        for child in backend.find(child_collection, field=foreign_key, value=record_id):
            cascade_delete(backend, child_collection, child.id, release_blob)

    if collection is Collection.FILES and release_blob is not None:
        release_blob(record)

    deleted = backend.delete(collection, record_id)
    logger.debug("Deleted %s %s", collection.value, record_id)
    return deleted
