"""Storage port, backend adapters and the business rules between them."""

from drillbook.storage.backend import Backend, Collection, PerRecordEstimator
from drillbook.storage.blobs import BlobStore, LocalBlobStore
from drillbook.storage.document import DocumentBackend
from drillbook.storage.sql import SqlBackend
from drillbook.storage.store import DrillStorage

__all__ = [
    "Backend",
    "BlobStore",
    "Collection",
    "DocumentBackend",
    "DrillStorage",
    "LocalBlobStore",
    "PerRecordEstimator",
    "SqlBackend",
]
