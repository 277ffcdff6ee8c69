"""File blob storage: the bytes behind File metadata rows."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path

from drillbook.config import data_dir
from drillbook.errors import BackendError
from drillbook.models import new_id

logger = logging.getLogger(__name__)


def safe_path_component(value: str) -> str:
    """Sanitize a string for use as a single path component.

    Strips path separators and traversal sequences, keeping only
    alphanumeric chars, hyphens, underscores, and dots (no leading dot).
    """
    sanitized = re.sub(r"[^a-zA-Z0-9._-]", "_", value)
    sanitized = sanitized.lstrip(".")
    return sanitized or "_"


def blob_locator(owner_id: str, file_name: str) -> str:
    """Build a fresh locator for an upload: ``{owner_id}/{token}_{file_name}``."""
    token = new_id().split("-")[0]
    return f"{safe_path_component(owner_id)}/{token}_{safe_path_component(file_name)}"


class BlobStore(ABC):
    """Narrow contract: store bytes under a locator, delete by locator."""

    @abstractmethod
    def put(self, locator: str, data: bytes) -> str:
        """Store ``data``; returns the locator it can be found under."""

    @abstractmethod
    def delete(self, locator: str) -> bool:
        """Delete a blob. Returns False if it was already absent."""

    @abstractmethod
    def read(self, locator: str) -> bytes:
        """Return the blob's bytes. Raises KeyError if absent."""


class LocalBlobStore(BlobStore):
    """Blobs as files under a root directory.

    Layout: {root}/{owner_id}/{token}_{file_name}
    """

    def __init__(self, root: Path | str | None = None):
        self.root = Path(root) if root is not None else data_dir() / "uploads"

    def _resolve(self, locator: str) -> tuple[str, Path]:
        parts = [safe_path_component(p) for p in locator.split("/") if p]
        if not parts:
            raise ValueError(f"Empty blob locator: {locator!r}")
        return "/".join(parts), self.root.joinpath(*parts)

    def put(self, locator: str, data: bytes) -> str:
        normalized, path = self._resolve(locator)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise BackendError("blobs", f"put {normalized}", exc) from exc
        logger.debug("Stored blob %s (%d bytes)", normalized, len(data))
        return normalized

    def delete(self, locator: str) -> bool:
        normalized, path = self._resolve(locator)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise BackendError("blobs", f"delete {normalized}", exc) from exc
        logger.debug("Deleted blob %s", normalized)
        return True

    def read(self, locator: str) -> bytes:
        normalized, path = self._resolve(locator)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise KeyError(f"Blob not found: {normalized}")
        except OSError as exc:
            raise BackendError("blobs", f"read {normalized}", exc) from exc
