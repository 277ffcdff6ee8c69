"""Error taxonomy for the storage layer.

Not-found is never an exception: lookups return ``None`` and deletes return
``False``. Everything below is raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from drillbook.models import File, Plan


class StorageError(Exception):
    """Base class for all storage-layer failures."""


class ValidationError(StorageError, ValueError):
    """A create/update payload was rejected before any write."""

    def __init__(self, field: str, message: str, errors: list[dict[str, Any]] | None = None):
        self.field = field
        self.errors = errors or [{"loc": (field,), "msg": message}]
        super().__init__(f"{field}: {message}")

    @classmethod
    def from_pydantic(cls, exc) -> ValidationError:
        """Build from a ``pydantic.ValidationError``, naming the first failing field."""
        errors = exc.errors()
        first = errors[0] if errors else {"loc": (), "msg": str(exc)}
        field = ".".join(str(part) for part in first.get("loc", ())) or "__root__"
        return cls(field, first.get("msg", "invalid value"), errors=errors)


class BackendError(StorageError):
    """The underlying store could not be reached or rejected an operation."""

    def __init__(self, backend: str, operation: str, cause: BaseException | None = None):
        self.backend = backend
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{backend} backend failed during {operation}{detail}")


class ConfigurationError(StorageError):
    """The storage port lacks a collaborator an operation needs."""

    def __init__(self, component: str, message: str):
        self.component = component
        super().__init__(f"{component}: {message}")


class PartialFailure(StorageError):
    """A multi-step operation committed some steps and failed others.

    Committed steps are not rolled back; ``plan`` is the record that was
    created, ``copied`` the dependents that made it, ``failures`` the
    (source, error) pairs that did not.
    """

    def __init__(
        self,
        message: str,
        plan: Plan,
        copied: list[File],
        failures: list[tuple[File, StorageError]],
    ):
        self.plan = plan
        self.copied = copied
        self.failures = failures
        super().__init__(message)
