"""Create/update payloads accepted by the storage port.

Updates are partial: only fields the caller actually set are applied, and an
explicit ``None`` for a non-nullable field is rejected. Referential checks
(does the command exist, is the file attached to something) happen in the
port, which can see the backend.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from drillbook.models.storage import EventKind, FlightAssignment, ensure_utc


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict:
        """Fields the caller explicitly set."""
        return self.model_dump(exclude_unset=True)


def _not_null(v):
    # Only runs for values the caller passed, so defaults stay unset.
    if v is None:
        raise ValueError("may not be null")
    return v


class CommandCreate(_Payload):
    name: str = Field(min_length=1)
    kind: EventKind
    metadata: Optional[str] = None


class CommandUpdate(_Payload):
    name: Optional[str] = Field(default=None, min_length=1)
    kind: Optional[EventKind] = None
    metadata: Optional[str] = None

    @field_validator("name", "kind")
    @classmethod
    def _required(cls, v):
        return _not_null(v)


class PlanCreate(_Payload):
    """A new plan. ``event_type`` defaults to the command's kind."""

    date: datetime
    flight_assignment: FlightAssignment
    command_id: str = Field(min_length=1)
    event_type: Optional[EventKind] = None

    @field_validator("date")
    @classmethod
    def _utc_date(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class PlanUpdate(_Payload):
    date: Optional[datetime] = None
    flight_assignment: Optional[FlightAssignment] = None
    command_id: Optional[str] = Field(default=None, min_length=1)
    event_type: Optional[EventKind] = None

    @field_validator("date", "flight_assignment", "command_id", "event_type")
    @classmethod
    def _required(cls, v):
        return _not_null(v)

    @field_validator("date")
    @classmethod
    def _utc_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else v


class FileCreate(_Payload):
    plan_id: Optional[str] = None
    command_id: Optional[str] = None
    file_name: str = Field(min_length=1)
    file_path: str = Field(min_length=1)
    file_size: int = Field(ge=0)
    mime_type: str = Field(min_length=1)


class NoteCreate(_Payload):
    plan_id: Optional[str] = None
    command_id: Optional[str] = None
    content: str = Field(min_length=1)
    author_name: str = Field(min_length=1)

    @field_validator("content", "author_name")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v
