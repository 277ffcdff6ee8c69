"""Pydantic v2 models for the persisted entity graph."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def ensure_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EventKind(str, Enum):
    """What a command (and a plan scheduled from it) represents."""

    DRILL = "drill"
    CLASS = "class"


class Flight(str, Enum):
    """A sub-unit that executes commands independently."""

    ALPHA = "alpha"
    TANGO = "tango"


class FlightAssignment(str, Enum):
    """Which flights a plan is scheduled for."""

    ALPHA = "alpha"
    TANGO = "tango"
    BOTH = "both"

    def flights(self) -> list[Flight]:
        """Expand the assignment into the individual flights it covers."""
        if self is FlightAssignment.BOTH:
            return [Flight.ALPHA, Flight.TANGO]
        return [Flight(self.value)]


class _Record(BaseModel):
    """Common base: every stored record has a string primary key."""

    id: str = Field(default_factory=new_id)

    @field_validator(
        "created_at", "updated_at", "uploaded_at", "executed_at", "date",
        mode="after", check_fields=False,
    )
    @classmethod
    def _normalize_datetimes(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class Command(_Record):
    """A reusable drill/class template, independent of any date."""

    name: str = Field(min_length=1)
    kind: EventKind
    metadata: Optional[str] = None  # free text
    created_at: datetime = Field(default_factory=utcnow)


class Plan(_Record):
    """One scheduled occurrence of a command."""

    date: datetime
    flight_assignment: FlightAssignment
    command_id: str
    event_type: EventKind  # command kind at creation time
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class File(_Record):
    """Attachment metadata. The bytes live in the blob store at ``file_path``."""

    plan_id: Optional[str] = None
    command_id: Optional[str] = None
    file_name: str = Field(min_length=1)
    file_path: str = Field(min_length=1)  # blob locator, shared by duplicates
    file_size: int = Field(ge=0)
    mime_type: str = Field(min_length=1)
    uploaded_at: datetime = Field(default_factory=utcnow)


class Note(_Record):
    """Free-text note attached to a plan or a command."""

    plan_id: Optional[str] = None
    command_id: Optional[str] = None
    content: str = Field(min_length=1)
    author_name: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=utcnow)


class HistoryEntry(_Record):
    """Denormalized record of one flight running one command on one date."""

    command_id: str
    plan_id: str
    flight_type: Flight
    executed_at: datetime
