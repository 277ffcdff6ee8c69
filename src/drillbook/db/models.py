"""SQLAlchemy ORM models for all persistent tables."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

_EVENT_KINDS = ("drill", "class")
_FLIGHT_ASSIGNMENTS = ("alpha", "tango", "both")
_FLIGHTS = ("alpha", "tango")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class CommandRow(Base):
    __tablename__ = "drill_commands"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), index=True)
    kind: Mapped[str] = mapped_column(Enum(*_EVENT_KINDS, name="command_kind"))
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[str | None] = mapped_column("metadata", Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    plans: Mapped[list[PlanRow]] = relationship(
        back_populates="command", cascade="all, delete-orphan", passive_deletes=True
    )


class PlanRow(Base):
    __tablename__ = "drill_plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    flight_assignment: Mapped[str] = mapped_column(
        Enum(*_FLIGHT_ASSIGNMENTS, name="flight_assignment")
    )
    command_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("drill_commands.id", ondelete="CASCADE"), index=True
    )
    event_type: Mapped[str] = mapped_column(Enum(*_EVENT_KINDS, name="event_type"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    command: Mapped[CommandRow] = relationship(back_populates="plans")


class FileRow(Base):
    __tablename__ = "drill_plan_files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    plan_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("drill_plans.id", ondelete="CASCADE"),
        nullable=True, index=True,
    )
    command_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("drill_commands.id", ondelete="CASCADE"),
        nullable=True, index=True,
    )
    file_name: Mapped[str] = mapped_column(Text)
    file_path: Mapped[str] = mapped_column(Text)
    file_size: Mapped[int] = mapped_column(Integer)
    mime_type: Mapped[str] = mapped_column(String(255))
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class NoteRow(Base):
    __tablename__ = "drill_plan_notes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    plan_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("drill_plans.id", ondelete="CASCADE"),
        nullable=True, index=True,
    )
    command_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("drill_commands.id", ondelete="CASCADE"),
        nullable=True, index=True,
    )
    content: Mapped[str] = mapped_column(Text)
    author_name: Mapped[str] = mapped_column(String(256))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class HistoryRow(Base):
    __tablename__ = "command_execution_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    command_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("drill_commands.id", ondelete="CASCADE"), index=True
    )
    plan_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("drill_plans.id", ondelete="CASCADE"), index=True
    )
    flight_type: Mapped[str] = mapped_column(Enum(*_FLIGHTS, name="flight_type"))
    executed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
