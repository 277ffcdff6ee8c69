"""Joined read models and operation reports returned by the storage port."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from drillbook.models.storage import Command, File, Note, Plan


class PlanWithCommand(BaseModel):
    plan: Plan
    command: Command


class PlanDetail(BaseModel):
    """A plan with its command and attachments."""

    plan: Plan
    command: Command
    files: list[File] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)


class CommandSummary(BaseModel):
    """A command with the last date each flight ran it."""

    command: Command
    last_alpha_execution: Optional[datetime] = None
    last_tango_execution: Optional[datetime] = None


class PruneReport(BaseModel):
    """Outcome of one retention pass."""

    size_before: int
    size_after: int
    target_bytes: int
    deleted_plan_ids: list[str] = Field(default_factory=list)

    @property
    def pruned(self) -> bool:
        return bool(self.deleted_plan_ids)

    @property
    def reached_target(self) -> bool:
        return self.size_after <= self.target_bytes
