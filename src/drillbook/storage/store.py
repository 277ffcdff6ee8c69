"""Storage port: the one interface callers use, over any backend.

All business rules are written here once against the backend primitives, so
adapters cannot drift apart on fan-out, cascade, duplication or pruning.

Lookups return None for unknown ids and deletes return False for absent
records. Payloads are validated before anything is written.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, TypeVar, Union

import pydantic

from drillbook.config import RetentionPolicy
from drillbook.errors import BackendError, ConfigurationError, ValidationError
from drillbook.models import (
    Command,
    CommandCreate,
    CommandSummary,
    CommandUpdate,
    File,
    FileCreate,
    Flight,
    HistoryEntry,
    Note,
    NoteCreate,
    Plan,
    PlanCreate,
    PlanDetail,
    PlanUpdate,
    PlanWithCommand,
    PruneReport,
    utcnow,
)
from drillbook.storage import duplication, retention
from drillbook.storage.backend import Backend, Collection
from drillbook.storage.blobs import BlobStore, blob_locator
from drillbook.storage.cascade import cascade_delete
from drillbook.storage.fanout import fan_out, missing_history

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=pydantic.BaseModel)
Payload = Union[pydantic.BaseModel, dict[str, Any]]


def _parse(model: type[P], payload: Payload) -> P:
    if isinstance(payload, model):
        return payload
    if isinstance(payload, pydantic.BaseModel):
        payload = payload.model_dump(exclude_unset=True)
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


class DrillStorage:
    """Commands, plans, attachments and execution history over one backend."""

    def __init__(
        self,
        backend: Backend,
        blobs: Optional[BlobStore] = None,
        policy: Optional[RetentionPolicy] = None,
    ):
        self.backend = backend
        self.blobs = blobs
        self.policy = policy or RetentionPolicy()

    # --- Commands ---

    def create_command(self, data: Payload) -> Command:
        req = _parse(CommandCreate, data)
        command = Command(**req.model_dump())
        with self.backend.atomic():
            self.backend.put(command)
        logger.info("Command created: %s (%s)", command.name, command.id)
        return command

    def get_command(self, command_id: str) -> Optional[Command]:
        return self.backend.get(Collection.COMMANDS, command_id)

    def list_commands(self) -> list[Command]:
        """All commands, ordered by name."""
        return self.backend.find(Collection.COMMANDS, order_by="name")

    def update_command(self, command_id: str, data: Payload) -> Optional[Command]:
        req = _parse(CommandUpdate, data)
        command = self.get_command(command_id)
        if command is None:
            return None
        changes = req.changes()
        if not changes:
            return command
        updated = command.model_copy(update=changes)
        with self.backend.atomic():
            self.backend.put(updated)
        return updated

    def delete_command(self, command_id: str) -> bool:
        """Delete a command with its plans, files, notes and history."""
        with self.backend.atomic():
            deleted = cascade_delete(
                self.backend, Collection.COMMANDS, command_id, self._release_blob
            )
        if deleted:
            logger.info("Command deleted: %s", command_id)
        return deleted

    def list_command_summaries(self) -> list[CommandSummary]:
        """Commands with the last date alpha and tango ran each of them."""
        summaries = []
        for command in self.list_commands():
            alpha = self.last_execution_by_flight(command.id, Flight.ALPHA)
            tango = self.last_execution_by_flight(command.id, Flight.TANGO)
            summaries.append(CommandSummary(
                command=command,
                last_alpha_execution=alpha.executed_at if alpha else None,
                last_tango_execution=tango.executed_at if tango else None,
            ))
        return summaries

    # --- Plans ---

    def create_plan(self, data: Payload) -> Plan:
        """Create a plan and its history rows in one atomic block."""
        req = _parse(PlanCreate, data)
        command = self.get_command(req.command_id)
        if command is None:
            raise ValidationError("command_id", f"command {req.command_id} does not exist")

        plan = Plan(
            date=req.date,
            flight_assignment=req.flight_assignment,
            command_id=command.id,
            event_type=req.event_type or command.kind,
        )
        with self.backend.atomic():
            self.backend.put(plan)
            entries = fan_out(self.backend, plan)
        logger.info(
            "Plan created: %s for %s on %s (%d history rows)",
            plan.id, command.name, plan.date.date().isoformat(), len(entries),
        )
        return plan

    def get_plan(self, plan_id: str) -> Optional[PlanDetail]:
        plan = self.backend.get(Collection.PLANS, plan_id)
        if plan is None:
            return None
        command = self.get_command(plan.command_id)
        if command is None:
            logger.warning("Plan %s references missing command %s", plan_id, plan.command_id)
            return None
        return PlanDetail(
            plan=plan,
            command=command,
            files=self.list_files_by_plan(plan_id),
            notes=self.list_notes(plan_id),
        )

    def list_plans(self) -> list[PlanWithCommand]:
        """All plans with their command, ordered by date."""
        commands: dict[str, Optional[Command]] = {}
        result = []
        for plan in self.backend.find(Collection.PLANS, order_by="date"):
            if plan.command_id not in commands:
                commands[plan.command_id] = self.get_command(plan.command_id)
            command = commands[plan.command_id]
            if command is None:
                logger.warning("Plan %s references missing command %s", plan.id, plan.command_id)
                continue
            result.append(PlanWithCommand(plan=plan, command=command))
        return result

    def update_plan(self, plan_id: str, data: Payload) -> Optional[Plan]:
        """Apply a partial update. History keeps the original scheduling."""
        req = _parse(PlanUpdate, data)
        plan = self.backend.get(Collection.PLANS, plan_id)
        if plan is None:
            return None
        changes = req.changes()
        if changes.get("command_id", plan.command_id) != plan.command_id:
            raise ValidationError(
                "command_id", "a plan cannot move to another command; duplicate it instead"
            )
        updated = plan.model_copy(update={**changes, "updated_at": utcnow()})
        with self.backend.atomic():
            self.backend.put(updated)
        return updated

    def delete_plan(self, plan_id: str) -> bool:
        """Delete a plan with its files, notes and history."""
        with self.backend.atomic():
            deleted = cascade_delete(
                self.backend, Collection.PLANS, plan_id, self._release_blob
            )
        if deleted:
            logger.info("Plan deleted: %s", plan_id)
        return deleted

    def duplicate_plan(self, plan_id: str, new_date: datetime) -> Optional[Plan]:
        return duplication.duplicate_plan(self, plan_id, new_date)

    # --- Files ---

    def create_file(self, data: Payload) -> File:
        req = _parse(FileCreate, data)
        self._check_owner(req.plan_id, req.command_id, "file")
        file = File(**req.model_dump())
        with self.backend.atomic():
            self.backend.put(file)
        return file

    def upload_file(
        self,
        data: bytes,
        file_name: str,
        mime_type: str,
        plan_id: Optional[str] = None,
        command_id: Optional[str] = None,
    ) -> File:
        """Store the bytes in the blob store, then record the metadata."""
        if self.blobs is None:
            raise ConfigurationError("blobs", "no blob store configured for uploads")
        self._check_owner(plan_id, command_id, "file")
        locator = self.blobs.put(blob_locator(plan_id or command_id, file_name), data)
        try:
            return self.create_file(FileCreate(
                plan_id=plan_id,
                command_id=command_id,
                file_name=file_name,
                file_path=locator,
                file_size=len(data),
                mime_type=mime_type,
            ))
        except (ValidationError, BackendError):
            self.blobs.delete(locator)
            raise

    def list_files_by_plan(self, plan_id: str) -> list[File]:
        return self.backend.find(
            Collection.FILES, field="plan_id", value=plan_id, order_by="uploaded_at"
        )

    def list_files_by_command(self, command_id: str) -> list[File]:
        return self.backend.find(
            Collection.FILES, field="command_id", value=command_id, order_by="uploaded_at"
        )

    def get_file(self, file_id: str) -> Optional[File]:
        return self.backend.get(Collection.FILES, file_id)

    def delete_file(self, file_id: str) -> bool:
        """Delete the blob (best effort), then the metadata row."""
        with self.backend.atomic():
            return cascade_delete(self.backend, Collection.FILES, file_id, self._release_blob)

    def _release_blob(self, file: File) -> None:
        if self.blobs is None:
            return
        sharing = [
            f for f in self.backend.find(Collection.FILES, field="file_path", value=file.file_path)
            if f.id != file.id
        ]
        if sharing:
            logger.debug("Blob %s still referenced by %d files", file.file_path, len(sharing))
            return
        try:
            if not self.blobs.delete(file.file_path):
                logger.debug("Blob %s already absent", file.file_path)
        except (BackendError, ValueError) as exc:
            logger.warning("Could not delete blob %s: %s", file.file_path, exc)

    # --- Notes ---

    def create_note(self, data: Payload) -> Note:
        req = _parse(NoteCreate, data)
        self._check_owner(req.plan_id, req.command_id, "note")
        note = Note(**req.model_dump())
        with self.backend.atomic():
            self.backend.put(note)
        return note

    def list_notes(self, plan_id: str) -> list[Note]:
        """Notes on a plan, oldest first."""
        return self.backend.find(
            Collection.NOTES, field="plan_id", value=plan_id, order_by="created_at"
        )

    def list_command_notes(self, command_id: str) -> list[Note]:
        """Notes on a command, oldest first."""
        return self.backend.find(
            Collection.NOTES, field="command_id", value=command_id, order_by="created_at"
        )

    def delete_note(self, note_id: str) -> bool:
        with self.backend.atomic():
            return cascade_delete(self.backend, Collection.NOTES, note_id)

    def _check_owner(self, plan_id: Optional[str], command_id: Optional[str], what: str) -> None:
        if not plan_id and not command_id:
            raise ValidationError("plan_id", f"a {what} must be attached to a plan or a command")
        if plan_id and self.backend.get(Collection.PLANS, plan_id) is None:
            raise ValidationError("plan_id", f"plan {plan_id} does not exist")
        if command_id and self.get_command(command_id) is None:
            raise ValidationError("command_id", f"command {command_id} does not exist")

    # --- Execution history ---

    def list_history(self, command_id: str) -> list[HistoryEntry]:
        """History for a command, most recent first."""
        return self.backend.find(
            Collection.HISTORY, field="command_id", value=command_id,
            order_by="executed_at", descending=True,
        )

    def last_execution_by_flight(
        self, command_id: str, flight: Union[Flight, str]
    ) -> Optional[HistoryEntry]:
        """Most recent history entry for one flight, or None."""
        try:
            flight = Flight(flight)
        except ValueError:
            raise ValidationError("flight", f"must be one of alpha, tango; got {flight!r}")
        matches = [e for e in self.list_history(command_id) if e.flight_type is flight]
        if not matches:
            return None
        return max(matches, key=lambda e: e.executed_at)

    def repair_history(self) -> int:
        """Add history rows missing for any plan. Returns how many were written."""
        added = 0
        for plan in self.backend.find(Collection.PLANS):
            existing = self.backend.find(Collection.HISTORY, field="plan_id", value=plan.id)
            missing = missing_history(plan, existing)
            if not missing:
                continue
            with self.backend.atomic():
                for entry in missing:
                    self.backend.put(entry)
            added += len(missing)
            logger.info("Plan %s: restored %d history rows", plan.id, len(missing))
        return added

    # --- Size and retention ---

    def estimate_size(self) -> int:
        return self.backend.estimate_size()

    def prune(self) -> PruneReport:
        """Evict superseded plans until the store fits the retention policy."""
        return retention.prune(self.backend, self.policy, self.delete_plan)
