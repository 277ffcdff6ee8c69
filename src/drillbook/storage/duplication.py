"""Plan duplication onto a new date."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from drillbook.errors import PartialFailure, StorageError
from drillbook.models import File, FileCreate, Plan, PlanCreate

if TYPE_CHECKING:
    from drillbook.storage.store import DrillStorage

logger = logging.getLogger(__name__)


def duplicate_plan(storage: DrillStorage, plan_id: str, new_date: datetime) -> Optional[Plan]:
    """Copy a plan and its file metadata onto ``new_date``.

    The new plan gets its own history rows through the normal create path.
    File rows are copied verbatim and keep pointing at the same blobs.
    Notes stay with the source plan.

    Raises PartialFailure (carrying the new plan) if some file copies failed.
    """
    source = storage.get_plan(plan_id)
    if source is None:
        return None

    new_plan = storage.create_plan(PlanCreate(
        date=new_date,
        flight_assignment=source.plan.flight_assignment,
        command_id=source.plan.command_id,
        event_type=source.plan.event_type,
    ))

    copied: list[File] = []
    failures: list[tuple[File, StorageError]] = []
    for file in source.files:
        try:
            copied.append(storage.create_file(FileCreate(
                plan_id=new_plan.id,
                command_id=file.command_id,
                file_name=file.file_name,
                file_path=file.file_path,
                file_size=file.file_size,
                mime_type=file.mime_type,
            )))
        except StorageError as exc:
            logger.warning(
                "Copying file %s to plan %s failed: %s", file.id, new_plan.id, exc,
            )
            failures.append((file, exc))

    if failures:
        raise PartialFailure(
            f"Plan {plan_id} duplicated as {new_plan.id} but "
            f"{len(failures)} of {len(source.files)} files were not copied",
            plan=new_plan,
            copied=copied,
            failures=failures,
        )

    logger.info(
        "Duplicated plan %s to %s as %s (%d files)",
        plan_id, new_plan.date.date().isoformat(), new_plan.id, len(copied),
    )
    return new_plan
