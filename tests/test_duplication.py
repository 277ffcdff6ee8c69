"""Tests for duplicating a plan onto a new date."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from drillbook.errors import BackendError, PartialFailure
from drillbook.models import Flight, NoteCreate, PlanCreate

MAY_7 = datetime(2024, 5, 7, tzinfo=timezone.utc)
JULY_2 = datetime(2024, 7, 2, tzinfo=timezone.utc)


@pytest.fixture
def source_plan(storage, rifle_inspection):
    plan = storage.create_plan(PlanCreate(
        date=MAY_7, flight_assignment="both", command_id=rifle_inspection.id,
    ))
    storage.upload_file(b"lane assignments", "lanes.txt", "text/plain", plan_id=plan.id)
    storage.upload_file(b"%PDF-1.4", "range.pdf", "application/pdf", plan_id=plan.id)
    storage.create_note(NoteCreate(plan_id=plan.id, content="Ear pro", author_name="Sgt. Lee"))
    return plan


class TestDuplicatePlan:
    def test_copies_plan_fields(self, storage, source_plan):
        copy = storage.duplicate_plan(source_plan.id, JULY_2)

        assert copy.id != source_plan.id
        assert copy.date == JULY_2
        assert copy.flight_assignment == source_plan.flight_assignment
        assert copy.command_id == source_plan.command_id
        assert copy.event_type == source_plan.event_type

    def test_source_untouched(self, storage, source_plan):
        storage.duplicate_plan(source_plan.id, JULY_2)

        detail = storage.get_plan(source_plan.id)
        assert detail.plan == source_plan
        assert len(detail.files) == 2
        assert len(detail.notes) == 1

    def test_files_point_at_same_blobs(self, storage, source_plan):
        copy = storage.duplicate_plan(source_plan.id, JULY_2)

        original = storage.list_files_by_plan(source_plan.id)
        copied = storage.list_files_by_plan(copy.id)
        assert sorted(f.file_path for f in copied) == sorted(f.file_path for f in original)
        assert {f.id for f in copied}.isdisjoint({f.id for f in original})

    def test_notes_not_copied(self, storage, source_plan):
        copy = storage.duplicate_plan(source_plan.id, JULY_2)
        assert storage.list_notes(copy.id) == []

    def test_new_history_rows(self, storage, source_plan, rifle_inspection):
        copy = storage.duplicate_plan(source_plan.id, JULY_2)

        rows = [e for e in storage.list_history(rifle_inspection.id) if e.plan_id == copy.id]
        assert sorted(e.flight_type for e in rows) == [Flight.ALPHA, Flight.TANGO]
        assert all(e.executed_at == JULY_2 for e in rows)
        assert storage.last_execution_by_flight(rifle_inspection.id, "alpha").executed_at == JULY_2

    def test_missing_source_returns_none(self, storage):
        assert storage.duplicate_plan("nonexistent", JULY_2) is None

    def test_deleting_copy_keeps_shared_blobs(self, storage, source_plan, blob_store):
        copy = storage.duplicate_plan(source_plan.id, JULY_2)

        assert storage.delete_plan(copy.id) is True

        for file in storage.list_files_by_plan(source_plan.id):
            assert blob_store.read(file.file_path)

    def test_partial_failure(self, storage, source_plan, monkeypatch):
        original_create = storage.create_file
        calls = []

        def flaky_create(data):
            calls.append(data)
            if len(calls) == 2:
                raise BackendError("sql", "put files")
            return original_create(data)

        monkeypatch.setattr(storage, "create_file", flaky_create)
        with pytest.raises(PartialFailure) as exc_info:
            storage.duplicate_plan(source_plan.id, JULY_2)
        monkeypatch.undo()

        failure = exc_info.value
        assert len(failure.copied) == 1
        assert len(failure.failures) == 1
        assert isinstance(failure.failures[0][1], BackendError)
        # The new plan and the file that did copy stay committed
        assert storage.get_plan(failure.plan.id) is not None
        assert len(storage.list_files_by_plan(failure.plan.id)) == 1
