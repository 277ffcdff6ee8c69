"""Tests for execution-history fan-out and repair."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from drillbook.models import Flight, HistoryEntry, Plan, PlanCreate
from drillbook.storage.backend import Collection
from drillbook.storage.fanout import history_for, missing_history

MAY_7 = datetime(2024, 5, 7, tzinfo=timezone.utc)


def _plan(assignment: str) -> Plan:
    return Plan(
        date=MAY_7, flight_assignment=assignment, command_id="cmd-1", event_type="drill",
    )


class TestHistoryFor:
    @pytest.mark.parametrize("assignment, flights", [
        ("alpha", [Flight.ALPHA]),
        ("tango", [Flight.TANGO]),
        ("both", [Flight.ALPHA, Flight.TANGO]),
    ])
    def test_flights_per_assignment(self, assignment, flights):
        entries = history_for(_plan(assignment))
        assert [e.flight_type for e in entries] == flights

    def test_entries_carry_plan_fields(self):
        plan = _plan("both")
        for entry in history_for(plan):
            assert entry.plan_id == plan.id
            assert entry.command_id == plan.command_id
            assert entry.executed_at == MAY_7

    def test_entry_ids_distinct(self):
        entries = history_for(_plan("both"))
        assert entries[0].id != entries[1].id


class TestMissingHistory:
    def test_nothing_missing(self):
        plan = _plan("both")
        assert missing_history(plan, history_for(plan)) == []

    def test_one_flight_missing(self):
        plan = _plan("both")
        alpha_only = [e for e in history_for(plan) if e.flight_type is Flight.ALPHA]

        missing = missing_history(plan, alpha_only)
        assert [e.flight_type for e in missing] == [Flight.TANGO]

    def test_all_missing(self):
        assert len(missing_history(_plan("both"), [])) == 2


class TestFanOutThroughStorage:
    def test_create_writes_history(self, storage, rifle_inspection):
        plan = storage.create_plan(PlanCreate(
            date=MAY_7, flight_assignment="tango", command_id=rifle_inspection.id,
        ))

        history = storage.backend.find(Collection.HISTORY, field="plan_id", value=plan.id)
        assert [(e.flight_type, e.executed_at) for e in history] == [(Flight.TANGO, MAY_7)]

    def test_failed_fan_out_leaves_no_plan(self, storage, rifle_inspection, monkeypatch):
        backend = storage.backend
        original_put = backend.put

        def put(record):
            if isinstance(record, HistoryEntry):
                raise RuntimeError("disk full")
            original_put(record)

        monkeypatch.setattr(backend, "put", put)
        with pytest.raises(RuntimeError):
            storage.create_plan(PlanCreate(
                date=MAY_7, flight_assignment="both", command_id=rifle_inspection.id,
            ))

        monkeypatch.undo()
        assert backend.count(Collection.PLANS) == 0
        assert backend.count(Collection.HISTORY) == 0

    def test_repair_restores_missing_rows(self, storage, rifle_inspection):
        plan = storage.create_plan(PlanCreate(
            date=MAY_7, flight_assignment="both", command_id=rifle_inspection.id,
        ))
        lost = storage.last_execution_by_flight(rifle_inspection.id, "tango")
        storage.backend.delete(Collection.HISTORY, lost.id)

        assert storage.repair_history() == 1
        assert storage.last_execution_by_flight(rifle_inspection.id, "tango").plan_id == plan.id
        assert storage.repair_history() == 0
