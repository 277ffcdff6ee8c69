"""Tests for entity and payload models."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pydantic
import pytest

from drillbook.models import (
    Command,
    CommandUpdate,
    EventKind,
    File,
    FileCreate,
    Flight,
    FlightAssignment,
    HistoryEntry,
    NoteCreate,
    Plan,
    PlanCreate,
    PlanUpdate,
    ensure_utc,
)


class TestEnsureUtc:
    def test_naive_taken_as_utc(self):
        result = ensure_utc(datetime(2024, 5, 7, 9, 0))
        assert result.tzinfo == timezone.utc
        assert result.hour == 9

    def test_offset_converted(self):
        plus_two = timezone(timedelta(hours=2))
        result = ensure_utc(datetime(2024, 5, 7, 9, 0, tzinfo=plus_two))
        assert result == datetime(2024, 5, 7, 7, 0, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc


class TestFlightAssignment:
    def test_single_flights(self):
        assert FlightAssignment.ALPHA.flights() == [Flight.ALPHA]
        assert FlightAssignment.TANGO.flights() == [Flight.TANGO]

    def test_both_expands(self):
        assert FlightAssignment.BOTH.flights() == [Flight.ALPHA, Flight.TANGO]


class TestEntities:
    def test_command_defaults(self):
        cmd = Command(name="Rifle Inspection", kind=EventKind.DRILL)
        assert cmd.id
        assert cmd.metadata is None
        assert cmd.created_at.tzinfo == timezone.utc

    def test_ids_are_unique(self):
        a = Command(name="A", kind="drill")
        b = Command(name="B", kind="drill")
        assert a.id != b.id

    def test_plan_date_normalized(self):
        plan = Plan(
            date=datetime(2024, 5, 7),
            flight_assignment="both",
            command_id="c1",
            event_type="drill",
        )
        assert plan.date.tzinfo == timezone.utc
        assert plan.flight_assignment is FlightAssignment.BOTH

    def test_file_size_must_be_non_negative(self):
        with pytest.raises(pydantic.ValidationError):
            File(plan_id="p", file_name="a.pdf", file_path="p/a.pdf", file_size=-1,
                 mime_type="application/pdf")

    def test_history_rejects_both(self):
        with pytest.raises(pydantic.ValidationError):
            HistoryEntry(command_id="c", plan_id="p", flight_type="both",
                         executed_at=datetime.now(tz=timezone.utc))

    def test_json_round_trip(self):
        cmd = Command(name="Class A", kind=EventKind.CLASS, metadata="bring notebooks")
        assert Command.model_validate_json(cmd.model_dump_json()) == cmd


class TestPayloads:
    def test_plan_create_requires_fields(self):
        with pytest.raises(pydantic.ValidationError):
            PlanCreate(date=datetime(2024, 5, 7), command_id="c1")

    def test_plan_create_rejects_unknown_assignment(self):
        with pytest.raises(pydantic.ValidationError):
            PlanCreate(date=datetime(2024, 5, 7), command_id="c1", flight_assignment="bravo")

    def test_plan_create_event_type_optional(self):
        req = PlanCreate(date=datetime(2024, 5, 7), command_id="c1", flight_assignment="alpha")
        assert req.event_type is None

    def test_extra_fields_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            PlanCreate(date=datetime(2024, 5, 7), command_id="c1",
                       flight_assignment="alpha", colour="red")

    def test_update_changes_only_set_fields(self):
        update = CommandUpdate(name="Renamed")
        assert update.changes() == {"name": "Renamed"}

    def test_update_allows_clearing_metadata(self):
        update = CommandUpdate(metadata=None)
        assert update.changes() == {"metadata": None}

    def test_update_rejects_null_required(self):
        with pytest.raises(pydantic.ValidationError):
            CommandUpdate(name=None)
        with pytest.raises(pydantic.ValidationError):
            PlanUpdate(date=None)

    def test_empty_update(self):
        assert PlanUpdate().changes() == {}

    def test_note_rejects_blank_content(self):
        with pytest.raises(pydantic.ValidationError):
            NoteCreate(plan_id="p", content="   ", author_name="Sgt. Lee")

    def test_file_create_negative_size(self):
        with pytest.raises(pydantic.ValidationError):
            FileCreate(plan_id="p", file_name="a", file_path="a", file_size=-5, mime_type="x/y")
