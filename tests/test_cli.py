"""Tests for the maintenance CLI, run against the document backend."""

from __future__ import annotations

import sys
from datetime import datetime, timezone

import pytest

from drillbook.cli import _format_bytes, main
from drillbook.models import CommandCreate, EventKind, PlanCreate
from drillbook.storage.backend import Collection
from drillbook.storage.factory import open_storage


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("DRILLBOOK_BACKEND", "document")
    return tmp_path


def _run(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["drillbook", *args])
    main()


@pytest.fixture
def rifle_id(data_dir):
    with open_storage() as storage:
        cmd = storage.create_command(CommandCreate(name="Rifle Inspection", kind=EventKind.DRILL))
        storage.create_plan(PlanCreate(
            date=datetime(2024, 5, 7, tzinfo=timezone.utc),
            flight_assignment="both",
            command_id=cmd.id,
        ))
    return cmd.id


class TestFormatBytes:
    @pytest.mark.parametrize("size, expected", [
        (512, "512 B"),
        (2048, "2.0 KiB"),
        (5 * 1024 * 1024, "5.0 MiB"),
        (3 * 1024 ** 3, "3.0 GiB"),
    ])
    def test_units(self, size, expected):
        assert _format_bytes(size) == expected


class TestCommands:
    def test_empty(self, data_dir, monkeypatch, capsys):
        _run(monkeypatch, "commands")
        assert "No commands." in capsys.readouterr().out

    def test_lists_last_executions(self, rifle_id, monkeypatch, capsys):
        _run(monkeypatch, "commands")
        out = capsys.readouterr().out
        assert "Rifle Inspection" in out
        assert out.count("2024-05-07") == 2


class TestHistory:
    def test_shows_entries(self, rifle_id, monkeypatch, capsys):
        _run(monkeypatch, "history", rifle_id)
        out = capsys.readouterr().out
        assert "Rifle Inspection (drill)" in out
        assert "alpha" in out
        assert "tango" in out

    def test_unknown_command(self, data_dir, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, "history", "nonexistent")
        assert exc_info.value.code == 1
        assert "Command not found" in capsys.readouterr().out


class TestMaintenance:
    def test_size(self, rifle_id, monkeypatch, capsys):
        _run(monkeypatch, "size")
        out = capsys.readouterr().out
        # 1 command, 1 plan, 2 history rows at 1 KiB each
        assert "Size:   4.0 KiB" in out

    def test_prune_nothing_to_do(self, rifle_id, monkeypatch, capsys):
        _run(monkeypatch, "prune")
        assert "Nothing to prune" in capsys.readouterr().out

    def test_prune_over_quota(self, rifle_id, monkeypatch, capsys):
        with open_storage() as storage:
            storage.create_plan(PlanCreate(
                date=datetime(2024, 6, 4, tzinfo=timezone.utc),
                flight_assignment="alpha",
                command_id=rifle_id,
            ))
        monkeypatch.setenv("DRILLBOOK_QUOTA_BYTES", "4096")
        monkeypatch.setenv("DRILLBOOK_BUFFER_FRACTION", "0")

        _run(monkeypatch, "prune")
        assert "Deleted 1 plans." in capsys.readouterr().out
        with open_storage() as storage:
            assert [p.plan.date.month for p in storage.list_plans()] == [6]

    def test_repair_history(self, rifle_id, monkeypatch, capsys):
        with open_storage() as storage:
            entry = storage.list_history(rifle_id)[0]
            storage.backend.delete(Collection.HISTORY, entry.id)

        _run(monkeypatch, "repair-history")
        assert "Restored 1 history rows." in capsys.readouterr().out

    def test_backend_flag_overrides_env(self, rifle_id, monkeypatch, capsys):
        monkeypatch.setenv("DRILLBOOK_BACKEND", "sql")
        _run(monkeypatch, "--backend", "document", "commands")
        assert "Rifle Inspection" in capsys.readouterr().out
