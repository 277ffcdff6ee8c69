"""Execution-history fan-out: one HistoryEntry per flight a plan covers."""

from __future__ import annotations

from drillbook.models import HistoryEntry, Plan
from drillbook.storage.backend import Backend


def history_for(plan: Plan) -> list[HistoryEntry]:
    """Derive the history rows a plan implies.

    alpha / tango give one entry, both gives an alpha and a tango entry.
    Every entry is dated with the plan's date.
    """
    return [
        HistoryEntry(
            command_id=plan.command_id,
            plan_id=plan.id,
            flight_type=flight,
            executed_at=plan.date,
        )
        for flight in plan.flight_assignment.flights()
    ]


def fan_out(backend: Backend, plan: Plan) -> list[HistoryEntry]:
    """Write the history rows for a freshly created plan."""
    entries = history_for(plan)
    for entry in entries:
        backend.put(entry)
    return entries


def missing_history(plan: Plan, existing: list[HistoryEntry]) -> list[HistoryEntry]:
    """History rows the plan implies that ``existing`` lacks."""
    have = {e.flight_type for e in existing}
    return [e for e in history_for(plan) if e.flight_type not in have]
