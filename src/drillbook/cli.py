"""CLI entry point for operator maintenance tasks."""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from drillbook.config import BACKENDS, load_retention_policy
from drillbook.db.engine import init_db
from drillbook.errors import StorageError
from drillbook.storage.factory import open_storage

logger = logging.getLogger(__name__)


def _format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KiB", "MiB", "GiB"):
        value /= 1024
        if value < 1024:
            break
    return f"{value:.1f} {unit}"


def _date_or_dash(value) -> str:
    return value.date().isoformat() if value else "-"


def run_size(backend: str | None) -> None:
    policy = load_retention_policy()
    with open_storage(backend, policy=policy) as storage:
        size = storage.estimate_size()
    pct = 100.0 * size / policy.quota_bytes
    print(f"Size:   {_format_bytes(size)} ({pct:.1f}% of quota)")
    print(f"Quota:  {_format_bytes(policy.quota_bytes)}")
    print(f"Target: {_format_bytes(policy.target_bytes)}")


def run_prune(backend: str | None) -> None:
    with open_storage(backend) as storage:
        report = storage.prune()
    if not report.pruned:
        print(f"Nothing to prune ({_format_bytes(report.size_before)}).")
        return
    print(f"Deleted {len(report.deleted_plan_ids)} plans.")
    print(f"Size: {_format_bytes(report.size_before)} -> {_format_bytes(report.size_after)}")
    if not report.reached_target:
        print("Warning: still over target; only each command's latest plan remains.")


def run_commands(backend: str | None) -> None:
    with open_storage(backend) as storage:
        summaries = storage.list_command_summaries()
    if not summaries:
        print("No commands.")
        return
    print(f"{'Command':<32} {'Kind':<6} {'Alpha':<10} {'Tango':<10}")
    for s in summaries:
        print(
            f"{s.command.name[:32]:<32} {s.command.kind.value:<6} "
            f"{_date_or_dash(s.last_alpha_execution):<10} "
            f"{_date_or_dash(s.last_tango_execution):<10}"
        )


def run_history(backend: str | None, command_id: str) -> None:
    with open_storage(backend) as storage:
        command = storage.get_command(command_id)
        if command is None:
            print(f"Error: Command not found: {command_id}")
            sys.exit(1)
        entries = storage.list_history(command_id)
    print(f"{command.name} ({command.kind.value})")
    for entry in entries:
        print(f"  {entry.executed_at.date().isoformat()}  {entry.flight_type.value}")


def run_repair_history(backend: str | None) -> None:
    with open_storage(backend) as storage:
        added = storage.repair_history()
    print(f"Restored {added} history rows.")


def main() -> None:
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="drillbook",
        description="Drill schedule storage maintenance",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--backend", choices=BACKENDS, default=None,
        help="Storage backend (default: env DRILLBOOK_BACKEND or 'sql')",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("init-db", help="Create database tables (development)")
    subparsers.add_parser("size", help="Show the storage size estimate against the quota")
    subparsers.add_parser("prune", help="Evict superseded plans until under the quota target")
    subparsers.add_parser("commands", help="List commands with last execution per flight")
    history_parser = subparsers.add_parser("history", help="Show execution history of a command")
    history_parser.add_argument("command_id", help="Command ID")
    subparsers.add_parser(
        "repair-history", help="Re-create history rows missing for existing plans"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        if args.command == "init-db":
            init_db()
        elif args.command == "size":
            run_size(args.backend)
        elif args.command == "prune":
            run_prune(args.backend)
        elif args.command == "commands":
            run_commands(args.backend)
        elif args.command == "history":
            run_history(args.backend, args.command_id)
        elif args.command == "repair-history":
            run_repair_history(args.backend)
    except StorageError as exc:
        print(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
