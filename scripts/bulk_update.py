#!/usr/bin/env python3
"""
Run one bulk task update and print its progress stream.

Every progress event published on the project's topic is written to stdout
as one JSON line; the process exits non-zero when the operation fails.

Usage:
  python -m scripts.bulk_update --database-url sqlite:///taskboard.db \\
    --project-id 6f1c... status --new-status done \\
    [--filter current_status=in_progress] [--filter overdue=true]

  python -m scripts.bulk_update --project-id 6f1c... priority --new-priority 5
  python -m scripts.bulk_update --project-id 6f1c... due-date --operation add_7_days
  python -m scripts.bulk_update --project-id 6f1c... due-date \\
    --operation set_specific --date 2025-06-30
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any
from uuid import UUID

from taskboard_config import get_active_config
from taskboard_kernel.db.engine import get_session_factory, init_engine_from_url
from taskboard_kernel.exceptions import TaskboardError
from taskboard_kernel.logging_config import configure_logging

from taskboard_bulk.domain.types import DueDateOperation, OperationType
from taskboard_bulk.orchestrator import BulkOrchestrator
from taskboard_bulk.services.broadcaster import InProcessBroadcaster, topic_for_project
from taskboard_bulk.services.runner import InlineJobRunner, JobStatus

COMMANDS = {
    "status": OperationType.STATUS_UPDATE,
    "priority": OperationType.PRIORITY_UPDATE,
    "due-date": OperationType.DUE_DATE_UPDATE,
}


def parse_filter(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    return key.strip(), value.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bulk update the tasks of one project and stream progress as JSON lines.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="YAML settings file (default: packaged defaults or $TASKBOARD_CONFIG)",
    )
    parser.add_argument(
        "--database-url", type=str, default=None,
        help="Database URL (default: from settings)",
    )
    parser.add_argument("--project-id", required=True, help="Project UUID")
    parser.add_argument(
        "--filter", dest="filters", action="append", type=parse_filter, default=[],
        metavar="KEY=VALUE",
        help="Restrict the affected tasks; repeatable (e.g. overdue=true)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    status = commands.add_parser("status", help="Set task status")
    status.add_argument("--new-status", required=True)

    priority = commands.add_parser("priority", help="Set task priority")
    priority.add_argument("--new-priority", required=True)

    due = commands.add_parser("due-date", help="Set, shift or clear due dates")
    due.add_argument(
        "--operation", required=True,
        choices=[op.value for op in DueDateOperation],
    )
    due.add_argument("--date", default=None, help="YYYY-MM-DD (set_specific only)")

    return parser


def parameters_from_args(args: argparse.Namespace) -> dict[str, Any]:
    if args.command == "status":
        return {"new_status": args.new_status}
    if args.command == "priority":
        return {"new_priority": args.new_priority}
    params: dict[str, Any] = {"operation": args.operation}
    if args.date is not None:
        params["date"] = args.date
    return params


def print_event(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, sort_keys=True), flush=True)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = get_active_config(args.config)
    # JSON logs go to stderr so stdout carries only progress events.
    configure_logging(level=config.logging.level, stream=sys.stderr)

    try:
        project_id = UUID(args.project_id)
    except ValueError:
        print(f"ERROR: --project-id must be a UUID, got {args.project_id!r}", file=sys.stderr)
        return 2

    database_url = args.database_url or config.database.url
    try:
        init_engine_from_url(
            database_url,
            echo=config.database.echo,
            pool_size=config.database.pool_size,
            max_overflow=config.database.max_overflow,
        )
    except Exception as exc:
        print(f"ERROR: Cannot connect to database: {exc}", file=sys.stderr)
        return 1

    broadcaster = InProcessBroadcaster()
    runner = InlineJobRunner(max_attempts=config.bulk.max_attempts)
    orchestrator = BulkOrchestrator.from_session_factory(
        get_session_factory(),
        config=config,
        broadcaster=broadcaster,
        runner=runner,
    )

    broadcaster.subscribe(
        topic_for_project(project_id, config.bulk.topic_prefix), print_event,
    )

    try:
        job_id = orchestrator.enqueue(
            project_id,
            COMMANDS[args.command],
            parameters_from_args(args),
            dict(args.filters),
        )
    except TaskboardError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    record = runner.get(job_id)
    if record.status is not JobStatus.SUCCEEDED:
        print(f"ERROR: {record.error_type}: {record.error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
