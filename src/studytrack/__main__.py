"""StudyTrack command line entry point.

Usage:
    python -m studytrack [OPTIONS] COMMAND

Commands:
    dashboard                      Today's progress, weekly series and summary
    calendar [--days N] [--end D]  Heatmap entries for a trailing window
    weekly [--date D]              Daily rollups for the week containing D
    tasks list|add|complete|reopen|delete
    sessions add|list              Study sessions
    metrics [--date D]             Daily study metrics
"""

import argparse
import json
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pymongo.errors import PyMongoError

from . import __version__
from .app import StudyTrack
from .config import StudyTrackConfig
from .config.loader import load_config
from .errors import StudyTrackError
from .storage import MongoStorageClient
from .tasks.validation import parse_date

logger = logging.getLogger("studytrack")


def setup_logging(level: str, fmt: str | None = None) -> None:
    """Configure logging based on config."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=fmt or "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="studytrack",
        description="StudyTrack - learning progress tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m studytrack --user alice dashboard
  python -m studytrack --user alice calendar --days 90
  python -m studytrack --user alice tasks add "Binary trees" --subject DSA --due 2024-01-15T18:00:00Z
  python -m studytrack --user alice tasks complete <task-id>

Environment:
  STUDYTRACK_PROFILE      Set profile (dev, prod, test)
  STUDYTRACK_MONGODB_URI  Override the MongoDB connection URI
  STUDYTRACK_USER         Default user ID
""",
    )
    parser.add_argument("--config", type=Path, metavar="PATH", help="Path to YAML config file")
    parser.add_argument(
        "--profile", choices=["dev", "prod", "test"], help="Configuration profile to use"
    )
    parser.add_argument("--user", default=None, help="User ID (default: $STUDYTRACK_USER or 'default')")
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use a scratch in-memory store instead of MongoDB (discarded when the command exits)",
    )
    parser.add_argument("--version", action="version", version=f"StudyTrack v{__version__}")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("dashboard", help="Show today's dashboard")

    calendar = commands.add_parser("calendar", help="Show calendar heatmap data")
    calendar.add_argument("--days", type=int, default=None, help="Window length in days (1-3650)")
    calendar.add_argument("--end", default=None, help="Last day of the window (YYYY-MM-DD)")

    weekly = commands.add_parser("weekly", help="Show this week's daily rollups")
    weekly.add_argument("--date", default=None, help="Any day in the week (YYYY-MM-DD)")

    tasks = commands.add_parser("tasks", help="Manage tasks")
    task_commands = tasks.add_subparsers(dest="task_command", required=True)

    task_list = task_commands.add_parser("list", help="List tasks")
    status = task_list.add_mutually_exclusive_group()
    status.add_argument("--completed", action="store_true", default=None, help="Only completed tasks")
    status.add_argument("--pending", action="store_true", help="Only pending tasks")
    task_list.add_argument("--subject", default=None, help="Subject contains")
    task_list.add_argument("--due", default=None, help="Due on day (YYYY-MM-DD)")

    task_add = task_commands.add_parser("add", help="Create a task")
    task_add.add_argument("title")
    task_add.add_argument("--subject", default=None)
    task_add.add_argument("--description", default=None)
    task_add.add_argument("--due", default=None, help="Due date (ISO-8601)")
    task_add.add_argument("--priority", choices=["low", "medium", "high"], default="medium")

    for name, help_text in (
        ("complete", "Mark a task completed"),
        ("reopen", "Mark a task pending"),
        ("delete", "Delete a task"),
    ):
        sub = task_commands.add_parser(name, help=help_text)
        sub.add_argument("task_id")

    sessions = commands.add_parser("sessions", help="Manage study sessions")
    session_commands = sessions.add_subparsers(dest="session_command", required=True)

    session_add = session_commands.add_parser("add", help="Record a study session")
    session_add.add_argument("topic")
    session_add.add_argument("--subject", required=True)
    session_add.add_argument("--duration", required=True, help='e.g. "1.5 hours", "30 minutes"')
    session_add.add_argument(
        "--status", choices=["planned", "in-progress", "completed"], default="completed"
    )
    session_add.add_argument("--date", default=None, help="Session day (YYYY-MM-DD)")
    session_add.add_argument("--notes", default="")

    session_list = session_commands.add_parser("list", help="List recent sessions")
    session_list.add_argument("--limit", type=int, default=10)

    metrics = commands.add_parser("metrics", help="Show daily study metrics")
    metrics.add_argument("--date", default=None, help="Day (YYYY-MM-DD)")

    return parser


def run_command(app: StudyTrack, args: argparse.Namespace, user_id: str) -> Any:
    """Execute a parsed command and return its JSON-serializable result.

    Raises:
        StudyTrackError: On invalid input or missing tasks.
    """
    if args.command == "dashboard":
        return app.dashboard(user_id).to_dict()

    if args.command == "calendar":
        return [entry.to_dict() for entry in app.calendar(user_id, end=args.end, days=args.days)]

    if args.command == "weekly":
        today = parse_date(args.date) if args.date else None
        return [entry.to_dict() for entry in app.weekly_stats(user_id, today)]

    if args.command == "tasks":
        service = app.task_service(user_id)
        if args.task_command == "list":
            completed = True if args.completed else (False if args.pending else None)
            tasks = service.list_tasks(completed=completed, subject=args.subject, due_date=args.due)
            return [t.to_payload() for t in tasks]
        if args.task_command == "add":
            payload: dict[str, Any] = {"title": args.title, "priority": args.priority}
            if args.subject is not None:
                payload["subject"] = args.subject
            if args.description is not None:
                payload["description"] = args.description
            if args.due is not None:
                payload["dueDate"] = args.due
            return service.create(payload).to_payload()
        if args.task_command == "complete":
            return service.mark_complete(args.task_id).to_payload()
        if args.task_command == "reopen":
            return service.mark_incomplete(args.task_id).to_payload()
        if args.task_command == "delete":
            service.delete(args.task_id)
            return {"success": True}

    if args.command == "sessions":
        if args.session_command == "add":
            session = app.add_session(
                user_id,
                topic=args.topic,
                subject=args.subject,
                duration=args.duration,
                status=args.status,
                session_date=args.date,
                notes=args.notes,
            )
            return session.to_dict()
        if args.session_command == "list":
            return [s.to_dict() for s in app.recent_sessions(user_id, args.limit)]

    if args.command == "metrics":
        return app.study_metrics(user_id, args.date).to_dict()

    raise StudyTrackError(f"Unknown command: {args.command}")


def _storage_from_config(config: StudyTrackConfig) -> MongoStorageClient:
    return MongoStorageClient(
        uri=config.storage.uri,
        database_name=config.storage.database,
        max_pool_size=config.storage.max_pool_size,
        min_pool_size=config.storage.min_pool_size,
        connect_timeout_ms=config.storage.connect_timeout_ms,
        server_selection_timeout_ms=config.storage.server_selection_timeout_ms,
        cache_ttl_seconds=config.tracker.cache_ttl_seconds,
    )


def main(
    argv: Sequence[str] | None = None,
    storage: MongoStorageClient | None = None,
) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments (defaults to sys.argv)
        storage: Storage client to use instead of one built from config

    Returns:
        Process exit code
    """
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = load_config(path=args.config, profile=args.profile)
    except (FileNotFoundError, StudyTrackError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logging.level, config.logging.format)
    user_id = args.user or os.environ.get("STUDYTRACK_USER") or "default"

    owns_storage = storage is None and not args.memory
    if owns_storage:
        storage = _storage_from_config(config)

    try:
        if args.memory:
            app = StudyTrack.in_memory(config.tracker)
        else:
            storage.connect()
            app = StudyTrack.from_storage(storage, config.tracker)
        result = run_command(app, args, user_id)
    except (StudyTrackError, ValueError) as e:
        logger.debug("Command failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except PyMongoError as e:
        logger.error("Database error: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if owns_storage:
            storage.disconnect()

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
