"""CLI entry point for devbrain."""

import argparse
from pathlib import Path

from . import __version__
from .config import Settings
from .errors import DevBrainError
from .logging import setup_logging
from .models import Priority, TaskStatus, TaskType

_TYPES = [t.value for t in TaskType]
_STATUSES = [s.value for s in TaskStatus]
_PRIORITIES = [p.value for p in Priority]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog="devbrain",
        description="Task lifecycle manager keeping backlog, tickets and git worktrees in sync",
    )
    parser.add_argument(
        "--base-path",
        type=Path,
        default=None,
        help="Workspace root (default: $DEVBRAIN_BASE_PATH or ~/.devbrain)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    create = sub.add_parser("create", help="Create a task")
    create.add_argument("type", choices=_TYPES, help="Task type")
    create.add_argument("branch", help="Branch name (or description when a pattern is set)")
    create.add_argument("--repo", default="", help="Local repo path or platform/org/repo")
    create.add_argument("--title", default="", help="Task title (default: branch)")
    create.add_argument("--priority", choices=_PRIORITIES, default=None)
    create.add_argument("--owner", default=None)
    create.add_argument("--tag", dest="tags", action="append", default=None, help="Repeatable")
    create.add_argument("--no-worktree", action="store_true", help="Do not create a worktree")
    create.add_argument("--print-env", action="store_true", help="Print export lines only")

    resume = sub.add_parser("resume", help="Resume a task and ensure its worktree")
    resume.add_argument("task_id")
    resume.add_argument("--no-worktree", action="store_true", help="Do not create a worktree")
    resume.add_argument("--print-env", action="store_true", help="Print export lines only")

    archive = sub.add_parser("archive", help="Archive a task with a handoff summary")
    archive.add_argument("task_id")
    archive.add_argument("--force", action="store_true", help="Archive in_progress/blocked tasks")
    archive.add_argument("--keep-worktree", action="store_true", help="Leave the worktree")

    unarchive = sub.add_parser("unarchive", help="Restore an archived task")
    unarchive.add_argument("task_id")

    cleanup = sub.add_parser("cleanup", help="Remove a task's worktree")
    cleanup.add_argument("task_id")

    status = sub.add_parser("update-status", help="Set a task's status")
    status.add_argument("task_id")
    status.add_argument("status", choices=_STATUSES)

    priority = sub.add_parser("update-priority", help="Set a task's priority")
    priority.add_argument("task_id")
    priority.add_argument("priority", choices=_PRIORITIES)

    reorder = sub.add_parser("reorder-priorities", help="Assign P0..P3 in the given order")
    reorder.add_argument("task_ids", nargs="+")

    show = sub.add_parser("show", help="Show a task")
    show.add_argument("task_id")
    show.add_argument("--print-env", action="store_true", help="Print export lines only")

    list_cmd = sub.add_parser("list", help="List tasks")
    list_cmd.add_argument(
        "--status", dest="statuses", choices=_STATUSES, action="append", help="Repeatable"
    )
    list_cmd.add_argument(
        "--priority", dest="priorities", choices=_PRIORITIES, action="append", help="Repeatable"
    )
    list_cmd.add_argument("--owner", default="")
    list_cmd.add_argument("--repo", default="", help="Local repo path or platform/org/repo")
    list_cmd.add_argument(
        "--tag", dest="tags", action="append", help="Repeatable; tasks must have every tag"
    )

    sub.add_parser("protected-branches", help="Show branches of unfinished tasks")
    sub.add_parser("sync-repos", help="Fetch, fast-forward and prune repos/")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


def dispatch(app, args: argparse.Namespace) -> int:
    """Run the selected subcommand and return its exit code."""
    from .cli import commands

    if args.command == "create":
        return commands.run_create(
            app,
            args.type,
            args.branch,
            repo=args.repo,
            title=args.title,
            priority=args.priority,
            owner=args.owner,
            tags=args.tags,
            create_worktree=not args.no_worktree,
            print_env=args.print_env,
        )
    if args.command == "resume":
        return commands.run_resume(
            app, args.task_id, create_worktree=not args.no_worktree, print_env=args.print_env
        )
    if args.command == "archive":
        return commands.run_archive(
            app, args.task_id, force=args.force, keep_worktree=args.keep_worktree
        )
    if args.command == "unarchive":
        return commands.run_unarchive(app, args.task_id)
    if args.command == "cleanup":
        return commands.run_cleanup(app, args.task_id)
    if args.command == "update-status":
        return commands.run_update_status(app, args.task_id, args.status)
    if args.command == "update-priority":
        return commands.run_update_priority(app, args.task_id, args.priority)
    if args.command == "reorder-priorities":
        return commands.run_reorder_priorities(app, args.task_ids)
    if args.command == "show":
        return commands.run_show(app, args.task_id, print_env=args.print_env)
    if args.command == "list":
        return commands.run_list(
            app,
            statuses=args.statuses,
            priorities=args.priorities,
            owner=args.owner,
            repo=args.repo,
            tags=args.tags,
        )
    if args.command == "protected-branches":
        return commands.run_protected_branches(app)
    if args.command == "sync-repos":
        return commands.run_sync_repos(app)
    raise ValueError(f"unknown command {args.command!r}")


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    # Build settings from CLI args
    settings_kwargs: dict = {}
    if args.base_path:
        settings_kwargs["base_path"] = args.base_path
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file

    settings = Settings(**settings_kwargs)

    setup_logging(settings.verbose, settings.log_file)

    # Import here so --help and --version stay fast
    from .app import DevBrain
    from .cli.output import error

    try:
        app = DevBrain(settings)
        exit_code = dispatch(app, args)
    except DevBrainError as e:
        error(str(e))
        exit_code = 1

    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
