"""Command implementations for the devbrain CLI.

Each run_* function performs one lifecycle operation, prints the outcome and
returns the process exit code. DevBrainError is left to the caller, which
reports it and exits with 1.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import yaml

from ..models import LifecycleResult, Priority, TaskFilter, TaskStatus, TaskType
from .output import env_exports, header, info, success, task_table, warning

if TYPE_CHECKING:
    from ..app import DevBrain


def _report_warnings(result: LifecycleResult) -> None:
    for message in result.warnings:
        warning(message)


def run_create(
    app: DevBrain,
    task_type: str,
    branch: str,
    repo: str = "",
    title: str = "",
    priority: str | None = None,
    owner: str | None = None,
    tags: Sequence[str] | None = None,
    create_worktree: bool = True,
    print_env: bool = False,
) -> int:
    """Create a task and print its ID, branch and locations."""
    result = app.lifecycle.create_task(
        TaskType(task_type),
        branch,
        repo=repo,
        title=title,
        priority=Priority(priority) if priority else None,
        owner=owner,
        tags=tags,
        create_worktree=create_worktree,
    )
    task = result.task
    _report_warnings(result)

    if print_env:
        print(env_exports(task))
        return 0

    success(f"Created {task.id} ({task.type.value}) on branch {task.branch}")
    info(f"Ticket: {task.ticket_path}")
    if task.worktree_path:
        info(f"Worktree: {task.worktree_path}")
    return 0


def run_resume(
    app: DevBrain, task_id: str, create_worktree: bool = True, print_env: bool = False
) -> int:
    """Resume a task, creating its worktree if needed."""
    result = app.lifecycle.resume_task(task_id, create_worktree=create_worktree)
    task = result.task
    _report_warnings(result)

    if print_env:
        print(env_exports(task))
        return 0

    success(f"Resumed {task.id} ({task.status.value})")
    if task.worktree_path:
        info(f"Worktree: {task.worktree_path}")
    return 0


def run_archive(
    app: DevBrain, task_id: str, force: bool = False, keep_worktree: bool = False
) -> int:
    """Archive a task and report the generated handoff."""
    result = app.lifecycle.archive_task(task_id, force=force, keep_worktree=keep_worktree)
    _report_warnings(result)

    success(f"Archived {result.task.id}")
    info(f"Ticket: {result.task.ticket_path}")
    if result.handoff is not None:
        handoff = result.handoff
        info(
            f"Handoff: {len(handoff.completed_work)} completed, "
            f"{len(handoff.open_items)} open, {len(handoff.learnings)} learnings"
        )
    if result.worktree_removed:
        info("Worktree removed")
    return 0


def run_unarchive(app: DevBrain, task_id: str) -> int:
    """Restore an archived task."""
    result = app.lifecycle.unarchive_task(task_id)
    success(f"Unarchived {result.task.id} ({result.task.status.value})")
    return 0


def run_cleanup(app: DevBrain, task_id: str) -> int:
    """Remove a task's worktree."""
    result = app.lifecycle.cleanup_worktree(task_id)
    success(f"Worktree cleaned up for {result.task.id}")
    return 0


def run_update_status(app: DevBrain, task_id: str, status: str) -> int:
    result = app.lifecycle.update_task_status(task_id, TaskStatus(status))
    success(f"{result.task.id} status: {result.task.status.value}")
    return 0


def run_update_priority(app: DevBrain, task_id: str, priority: str) -> int:
    result = app.lifecycle.update_task_priority(task_id, Priority(priority))
    success(f"{result.task.id} priority: {result.task.priority.value}")
    return 0


def run_reorder_priorities(app: DevBrain, task_ids: Sequence[str]) -> int:
    """Reassign priorities in the given order."""
    tasks = app.lifecycle.reorder_priorities(task_ids)
    for task in tasks:
        info(f"{task.id}: {task.priority.value}")
    success(f"Reordered {len(tasks)} task(s)")
    return 0


def run_show(app: DevBrain, task_id: str, print_env: bool = False) -> int:
    """Print a task record."""
    task = app.lifecycle.get_task(task_id)
    if print_env:
        print(env_exports(task))
    else:
        print(yaml.safe_dump(task.to_record(), sort_keys=False), end="")
    return 0


def run_list(
    app: DevBrain,
    statuses: Sequence[str] | None = None,
    priorities: Sequence[str] | None = None,
    owner: str = "",
    repo: str = "",
    tags: Sequence[str] | None = None,
) -> int:
    """List tasks matching every given filter; repeated values of one flag are ORed."""
    task_filter = TaskFilter(
        statuses=[TaskStatus(s) for s in statuses or []],
        priorities=[Priority(p) for p in priorities or []],
        owner=owner,
        repo=repo,
        tags=list(tags or []),
    )
    tasks = app.lifecycle.list_tasks(task_filter=task_filter)
    if not tasks:
        info("No tasks found")
        return 0
    task_table(tasks)
    return 0


def run_protected_branches(app: DevBrain) -> int:
    """Print the branches repository maintenance must not delete."""
    protected = app.protected_branches.resolve()
    if not protected:
        info("No protected branches")
        return 0
    for repo in sorted(protected):
        header(repo)
        for branch in sorted(protected[repo]):
            print(f"  {branch}")
    return 0


def run_sync_repos(app: DevBrain) -> int:
    """Fetch, fast-forward and prune every repository under repos/."""
    results = app.repo_sync.sync_all(app.protected_branches.resolve())
    if not results:
        info("No repositories found under repos/")
        return 0

    deleted = skipped = errors = 0
    for result in results:
        header(f"== {result.repo_path} ==")
        if result.has_error:
            warning(f"{result.repo_path}: {result.error}")
            errors += 1
            continue
        if result.default_branch:
            info(f"Default branch: {result.default_branch}")
        if result.branches_deleted:
            info(f"Deleted branches: {', '.join(result.branches_deleted)}")
            deleted += len(result.branches_deleted)
        if result.branches_skipped:
            info(f"Skipped (active tasks): {', '.join(result.branches_skipped)}")
            skipped += len(result.branches_skipped)

    print(
        f"Synced {len(results)} repos, deleted {deleted} branches, "
        f"skipped {skipped} (active), {errors} errors"
    )
    return 0
