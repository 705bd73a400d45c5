"""Task lifecycle service.

Composes the backlog registry, the ticket directories and the git worktrees
into the public task operations. The registry is the only place task
metadata is written; every registry write is followed by a status.yaml
refresh in the task's ticket directory.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import DevBrainError, InvalidTransitionError
from ..models import (
    ACTIVE_STATUSES,
    ArchiveResult,
    LifecycleResult,
    Priority,
    Task,
    TaskFilter,
    TaskStatus,
    TaskType,
    WorkspaceConfig,
)
from ..utils import (
    format_branch_name,
    is_local_repo,
    normalize_repo_path,
    normalize_task_id,
    now_utc,
    repo_identifier_for_path,
    validate_branch_name,
    validate_task_id,
)

if TYPE_CHECKING:
    from ..integration import WorktreeManagerProtocol
    from ..repositories import BacklogStore, TicketDirectoryManager
    from .config_service import ConfigService
    from .handoff_service import HandoffService

logger = logging.getLogger(__name__)

# Priorities handed out by reorder_priorities, in order; the rest get P3
REORDER_PRIORITIES = (Priority.P0, Priority.P1, Priority.P2)


class TaskLifecycleService:
    """Service for creating, resuming, archiving and updating tasks."""

    def __init__(
        self,
        store: BacklogStore,
        tickets: TicketDirectoryManager,
        worktrees: WorktreeManagerProtocol,
        config_service: ConfigService | None = None,
        handoff_service: HandoffService | None = None,
        repos_root: Path | None = None,
    ) -> None:
        self.store = store
        self.tickets = tickets
        self.worktrees = worktrees
        # Clones of platform/org/repo identifiers live here
        self.repos_root = repos_root if repos_root is not None else tickets.base_path / "repos"
        self._config_service = config_service
        if handoff_service is None:
            from .handoff_service import HandoffService

            handoff_service = HandoffService()
        self.handoffs = handoff_service

    def _get_config(self) -> WorkspaceConfig:
        if self._config_service:
            return self._config_service.get_config()
        return WorkspaceConfig.default()

    @contextmanager
    def _step(self, action: str, step: str) -> Iterator[None]:
        """Prefix filesystem errors with the operation and sub-step that failed."""
        try:
            yield
        except OSError as e:
            raise DevBrainError(f"{action}: {step}: {e}") from e

    def _write_status(self, task: Task) -> None:
        """Mirror the registry record into status.yaml. Never fails the operation."""
        try:
            self.tickets.write_status(task)
        except OSError as e:
            logger.warning(f"Could not write status.yaml for {task.id}: {e}")

    def normalize_repo(self, repo: str) -> str:
        """
        Canonical form of a repo argument as stored on the task.

        Identifiers and URLs are normalized to "platform/org/repo", as are
        local paths to a clone under repos/. Other local paths become
        absolute.
        """
        if not repo or not repo.strip():
            return ""
        if is_local_repo(repo):
            identifier = repo_identifier_for_path(repo, self.repos_root)
            if identifier is not None:
                return identifier
            return str(Path(repo.strip()).expanduser().resolve())
        return normalize_repo_path(repo)

    @staticmethod
    def _task_id(task_id: str) -> str:
        """Normalize user input such as "TASK-00001/" and validate it."""
        return validate_task_id(normalize_task_id(task_id))

    # --- Queries ---

    def get_task(self, task_id: str) -> Task:
        """Get a task by ID. Raises TaskNotFoundError if absent."""
        return self.store.load().require(self._task_id(task_id))

    def list_tasks(
        self,
        status: TaskStatus | None = None,
        task_filter: TaskFilter | None = None,
    ) -> list[Task]:
        """
        Tasks in registry order.

        ``status`` is shorthand for a filter on one status. A filter's repo
        is normalized the same way as on create, so any spelling matches.
        """
        criteria = task_filter or TaskFilter()
        if status is not None:
            criteria = replace(criteria, statuses=[status])
        if criteria.repo:
            criteria = replace(criteria, repo=self.normalize_repo(criteria.repo))
        return self.store.load().filter(criteria)

    # --- Lifecycle operations ---

    def create_task(
        self,
        task_type: TaskType | str,
        branch: str,
        repo: str = "",
        title: str = "",
        priority: Priority | None = None,
        owner: str | None = None,
        tags: Sequence[str] | None = None,
        source: str = "",
        create_worktree: bool = True,
    ) -> LifecycleResult:
        """
        Create a task in the backlog.

        The registry insert reserves the ID and branch first. The ticket
        directory follows; if it cannot be created the registry record is
        removed again. The worktree comes last and is best-effort: a failure
        is returned as a warning and the task keeps an empty worktree path.
        A worktree whose path cannot be recorded is removed again.

        Raises:
            AlreadyExistsError: If the branch already belongs to a task in
                the same repository.
            InvalidIdentifierError: If the branch name is unsafe.
            BusyError: If the registry lock cannot be acquired.
        """
        task_type = TaskType(task_type)
        config = self._get_config()
        repo_key = self.normalize_repo(repo)
        now = now_utc()

        with self.store.transaction() as registry:
            task_id = registry.next_task_id(config.task_id.prefix, config.task_id.pad_width)
            branch_name = validate_branch_name(
                format_branch_name(config.branch.pattern, task_type.value, task_id, branch)
            )
            task = registry.add(
                Task(
                    id=task_id,
                    type=task_type,
                    branch=branch_name,
                    repo=repo_key,
                    title=title or branch,
                    status=TaskStatus.BACKLOG,
                    priority=priority or config.defaults.priority,
                    owner=owner if owner is not None else config.defaults.owner,
                    tags=list(tags or []),
                    source=source,
                    created=now,
                    updated=now,
                    status_changed={TaskStatus.BACKLOG: now},
                    ticket_path=str(self.tickets.active_path(task_id)),
                )
            )
        logger.info("Task created: %s (type=%s, branch=%s)", task_id, task_type.value, branch_name)

        try:
            with self._step(f"creating {task_id}", "creating ticket directory"):
                self.tickets.create(task_id, task_type, task.title)
        except DevBrainError:
            logger.warning("Rolling back registry entry for %s", task_id)
            with self.store.transaction() as registry:
                registry.remove(task_id)
            raise

        warnings: list[str] = []
        if create_worktree and repo_key:
            try:
                worktree_path = self.worktrees.create(repo_key, branch_name, task_id)
            except DevBrainError as e:
                warnings.append(f"worktree not created: {e}")
                logger.warning(f"Worktree for {task_id} not created: {e}")
            else:
                try:
                    with self.store.transaction() as registry:
                        recorded = registry.require(task_id)
                        recorded.worktree_path = worktree_path
                        recorded.updated = now_utc()
                except DevBrainError as e:
                    warnings.append(self._discard_worktree(task_id, worktree_path, e))
                else:
                    task = recorded

        self._write_status(task)
        return LifecycleResult(task=task, warnings=warnings)

    def resume_task(self, task_id: str, create_worktree: bool = True) -> LifecycleResult:
        """
        Resume work on a task.

        A backlog task moves to in_progress. A recorded worktree path that no
        longer exists is cleared, and a missing worktree is created. Worktree
        errors are raised here since the user asked for the workspace; the
        registry is left unchanged in that case.

        Raises:
            TaskNotFoundError: If the task does not exist.
            InvalidTransitionError: If the task is archived.
            ExternalToolError: If the worktree cannot be created.
        """
        task = self.get_task(task_id)
        task_id = task.id
        self._require_not_archived(task, "resume")

        worktree_path = task.worktree_path
        if worktree_path and not self.worktrees.exists(worktree_path):
            logger.info("Clearing stale worktree path %s for %s", worktree_path, task_id)
            worktree_path = ""
        if create_worktree and not worktree_path and task.repo and task.branch:
            worktree_path = self.worktrees.create(task.repo, task.branch, task.id)

        now = now_utc()
        with self.store.transaction() as registry:
            task = registry.require(task_id)
            self._require_not_archived(task, "resume")
            task.worktree_path = worktree_path
            if task.status == TaskStatus.BACKLOG:
                task.set_status(TaskStatus.IN_PROGRESS, now)
            else:
                task.updated = now

        logger.info("Task resumed: %s (status=%s)", task_id, task.status.value)
        self._write_status(task)
        return LifecycleResult(task=task)

    def archive_task(
        self, task_id: str, force: bool = False, keep_worktree: bool = False
    ) -> ArchiveResult:
        """
        Archive a task.

        Steps run in this order: handoff.md generation, worktree removal
        (best-effort, skipped with keep_worktree), move of the ticket
        directory, and finally the registry update. An interrupted archive
        leaves the task unarchived and can simply be retried.

        Raises:
            InvalidTransitionError: If the task is already archived, or is
                in_progress/blocked and force is not set.
        """
        task = self.get_task(task_id)
        task_id = task.id
        action = f"archiving {task_id}"
        if task.is_archived:
            raise InvalidTransitionError(
                task_id, task.status.value, f"{action}: task is already archived"
            )
        if task.status in ACTIVE_STATUSES and not force:
            raise InvalidTransitionError(
                task_id,
                task.status.value,
                f"{action}: task is {task.status.value}; use --force to archive an active task",
            )

        warnings: list[str] = []
        ticket_dir = self.tickets.resolve(task_id)
        with self._step(action, "writing handoff"):
            handoff = self.handoffs.build(task, ticket_dir)
            if ticket_dir.is_dir():
                self.handoffs.write(handoff, ticket_dir)
            else:
                warnings.append(f"ticket directory {ticket_dir} missing, handoff.md not written")

        worktree_removed = False
        if task.worktree_path and not keep_worktree:
            try:
                self.worktrees.remove(task.worktree_path)
                worktree_removed = True
            except DevBrainError as e:
                warnings.append(f"worktree not removed: {e}")
                logger.warning(f"Worktree for {task_id} not removed: {e}")

        with self._step(action, "moving ticket directory"):
            if self.tickets.exists(task_id):
                archived_path = self.tickets.move_to_archived(task_id)
            else:
                archived_path = self.tickets.archived_path(task_id)

        now = now_utc()
        with self.store.transaction() as registry:
            task = registry.require(task_id)
            task.pre_archive_status = task.status
            task.set_status(TaskStatus.ARCHIVED, now)
            task.ticket_path = str(archived_path)
            if worktree_removed:
                task.worktree_path = ""

        logger.info("Task archived: %s (was %s)", task_id, task.pre_archive_status.value)
        self._write_status(task)
        return ArchiveResult(
            task=task, warnings=warnings, handoff=handoff, worktree_removed=worktree_removed
        )

    def unarchive_task(self, task_id: str) -> LifecycleResult:
        """
        Restore an archived task to the status it had before archiving.

        Raises:
            InvalidTransitionError: If the task is not archived.
        """
        task = self.get_task(task_id)
        task_id = task.id
        action = f"unarchiving {task_id}"
        if not task.is_archived:
            raise InvalidTransitionError(
                task_id,
                task.status.value,
                f"{action}: task is not archived (status: {task.status.value})",
            )

        with self._step(action, "moving ticket directory"):
            if self.tickets.exists(task_id):
                active_path = self.tickets.move_to_active(task_id)
            else:
                active_path = self.tickets.active_path(task_id)

        now = now_utc()
        with self.store.transaction() as registry:
            task = registry.require(task_id)
            restored = task.pre_archive_status or TaskStatus.BACKLOG
            task.set_status(restored, now)
            task.pre_archive_status = None
            task.ticket_path = str(active_path)

        logger.info("Task unarchived: %s (status=%s)", task_id, task.status.value)
        self._write_status(task)
        return LifecycleResult(task=task)

    def update_task_status(self, task_id: str, status: TaskStatus | str) -> LifecycleResult:
        """
        Set a task's status. Registry update only.

        Raises:
            InvalidTransitionError: For moves into or out of archived, which
                must go through archive_task/unarchive_task so the ticket
                directory moves with the status.
        """
        status = TaskStatus(status)
        task_id = self._task_id(task_id)
        with self.store.transaction() as registry:
            task = registry.require(task_id)
            if status == TaskStatus.ARCHIVED and not task.is_archived:
                raise InvalidTransitionError(
                    task_id, task.status.value, f"use archive to archive {task_id}"
                )
            if task.is_archived and status != TaskStatus.ARCHIVED:
                raise InvalidTransitionError(
                    task_id,
                    task.status.value,
                    f"{task_id} is archived; use unarchive to restore it",
                )
            if task.status != status:
                task.set_status(status, now_utc())

        logger.info("Task status updated: %s -> %s", task_id, status.value)
        self._write_status(task)
        return LifecycleResult(task=task)

    def update_task_priority(self, task_id: str, priority: Priority | str) -> LifecycleResult:
        """Set a task's priority. Registry update only."""
        priority = Priority(priority)
        task_id = self._task_id(task_id)
        with self.store.transaction() as registry:
            task = registry.require(task_id)
            task.priority = priority
            task.updated = now_utc()

        logger.info("Task priority updated: %s -> %s", task_id, priority.value)
        self._write_status(task)
        return LifecycleResult(task=task)

    def reorder_priorities(self, task_ids: Sequence[str]) -> list[Task]:
        """
        Assign P0, P1 and P2 to the first three IDs and P3 to the rest.

        Status is not touched and tasks not named keep their priority. All
        IDs are checked before anything is written; a repeated ID keeps the
        priority of its first position.

        Raises:
            TaskNotFoundError: If any ID is unknown. Nothing is changed.
        """
        ordered: list[str] = []
        for task_id in map(self._task_id, task_ids):
            if task_id not in ordered:
                ordered.append(task_id)

        now = now_utc()
        with self.store.transaction() as registry:
            tasks = [registry.require(task_id) for task_id in ordered]
            for index, task in enumerate(tasks):
                if index < len(REORDER_PRIORITIES):
                    task.priority = REORDER_PRIORITIES[index]
                else:
                    task.priority = Priority.P3
                task.updated = now

        logger.info("Reordered priorities for %d task(s)", len(tasks))
        for task in tasks:
            self._write_status(task)
        return tasks

    def cleanup_worktree(self, task_id: str) -> LifecycleResult:
        """
        Remove a task's worktree and clear its path. Idempotent.

        A task without a worktree, or whose worktree is already gone, is
        left with an empty path and no error.

        Raises:
            ExternalToolError: If git refuses to remove the worktree.
        """
        task = self.get_task(task_id)
        task_id = task.id
        if task.worktree_path:
            self.worktrees.remove(task.worktree_path)
        else:
            logger.debug("Task %s has no worktree", task_id)

        with self.store.transaction() as registry:
            task = registry.require(task_id)
            if task.worktree_path:
                task.worktree_path = ""
                task.updated = now_utc()

        logger.info("Worktree cleaned up for %s", task_id)
        self._write_status(task)
        return LifecycleResult(task=task)

    def _discard_worktree(self, task_id: str, worktree_path: str, error: DevBrainError) -> str:
        """Remove a worktree whose path could not be recorded. Returns the warning."""
        logger.warning(f"Worktree for {task_id} created but not recorded: {error}")
        try:
            self.worktrees.remove(worktree_path)
        except DevBrainError as e:
            logger.warning(f"Unrecorded worktree {worktree_path} not removed: {e}")
            return f"worktree created but not recorded: {error}; left at {worktree_path}"
        return f"worktree created but not recorded: {error}; removed it"

    def _require_not_archived(self, task: Task, verb: str) -> None:
        if task.is_archived:
            raise InvalidTransitionError(
                task.id,
                task.status.value,
                f"cannot {verb} {task.id}: task is archived; unarchive it first",
            )
