"""Backlog registry model."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..errors import AlreadyExistsError, TaskNotFoundError
from ..utils.naming import format_task_id, normalize_repo_path, parse_task_sequence
from .filter import TaskFilter
from .task import Task, TaskStatus

REGISTRY_VERSION = "1.0"


class BacklogRegistry(BaseModel):
    """Ordered collection of tasks keyed by ID, persisted as backlog.yaml.

    ``counter`` is the highest sequence number ever handed out. It only grows,
    so IDs are never reused even after a task record is removed.
    """

    version: str = REGISTRY_VERSION
    counter: int = 0
    tasks: list[Task] = Field(default_factory=list)

    @property
    def ids(self) -> list[str]:
        """Task IDs in registry order."""
        return [t.id for t in self.tasks]

    def get(self, task_id: str) -> Task | None:
        """Return the task with ``task_id`` or None."""
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def require(self, task_id: str) -> Task:
        """Return the task with ``task_id`` or raise TaskNotFoundError."""
        task = self.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def find_branch(self, repo: str, branch: str) -> Task | None:
        """Find the task owning ``branch`` in ``repo`` (repo compared normalized)."""
        if not branch:
            return None
        key = normalize_repo_path(repo)
        for task in self.tasks:
            if task.branch == branch and normalize_repo_path(task.repo) == key:
                return task
        return None

    def add(self, task: Task) -> Task:
        """Append a task, enforcing ID and per-repository branch uniqueness."""
        if self.get(task.id) is not None:
            raise AlreadyExistsError(f"task {task.id} already exists")
        owner = self.find_branch(task.repo, task.branch)
        if owner is not None:
            where = f" in {task.repo}" if task.repo else ""
            raise AlreadyExistsError(
                f"branch {task.branch!r}{where} already belongs to task {owner.id}"
            )
        self.tasks.append(task)
        return task

    def remove(self, task_id: str) -> Task:
        """Remove and return a task. Used to roll back a failed creation."""
        task = self.require(task_id)
        self.tasks.remove(task)
        return task

    def filter(self, criteria: TaskStatus | TaskFilter | None = None) -> list[Task]:
        """Tasks in registry order matching a status or a TaskFilter."""
        if criteria is None:
            return list(self.tasks)
        if isinstance(criteria, TaskStatus):
            criteria = TaskFilter(statuses=[criteria])
        return [t for t in self.tasks if criteria.matches(t)]

    def next_task_id(self, prefix: str, pad_width: int) -> str:
        """Reserve and return the next sequential ID.

        The counter is advanced past any existing ID with the same prefix, so
        a registry edited by hand cannot cause a collision.
        """
        highest = self.counter
        for task_id in self.ids:
            seq = parse_task_sequence(task_id, prefix)
            if seq is not None and seq > highest:
                highest = seq

        candidate = highest + 1
        task_id = format_task_id(prefix, candidate, pad_width)
        while self.get(task_id) is not None:
            candidate += 1
            task_id = format_task_id(prefix, candidate, pad_width)

        self.counter = candidate
        return task_id

    def to_data(self) -> dict:
        """Convert to a plain dict for YAML serialization."""
        return {
            "version": self.version,
            "counter": self.counter,
            "tasks": [t.to_record() for t in self.tasks],
        }

    @classmethod
    def from_data(cls, data: dict) -> BacklogRegistry:
        """Build a registry from parsed YAML.

        Raises:
            pydantic.ValidationError: If any task record is malformed.
            ValueError: If the document has the wrong shape or duplicate IDs.
        """
        raw_tasks = data.get("tasks") or []
        if not isinstance(raw_tasks, list):
            raise ValueError(f"'tasks' must be a list, got {type(raw_tasks).__name__}")
        tasks = [Task.from_record(record) for record in raw_tasks]

        seen: set[str] = set()
        for task in tasks:
            if task.id in seen:
                raise ValueError(f"duplicate task ID {task.id}")
            seen.add(task.id)

        return cls(
            version=str(data.get("version", REGISTRY_VERSION)),
            counter=int(data.get("counter", 0) or 0),
            tasks=tasks,
        )

    @classmethod
    def empty(cls) -> BacklogRegistry:
        """Registry used when backlog.yaml does not exist yet."""
        return cls()
