"""Task filter model."""

from dataclasses import dataclass, field

from ..utils.naming import normalize_repo_path
from .task import Priority, Task, TaskStatus


@dataclass
class TaskFilter:
    """Criteria for selecting tasks from the registry.

    Empty fields match everything; the fields that are set are ANDed.
    """

    statuses: list[TaskStatus] = field(default_factory=list)  # Any of
    priorities: list[Priority] = field(default_factory=list)  # Any of
    owner: str = ""
    repo: str = ""  # Compared after normalize_repo_path
    tags: list[str] = field(default_factory=list)  # All of

    @property
    def is_empty(self) -> bool:
        return not (self.statuses or self.priorities or self.owner or self.repo or self.tags)

    def matches(self, task: Task) -> bool:
        """Whether ``task`` satisfies every criterion that is set."""
        if self.statuses and task.status not in self.statuses:
            return False
        if self.priorities and task.priority not in self.priorities:
            return False
        if self.owner and task.owner != self.owner:
            return False
        if self.repo and normalize_repo_path(task.repo) != normalize_repo_path(self.repo):
            return False
        if self.tags and not set(self.tags).issubset(task.tags):
            return False
        return True
