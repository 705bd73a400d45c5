"""Result models for lifecycle and maintenance operations.

Operations that contain best-effort steps return one of these instead of
raising, so callers can tell "the task was created but its worktree was not"
apart from "the task was not created".
"""

from dataclasses import dataclass, field

from .handoff import HandoffDocument
from .task import Task


@dataclass
class LifecycleResult:
    """Result of a lifecycle operation on a single task."""

    task: Task
    warnings: list[str] = field(default_factory=list)  # Non-fatal problems

    @property
    def has_warnings(self) -> bool:
        """Whether any best-effort step failed."""
        return len(self.warnings) > 0


@dataclass
class ArchiveResult(LifecycleResult):
    """Result of archiving a task."""

    handoff: HandoffDocument | None = None
    worktree_removed: bool = False


@dataclass
class RepoSyncResult:
    """Outcome of synchronising a single repository."""

    repo_path: str  # Relative identifier like "github.com/org/repo"
    default_branch: str = ""
    fetched: bool = False
    branches_deleted: list[str] = field(default_factory=list)
    branches_skipped: list[str] = field(default_factory=list)  # Protected by the backlog
    error: str | None = None

    @property
    def has_error(self) -> bool:
        return self.error is not None
