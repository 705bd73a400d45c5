"""Data models."""

from .backlog import BacklogRegistry
from .filter import TaskFilter
from .handoff import HandoffDocument
from .results import ArchiveResult, LifecycleResult, RepoSyncResult
from .task import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Priority,
    Task,
    TaskStatus,
    TaskType,
)
from .workspace_config import BranchConfig, DefaultsConfig, TaskIdConfig, WorkspaceConfig
from .worktree import Worktree

__all__ = [
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "ArchiveResult",
    "BacklogRegistry",
    "BranchConfig",
    "DefaultsConfig",
    "HandoffDocument",
    "LifecycleResult",
    "Priority",
    "RepoSyncResult",
    "Task",
    "TaskFilter",
    "TaskIdConfig",
    "TaskStatus",
    "TaskType",
    "WorkspaceConfig",
    "Worktree",
]
