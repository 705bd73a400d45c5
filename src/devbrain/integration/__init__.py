"""Integrations with external tools (git)."""

from .protocol import WorktreeManagerProtocol
from .repo_sync import RepoSyncService
from .runner import CommandResult, CommandRunner
from .worktree import GitWorktreeManager, parse_worktree_list

__all__ = [
    "CommandResult",
    "CommandRunner",
    "GitWorktreeManager",
    "RepoSyncService",
    "WorktreeManagerProtocol",
    "parse_worktree_list",
]
