"""Worktree manager protocol."""

from typing import Protocol


class WorktreeManagerProtocol(Protocol):
    """Interface the lifecycle service uses to manage task worktrees.

    GitWorktreeManager is the real implementation; tests substitute fakes
    that record calls or fail on demand.
    """

    def create(self, repo: str, branch: str, task_id: str) -> str:
        """Create a worktree checking out ``branch`` for ``task_id``.

        Returns:
            The absolute worktree path.

        Raises:
            AlreadyCheckedOutError: If the branch is checked out elsewhere.
            ExternalToolError: If git fails or times out.
        """
        ...

    def remove(self, worktree_path: str) -> None:
        """Remove a worktree. A path that does not exist is a no-op."""
        ...

    def exists(self, worktree_path: str) -> bool:
        """Whether ``worktree_path`` is a git working tree."""
        ...
