"""Git worktree model."""

from dataclasses import dataclass


@dataclass
class Worktree:
    """One entry of `git worktree list --porcelain`."""

    path: str
    branch: str = ""  # Empty for detached HEAD
    head: str = ""
    task_id: str = ""  # Set when the worktree lives under <base>/work/<task_id>
    bare: bool = False
