"""Protected-branch resolution from the backlog."""

from pathlib import Path

from ..models import TERMINAL_STATUSES, BacklogRegistry
from ..repositories import BacklogStore
from ..utils import is_local_repo, normalize_repo_path, repo_identifier_for_path


def repo_key(repo: str, repos_root: Path | None = None) -> str:
    """
    Key a repository is grouped under in the protected set.

    A local path to a clone under repos_root maps to its platform/org/repo
    identifier, so it matches the key repository sync looks up.
    """
    if repos_root is not None and is_local_repo(repo):
        identifier = repo_identifier_for_path(repo, repos_root)
        if identifier is not None:
            return identifier
    return normalize_repo_path(repo)


def protected_branches(
    registry: BacklogRegistry, repos_root: Path | None = None
) -> dict[str, set[str]]:
    """Map normalized repo identifiers to branches of tasks still in flight."""
    protected: dict[str, set[str]] = {}
    for task in registry.tasks:
        if not task.repo or not task.branch:
            continue
        if task.status in TERMINAL_STATUSES:
            continue
        protected.setdefault(repo_key(task.repo, repos_root), set()).add(task.branch)
    return protected


class ProtectedBranchResolver:
    """
    Answers which branches must not be deleted by repository maintenance.

    A branch is protected while its task is neither done nor archived. The
    set is derived from the registry on every call and never stored.
    """

    def __init__(self, store: BacklogStore, repos_root: Path | None = None) -> None:
        """
        Initialize the resolver.

        Args:
            store: Registry to read tasks from
            repos_root: Directory holding the platform/org/repo clones
        """
        self.store = store
        self.repos_root = repos_root

    def resolve(self) -> dict[str, set[str]]:
        """Current protected set, keyed by normalized repo identifier."""
        return protected_branches(self.store.load(), self.repos_root)

    def is_protected(self, repo: str, branch: str) -> bool:
        """Whether ``branch`` in ``repo`` belongs to an unfinished task."""
        return branch in self.resolve().get(repo_key(repo, self.repos_root), set())
