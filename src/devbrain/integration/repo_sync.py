"""Synchronisation of the cloned repositories under <base>/repos/."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Set
from pathlib import Path

from ..errors import ExternalToolError
from ..models import RepoSyncResult
from ..utils import normalize_repo_path
from .runner import CommandRunner

logger = logging.getLogger(__name__)

_FALLBACK_DEFAULT_BRANCHES = ("main", "master")
_ORIGIN_PREFIX = "refs/remotes/origin/"


class RepoSyncService:
    """
    Fetches, fast-forwards and prunes every repository under repos/.

    Local branches merged into the default branch are deleted, except those
    in the protected set supplied by the caller (branches of tasks that are
    still in flight). Each repository is handled independently; a failure
    is recorded on its result and the next repository is processed.
    """

    REPOS_DIR = "repos"

    def __init__(self, base_path: Path, runner: CommandRunner | None = None) -> None:
        self.base_path = base_path
        self.runner = runner or CommandRunner()

    @property
    def repos_root(self) -> Path:
        return self.base_path / self.REPOS_DIR

    def discover(self) -> list[tuple[Path, str]]:
        """Find git repositories at repos/<platform>/<org>/<repo>.

        Returns:
            (absolute path, "platform/org/repo") pairs, sorted by identifier.
        """
        if not self.repos_root.is_dir():
            return []
        repos = []
        for path in self.repos_root.glob("*/*/*"):
            if path.is_dir() and (path / ".git").exists():
                rel = path.relative_to(self.repos_root).as_posix()
                repos.append((path.absolute(), rel))
        return sorted(repos, key=lambda r: r[1])

    def sync_all(self, protected: Mapping[str, Set[str]]) -> list[RepoSyncResult]:
        """
        Synchronise every discovered repository.

        Args:
            protected: Normalized repo identifier -> branch names that must
                not be deleted
        """
        results = []
        for path, rel in self.discover():
            branches = protected.get(normalize_repo_path(rel), frozenset())
            results.append(self.sync_repo(path, rel, branches))
        return results

    def sync_repo(self, repo_path: Path, rel_path: str, protected: Set[str]) -> RepoSyncResult:
        """Synchronise a single repository. Never raises for git failures."""
        result = RepoSyncResult(repo_path=rel_path)
        try:
            self._sync(repo_path, result, protected)
        except ExternalToolError as e:
            result.error = str(e)
            logger.warning(f"Syncing {rel_path} failed: {e}")
        return result

    def _sync(self, repo: Path, result: RepoSyncResult, protected: Set[str]) -> None:
        self.runner.git("fetch", "--all", "--prune", cwd=repo)
        result.fetched = True

        default_branch = self._default_branch(repo)
        result.default_branch = default_branch
        if not default_branch:
            logger.info("No default branch found for %s", result.repo_path)
            return

        # HEAD pointing at a branch that no longer exists
        head = self.runner.git("symbolic-ref", "HEAD", cwd=repo, check=False)
        if head.ok:
            head_branch = head.stdout.strip().removeprefix("refs/heads/")
            verify = self.runner.git(
                "rev-parse", "--verify", "--quiet", head_branch, cwd=repo, check=False
            )
            if not verify.ok:
                self.runner.git("checkout", default_branch, cwd=repo, check=False)

        # Already up to date or not on the default branch is fine
        self.runner.git("merge", "--ff-only", f"origin/{default_branch}", cwd=repo, check=False)

        merged = self.runner.git("branch", "--merged", default_branch, cwd=repo, check=False)
        if not merged.ok:
            return

        for line in merged.stdout.splitlines():
            branch = line.strip()
            # "*" marks the current branch, "+" one checked out in a worktree
            if not branch or branch.startswith(("* ", "+ ")):
                continue
            if branch == default_branch:
                continue
            if branch in protected:
                result.branches_skipped.append(branch)
                continue
            deleted = self.runner.git("branch", "-d", branch, cwd=repo, check=False)
            if deleted.ok:
                result.branches_deleted.append(branch)
                logger.info("Deleted merged branch %s in %s", branch, result.repo_path)

    def _default_branch(self, repo: Path) -> str:
        """Default branch from origin/HEAD, falling back to origin/main or origin/master."""
        head = self.runner.git("symbolic-ref", "refs/remotes/origin/HEAD", cwd=repo, check=False)
        ref = head.stdout.strip()
        if head.ok and ref.startswith(_ORIGIN_PREFIX):
            return ref[len(_ORIGIN_PREFIX) :]

        for branch in _FALLBACK_DEFAULT_BRANCHES:
            verify = self.runner.git(
                "rev-parse", "--verify", "--quiet", f"origin/{branch}", cwd=repo, check=False
            )
            if verify.ok:
                return branch
        return ""
