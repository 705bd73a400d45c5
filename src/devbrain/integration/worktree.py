"""Git worktree orchestration."""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import AlreadyCheckedOutError, ExternalToolError
from ..models import Worktree
from ..utils import (
    is_local_repo,
    normalize_repo_path,
    split_repo_identifier,
    validate_branch_name,
    validate_task_id,
)
from .runner import CommandRunner

logger = logging.getLogger(__name__)

_CHECKED_OUT_MARKERS = ("already checked out", "already used by worktree")


def parse_worktree_list(output: str, work_root: Path | None = None) -> list[Worktree]:
    """
    Parse ``git worktree list --porcelain`` output.

    Blocks are separated by blank lines:

        worktree /path/to/worktree
        HEAD <sha>
        branch refs/heads/branch-name

    When ``work_root`` is given, worktrees located beneath it get their
    task_id set from the path relative to it.
    """
    worktrees: list[Worktree] = []
    for block in output.strip().split("\n\n"):
        if not block.strip():
            continue
        wt = Worktree(path="")
        for line in block.splitlines():
            line = line.strip()
            if line.startswith("worktree "):
                wt.path = line[len("worktree ") :]
            elif line.startswith("HEAD "):
                wt.head = line[len("HEAD ") :]
            elif line.startswith("branch "):
                wt.branch = line[len("branch ") :].removeprefix("refs/heads/")
            elif line == "bare":
                wt.bare = True
        if not wt.path:
            continue
        if work_root is not None:
            try:
                wt.task_id = Path(wt.path).resolve().relative_to(work_root.resolve()).as_posix()
            except ValueError:
                pass
        worktrees.append(wt)
    return worktrees


class GitWorktreeManager:
    """
    Creates and removes the per-task git worktrees under <base>/work/.

    Repositories are either local paths, used in place, or
    "platform/org/repo" identifiers cloned into <base>/repos/ on first use.
    """

    WORK_DIR = "work"
    REPOS_DIR = "repos"

    def __init__(self, base_path: Path, runner: CommandRunner | None = None) -> None:
        """
        Initialize the manager.

        Args:
            base_path: Workspace root holding work/ and repos/
            runner: Command runner for git (defaults to a 60s timeout)
        """
        self.base_path = base_path
        self.runner = runner or CommandRunner()

    @property
    def work_root(self) -> Path:
        return self.base_path / self.WORK_DIR

    @property
    def repos_root(self) -> Path:
        return self.base_path / self.REPOS_DIR

    def worktree_path(self, task_id: str) -> Path:
        """Deterministic worktree location for a task."""
        return self.work_root / validate_task_id(task_id)

    def repo_dir(self, repo: str) -> Path:
        """
        Directory of the git repository a repo argument refers to.

        Raises:
            ExternalToolError: If ``repo`` is neither a local path nor a
                "platform/org/repo" identifier.
        """
        if is_local_repo(repo):
            return Path(repo).expanduser()
        parts = split_repo_identifier(repo)
        if parts is None:
            raise ExternalToolError(
                ["git", "clone", repo],
                message=f"repository {repo!r} is not a local path or platform/org/repo identifier",
            )
        return self.repos_root.joinpath(*parts)

    # --- Worktree operations ---

    def create(self, repo: str, branch: str, task_id: str) -> str:
        """
        Create the worktree for a task, checking out ``branch``.

        The branch is created from the repository's HEAD if it does not exist
        yet. A worktree already at the task's path on the same branch is
        returned unchanged.

        Raises:
            AlreadyCheckedOutError: If the branch is checked out in another
                worktree.
            ExternalToolError: If the repository is missing or git fails.
        """
        validate_branch_name(branch)
        path = self.worktree_path(task_id).absolute()

        if not repo:
            raise ExternalToolError(
                ["git", "worktree", "add"], message=f"task {task_id} has no repository"
            )
        git_dir = self.repo_dir(repo)
        if not is_local_repo(repo):
            self._ensure_repo(git_dir, normalize_repo_path(repo))
        if not git_dir.is_dir():
            raise ExternalToolError(
                ["git", "worktree", "add", str(path), branch],
                message=f"repository {git_dir} does not exist",
            )

        # Drop registrations whose directory was deleted by hand
        self.runner.git("worktree", "prune", cwd=git_dir, check=False)
        for wt in self._list_worktrees(git_dir):
            if wt.branch != branch:
                continue
            if Path(wt.path).resolve() == path.resolve() and path.is_dir():
                logger.info("Worktree for %s already exists at %s", task_id, path)
                return str(path)
            raise AlreadyCheckedOutError(
                ["git", "worktree", "add", str(path), branch],
                message=f"branch {branch!r} is already checked out at {wt.path}",
            )

        args = ["worktree", "add"]
        if self._branch_exists(git_dir, branch):
            args += [str(path), branch]
        else:
            args += ["-b", branch, str(path)]

        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.runner.git(*args, cwd=git_dir)
        except ExternalToolError as e:
            if any(marker in e.stderr for marker in _CHECKED_OUT_MARKERS):
                raise AlreadyCheckedOutError(e.command, e.stderr, e.returncode) from e
            raise

        logger.info("Created worktree %s on branch %s", path, branch)
        return str(path)

    def remove(self, worktree_path: str) -> None:
        """
        Remove a worktree and its directory.

        The command runs from the owning repository, found through the
        worktree's common git directory. A path that does not exist is a
        no-op.

        Raises:
            ExternalToolError: If git refuses, e.g. the worktree has
                uncommitted changes.
        """
        if not worktree_path:
            return
        path = Path(worktree_path).absolute()
        if not path.exists():
            logger.debug("Worktree %s already gone", path)
            return

        repo_root = self._owning_repo(path)
        self.runner.git("worktree", "remove", str(path), cwd=repo_root)
        logger.info("Removed worktree %s", path)

    def exists(self, worktree_path: str) -> bool:
        """Whether the path is a git working tree."""
        if not worktree_path:
            return False
        path = Path(worktree_path)
        if not path.is_dir():
            return False
        result = self.runner.git("rev-parse", "--is-inside-work-tree", cwd=path, check=False)
        return result.ok and result.stdout.strip() == "true"

    def list_worktrees(self, repo: str) -> list[Worktree]:
        """List the worktrees registered in a repository."""
        return self._list_worktrees(self.repo_dir(repo))

    # --- Helpers ---

    def _list_worktrees(self, git_dir: Path) -> list[Worktree]:
        result = self.runner.git("worktree", "list", "--porcelain", cwd=git_dir)
        return parse_worktree_list(result.stdout, self.work_root)

    def _branch_exists(self, git_dir: Path, branch: str) -> bool:
        result = self.runner.git(
            "rev-parse", "--verify", "--quiet", f"refs/heads/{branch}", cwd=git_dir, check=False
        )
        return result.ok

    def _owning_repo(self, worktree: Path) -> Path:
        """Main repository directory for a linked worktree."""
        result = self.runner.git("rev-parse", "--git-common-dir", cwd=worktree)
        common = Path(result.stdout.strip())
        if not common.is_absolute():
            common = (worktree / common).resolve()
        # Non-bare repositories keep their common dir at <root>/.git
        if common.name == ".git":
            return common.parent
        return common

    def _ensure_repo(self, repo_dir: Path, identifier: str) -> None:
        """Clone an identifier-based repository if missing, else refresh it."""
        if (repo_dir / ".git").exists():
            try:
                self.runner.git("fetch", "origin", cwd=repo_dir)
            except ExternalToolError as e:
                logger.warning(f"Fetching {identifier} failed, using local state: {e}")
            return

        repo_dir.parent.mkdir(parents=True, exist_ok=True)
        https_url = f"https://{identifier}.git"
        try:
            self.runner.git("clone", https_url, str(repo_dir))
            logger.info("Cloned %s into %s", https_url, repo_dir)
            return
        except ExternalToolError as https_error:
            host, _, rest = identifier.partition("/")
            ssh_url = f"git@{host}:{rest}.git"
            logger.info("HTTPS clone of %s failed, trying %s", identifier, ssh_url)
            try:
                self.runner.git("clone", ssh_url, str(repo_dir))
            except ExternalToolError as ssh_error:
                raise ExternalToolError(
                    ["git", "clone", ssh_url, str(repo_dir)],
                    stderr=ssh_error.stderr,
                    returncode=ssh_error.returncode,
                    message=(
                        f"cloning {identifier} failed (tried HTTPS and SSH): "
                        f"HTTPS: {https_error}; SSH: {ssh_error}"
                    ),
                ) from ssh_error
            logger.info("Cloned %s into %s", ssh_url, repo_dir)
