"""Tests for RepoSyncService."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from conftest import git, requires_git
from devbrain.errors import ExternalToolError
from devbrain.integration import CommandRunner, GitWorktreeManager, RepoSyncService
from devbrain.models import TaskType
from devbrain.repositories import BacklogStore, TicketDirectoryManager
from devbrain.services import ProtectedBranchResolver, TaskLifecycleService


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    return root


def clone_into_workspace(source: Path, workspace: Path, identifier: str) -> Path:
    target = workspace / "repos" / identifier
    target.parent.mkdir(parents=True)
    git("clone", "-q", str(source), str(target), cwd=workspace)
    return target


def commit_file(repo: Path, name: str, content: str) -> None:
    (repo / name).write_text(content)
    git("add", name, cwd=repo)
    git("commit", "-q", "-m", f"add {name}", cwd=repo)


def local_branches(repo: Path) -> list[str]:
    output = git("branch", "--format=%(refname:short)", cwd=repo)
    return sorted(line.strip() for line in output.splitlines() if line.strip())


class TestDiscover:
    """Tests for repository discovery."""

    def test_no_repos_dir(self, workspace: Path):
        assert RepoSyncService(workspace).discover() == []

    def test_finds_three_level_repos(self, workspace: Path):
        for identifier in ("github.com/org/b", "github.com/org/a", "gitlab.com/team/c"):
            (workspace / "repos" / identifier / ".git").mkdir(parents=True)
        (workspace / "repos" / "github.com" / "org" / "not-a-repo").mkdir()

        found = RepoSyncService(workspace).discover()

        assert [rel for _, rel in found] == [
            "github.com/org/a",
            "github.com/org/b",
            "gitlab.com/team/c",
        ]
        assert all(path.is_absolute() for path, _ in found)


class TestSyncErrors:
    """Tests for per-repository error isolation."""

    def test_git_failure_recorded(self, workspace: Path):
        runner = Mock(spec=CommandRunner)
        runner.git.side_effect = ExternalToolError(
            ["git", "fetch", "--all", "--prune"], "fatal: unable to access\n", 128
        )
        service = RepoSyncService(workspace, runner)

        result = service.sync_repo(workspace, "github.com/org/app", set())

        assert result.has_error
        assert "unable to access" in result.error
        assert not result.fetched

    def test_one_failure_does_not_stop_others(self, workspace: Path):
        for identifier in ("github.com/org/a", "github.com/org/b"):
            (workspace / "repos" / identifier / ".git").mkdir(parents=True)
        runner = Mock(spec=CommandRunner)
        runner.git.side_effect = ExternalToolError(["git", "fetch"], "fatal: offline\n", 1)

        results = RepoSyncService(workspace, runner).sync_all({})

        assert [r.repo_path for r in results] == ["github.com/org/a", "github.com/org/b"]
        assert all(r.has_error for r in results)


@requires_git
class TestSyncWithGit:
    """Tests against real clones."""

    def test_prunes_merged_branches(self, workspace: Path, source_repo: Path):
        clone = clone_into_workspace(source_repo, workspace, "github.com/org/repo")
        git("branch", "merged-a", cwd=clone)
        git("branch", "merged-b", cwd=clone)
        git("checkout", "-q", "-b", "unmerged", cwd=clone)
        commit_file(clone, "wip.txt", "wip\n")
        git("checkout", "-q", "main", cwd=clone)

        service = RepoSyncService(workspace, CommandRunner(timeout=30))
        results = service.sync_all({"github.com/org/repo": {"merged-b"}})

        assert len(results) == 1
        result = results[0]
        assert not result.has_error
        assert result.fetched
        assert result.default_branch == "main"
        assert result.branches_deleted == ["merged-a"]
        assert result.branches_skipped == ["merged-b"]
        assert local_branches(clone) == ["main", "merged-b", "unmerged"]

    def test_fast_forwards_default_branch(self, workspace: Path, source_repo: Path):
        clone = clone_into_workspace(source_repo, workspace, "github.com/org/repo")
        commit_file(source_repo, "new.txt", "new\n")

        RepoSyncService(workspace, CommandRunner(timeout=30)).sync_all({})

        assert (clone / "new.txt").exists()

    def test_default_branch_without_origin_head(self, workspace: Path, source_repo: Path):
        clone = clone_into_workspace(source_repo, workspace, "github.com/org/repo")
        git("remote", "set-head", "origin", "-d", cwd=clone)

        result = RepoSyncService(workspace, CommandRunner(timeout=30)).sync_all({})[0]

        assert result.default_branch == "main"

    def test_branch_in_worktree_not_deleted(self, workspace: Path, source_repo: Path):
        clone = clone_into_workspace(source_repo, workspace, "github.com/org/repo")
        git("worktree", "add", "-q", "-b", "in-use", str(workspace / "work" / "T-1"), cwd=clone)

        result = RepoSyncService(workspace, CommandRunner(timeout=30)).sync_all({})[0]

        assert result.branches_deleted == []
        assert "in-use" in local_branches(clone)

    def test_task_on_local_clone_path_protects_branch(self, workspace: Path, source_repo: Path):
        clone = clone_into_workspace(source_repo, workspace, "github.com/org/repo")
        git("branch", "feature/keep", cwd=clone)
        git("branch", "merged-a", cwd=clone)
        store = BacklogStore(workspace)
        service = TaskLifecycleService(
            store, TicketDirectoryManager(workspace), GitWorktreeManager(workspace)
        )
        service.create_task(TaskType.FEAT, "feature/keep", repo=str(clone), create_worktree=False)
        resolver = ProtectedBranchResolver(store, workspace / "repos")

        sync = RepoSyncService(workspace, CommandRunner(timeout=30))
        result = sync.sync_all(resolver.resolve())[0]

        assert result.branches_skipped == ["feature/keep"]
        assert result.branches_deleted == ["merged-a"]
        assert "feature/keep" in local_branches(clone)
