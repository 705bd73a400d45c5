"""Shared fixtures for tests that drive a real git binary."""

import shutil
import subprocess
from pathlib import Path

import pytest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

GIT_IDENTITY = [
    "-c",
    "user.name=Test User",
    "-c",
    "user.email=test@example.com",
    "-c",
    "commit.gpgsign=false",
]


def git(*args: str, cwd: Path) -> str:
    """Run git in cwd and return stdout."""
    result = subprocess.run(
        ["git", *GIT_IDENTITY, *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


def init_repo(path: Path) -> Path:
    """Create a repository on branch main with one commit."""
    path.mkdir(parents=True)
    git("init", "-q", cwd=path)
    git("symbolic-ref", "HEAD", "refs/heads/main", cwd=path)
    (path / "README.md").write_text("hello\n")
    git("add", "README.md", cwd=path)
    git("commit", "-q", "-m", "initial commit", cwd=path)
    return path


@pytest.fixture
def source_repo(tmp_path: Path) -> Path:
    """A local git repository with a single commit on main."""
    return init_repo(tmp_path / "source-repo")
