"""Naming helpers for task IDs, branches and repository identifiers."""

import re
import unicodedata
from pathlib import Path, PurePath

_UNSAFE_BRANCH_CHARS = re.compile(r"[^a-z0-9._/-]")
_DASHES = re.compile(r"-{2,}")
_URL_PREFIXES = ("https://", "http://", "ssh://", "git://", "file://")


def sanitize_branch_segment(text: str) -> str:
    """
    Convert free text to a string safe for use inside a branch name.

    Example: "Fix Login Bug!" -> "fix-login-bug"
    """
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower()
    text = text.replace("..", "-")
    text = _UNSAFE_BRANCH_CHARS.sub("-", text)
    text = _DASHES.sub("-", text)
    return text.strip("-./")


def format_branch_name(pattern: str, task_type: str, task_id: str, description: str) -> str:
    """
    Apply a branch pattern with {type}, {id} and {description} placeholders.

    An empty pattern returns the description unchanged, so a branch name
    passed on the command line is used verbatim.

    Example: ("{type}/{id}-{description}", "feat", "TASK-00001", "Add login")
        -> "feat/TASK-00001-add-login"
    """
    if not pattern:
        return description

    result = pattern.replace("{type}", task_type)
    result = result.replace("{id}", task_id)
    result = result.replace("{description}", sanitize_branch_segment(description))
    return result


def format_task_id(prefix: str, counter: int, pad_width: int) -> str:
    """Format a sequential task ID, e.g. ("TASK", 42, 5) -> "TASK-00042"."""
    if pad_width > 0:
        return f"{prefix}-{counter:0{pad_width}d}"
    return f"{prefix}-{counter}"


def parse_task_sequence(task_id: str, prefix: str) -> int | None:
    """Return the numeric part of a "<prefix>-<n>" ID, or None for other IDs."""
    head, sep, tail = task_id.rpartition("-")
    if not sep or head != prefix or not tail.isdigit():
        return None
    return int(tail)


def normalize_repo_path(repo: str) -> str:
    """
    Normalize a repository path or URL to a canonical identifier.

    Handles the spellings users and git remotes produce for the same
    repository:
    - "https://github.com/org/repo.git" -> "github.com/org/repo"
    - "git@github.com:org/repo.git"     -> "github.com/org/repo"
    - "repos/github.com/org/repo/"      -> "github.com/org/repo"
    - "/home/me/src/repo/"              -> "/home/me/src/repo"
    """
    cleaned = repo.strip().replace("\\", "/")

    for prefix in _URL_PREFIXES:
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix) :]
            break

    # Drop a "user@" credential part such as "git@"
    head = cleaned.split("/", 1)[0]
    if "@" in head:
        cleaned = cleaned[cleaned.index("@") + 1 :]

    if cleaned.startswith("repos/"):
        cleaned = cleaned[len("repos/") :]

    # SSH-style "host:org/repo" -> "host/org/repo" (but leave "C:/..." alone)
    colon = cleaned.find(":")
    if colon > 1 and "/" not in cleaned[:colon]:
        cleaned = cleaned[:colon] + "/" + cleaned[colon + 1 :]

    cleaned = cleaned.rstrip("/")
    cleaned = cleaned.removesuffix(".git")
    return cleaned.rstrip("/")


def is_local_repo(repo: str) -> bool:
    """
    Whether a repo argument names a local directory rather than an identifier.

    Absolute paths and paths starting with "." or "~" are local; anything
    else is treated as a "platform/org/repo" identifier or remote URL.
    """
    cleaned = repo.strip()
    if not cleaned:
        return False
    return cleaned.startswith((".", "~")) or PurePath(cleaned).is_absolute()


def split_repo_identifier(repo: str) -> tuple[str, str, str] | None:
    """
    Split a normalized "platform/org/repo" identifier into its parts.

    Returns None if the identifier has fewer than three segments. Longer
    identifiers use their last three segments.
    """
    parts = [p for p in normalize_repo_path(repo).split("/") if p]
    if len(parts) < 3:
        return None
    return parts[-3], parts[-2], parts[-1]


def repo_identifier_for_path(repo: str, repos_root: Path) -> str | None:
    """
    Identifier of a local clone living at repos_root/<platform>/<org>/<repo>.

    Example: ("/ws/repos/github.com/org/app", Path("/ws/repos"))
        -> "github.com/org/app"

    Returns None for paths outside repos_root or at another depth.
    """
    try:
        rel = Path(repo.strip()).expanduser().resolve().relative_to(repos_root.resolve())
    except ValueError:
        return None
    if len(rel.parts) != 3:
        return None
    return rel.as_posix()
