"""Validation for identifiers that end up in filesystem paths or git refs.

Task IDs and branch names arrive from user input and are joined onto the
workspace path to build ticket and worktree directories, so they are checked
against a restrictive character set before any component touches the disk.
"""

import re

from ..errors import InvalidIdentifierError

_BRANCH_CHARS = re.compile(r"^[A-Za-z0-9_./-]+$")
_TASK_ID_CHARS = re.compile(r"^[A-Za-z0-9_/-]+$")


def _check_segments(value: str, kind: str) -> None:
    if value.startswith("/") or value.endswith("/"):
        raise InvalidIdentifierError(f"{kind} {value!r} must not start or end with '/'")
    for segment in value.split("/"):
        if segment == "":
            raise InvalidIdentifierError(f"{kind} {value!r} contains an empty path segment")
        if segment in (".", ".."):
            raise InvalidIdentifierError(f"{kind} {value!r} contains invalid segment {segment!r}")
        if segment.startswith((".", "-")):
            raise InvalidIdentifierError(
                f"{kind} {value!r} has a segment starting with {segment[0]!r}"
            )


def validate_task_id(task_id: str) -> str:
    """Validate a task ID and return it unchanged.

    Allowed: letters, digits, '-', '_' and '/' separated segments.

    Raises:
        InvalidIdentifierError: If the ID is empty or could escape the
            tickets/ or work/ directories.
    """
    if not task_id:
        raise InvalidIdentifierError("task ID must not be empty")
    if not _TASK_ID_CHARS.match(task_id):
        raise InvalidIdentifierError(
            f"task ID {task_id!r} may only contain letters, digits, '-', '_' and '/'"
        )
    _check_segments(task_id, "task ID")
    return task_id


def validate_branch_name(branch: str) -> str:
    """Validate a git branch name and return it unchanged.

    Stricter than git-check-ref-format: only letters, digits, '-', '_', '.'
    and '/' are accepted, and '..' may not appear anywhere.

    Raises:
        InvalidIdentifierError: If the name is unsafe.
    """
    if not branch:
        raise InvalidIdentifierError("branch name must not be empty")
    if not _BRANCH_CHARS.match(branch):
        raise InvalidIdentifierError(
            f"branch {branch!r} may only contain letters, digits, '-', '_', '.' and '/'"
        )
    if ".." in branch:
        raise InvalidIdentifierError(f"branch {branch!r} must not contain '..'")
    if branch.endswith(".lock"):
        raise InvalidIdentifierError(f"branch {branch!r} must not end with '.lock'")
    _check_segments(branch, "branch")
    return branch


def normalize_task_id(task_id: str) -> str:
    """Convert backslashes to forward slashes and strip trailing slashes."""
    return task_id.strip().replace("\\", "/").rstrip("/")
