"""Utility functions."""

from .datetime import from_iso, now_utc, to_iso
from .fileio import atomic_write_text, atomic_write_yaml
from .filelock import FileLock
from .naming import (
    format_branch_name,
    format_task_id,
    is_local_repo,
    normalize_repo_path,
    parse_task_sequence,
    repo_identifier_for_path,
    sanitize_branch_segment,
    split_repo_identifier,
)
from .validation import normalize_task_id, validate_branch_name, validate_task_id

__all__ = [
    "FileLock",
    "atomic_write_text",
    "atomic_write_yaml",
    "format_branch_name",
    "format_task_id",
    "from_iso",
    "is_local_repo",
    "normalize_repo_path",
    "normalize_task_id",
    "now_utc",
    "parse_task_sequence",
    "repo_identifier_for_path",
    "sanitize_branch_segment",
    "split_repo_identifier",
    "to_iso",
    "validate_branch_name",
    "validate_task_id",
]
