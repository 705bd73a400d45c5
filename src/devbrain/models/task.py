"""Task domain model."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..utils.datetime import from_iso


class TaskType(str, Enum):
    """Kind of work a task involves. Fixed at creation."""

    FEAT = "feat"
    BUG = "bug"
    SPIKE = "spike"
    REFACTOR = "refactor"


class TaskStatus(str, Enum):
    """Lifecycle state of a task."""

    BACKLOG = "backlog"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    REVIEW = "review"
    DONE = "done"
    ARCHIVED = "archived"


class Priority(str, Enum):
    """Relative urgency; P0 is the most urgent."""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


# Archiving these requires --force
ACTIVE_STATUSES = frozenset({TaskStatus.IN_PROGRESS, TaskStatus.BLOCKED})

# Branches of tasks in these states are no longer protected from pruning
TERMINAL_STATUSES = frozenset({TaskStatus.DONE, TaskStatus.ARCHIVED})

# Environment variable names exported for hooks and session tooling
ENV_TASK_ID = "DEVBRAIN_TASK_ID"
ENV_TASK_TYPE = "DEVBRAIN_TASK_TYPE"
ENV_BRANCH = "DEVBRAIN_BRANCH"
ENV_WORKTREE_PATH = "DEVBRAIN_WORKTREE_PATH"
ENV_TICKET_PATH = "DEVBRAIN_TICKET_PATH"


class Task(BaseModel):
    """A unit of tracked work as stored in the backlog registry."""

    # Identity (immutable after creation)
    id: str
    type: TaskType
    branch: str = ""
    repo: str = ""  # Normalized path or platform/org/repo identifier
    created: datetime | None = None

    # Mutable metadata
    title: str = ""
    status: TaskStatus = TaskStatus.BACKLOG
    priority: Priority = Priority.P2
    owner: str = ""
    source: str = ""
    tags: list[str] = Field(default_factory=list)
    blocked_by: list[str] = Field(default_factory=list)
    related: list[str] = Field(default_factory=list)
    updated: datetime | None = None

    # Workspace locations
    worktree_path: str = ""  # Empty when no worktree exists
    ticket_path: str = ""

    # Last time the task entered each status
    status_changed: dict[TaskStatus, datetime] = Field(default_factory=dict)
    # Recorded on archive, restored on unarchive
    pre_archive_status: TaskStatus | None = None

    @field_validator("created", "updated", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> datetime | None:
        """Accept ISO strings as written by to_record()."""
        return from_iso(v)

    @property
    def is_archived(self) -> bool:
        return self.status == TaskStatus.ARCHIVED

    @property
    def has_worktree(self) -> bool:
        return bool(self.worktree_path)

    def set_status(self, status: TaskStatus, when: datetime) -> None:
        """Change status and stamp the transition time."""
        self.status = status
        self.status_changed[status] = when
        self.updated = when

    def environment(self) -> dict[str, str]:
        """Environment variables describing this task for downstream tooling."""
        return {
            ENV_TASK_ID: self.id,
            ENV_TASK_TYPE: self.type.value,
            ENV_BRANCH: self.branch,
            ENV_WORKTREE_PATH: self.worktree_path,
            ENV_TICKET_PATH: self.ticket_path,
        }

    def to_record(self) -> dict:
        """Convert to a plain dict suitable for YAML serialization."""
        data: dict = {
            "id": self.id,
            "title": self.title,
            "type": self.type.value,
            "status": self.status.value,
            "priority": self.priority.value,
            "owner": self.owner,
            "repo": self.repo,
            "branch": self.branch,
            "worktree": self.worktree_path,
            "ticket_path": self.ticket_path,
            "created": self.created.isoformat() if self.created else None,
            "updated": self.updated.isoformat() if self.updated else None,
        }
        if self.source:
            data["source"] = self.source
        data["tags"] = list(self.tags)
        data["blocked_by"] = list(self.blocked_by)
        data["related"] = list(self.related)
        if self.status_changed:
            data["status_changed"] = {
                status.value: when.isoformat() for status, when in self.status_changed.items()
            }
        if self.pre_archive_status is not None:
            data["pre_archive_status"] = self.pre_archive_status.value
        return data

    @classmethod
    def from_record(cls, data: dict) -> "Task":
        """Create a Task from a dict produced by to_record().

        Raises:
            pydantic.ValidationError: If the record is malformed.
        """
        record = dict(data)
        if "worktree" in record:
            record["worktree_path"] = record.pop("worktree") or ""
        changed = record.get("status_changed") or {}
        record["status_changed"] = {k: from_iso(v) for k, v in changed.items()}
        for key in ("tags", "blocked_by", "related"):
            if record.get(key) is None:
                record[key] = []
        for key in ("title", "owner", "repo", "branch", "ticket_path", "source", "worktree_path"):
            if record.get(key) is None:
                record.pop(key, None)
        return cls.model_validate(record)
