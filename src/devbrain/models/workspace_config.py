"""Configuration models for devbrain.yml."""

import re

from pydantic import BaseModel, Field, field_validator

from .task import Priority

_PREFIX_PATTERN = re.compile(r"^[A-Z0-9]{1,10}$")


class TaskIdConfig(BaseModel):
    """How new task IDs are formatted."""

    prefix: str = Field(default="TASK", description="Uppercase alphanumeric, 1-10 chars")
    pad_width: int = Field(default=5, ge=0, le=12, description="Zero padding (0 = none)")

    @field_validator("prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        """Validate prefix is uppercase alphanumeric."""
        if not _PREFIX_PATTERN.match(v):
            raise ValueError(
                f"Task ID prefix {v!r} must be 1-10 uppercase letters or digits"
            )
        return v


class BranchConfig(BaseModel):
    """How branch names are derived from the name given at creation."""

    pattern: str = Field(
        default="",
        description="Pattern with {type}, {id}, {description}; empty uses the name verbatim",
    )

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """A non-empty pattern must reference the description or the ID."""
        if v and not any(p in v for p in ("{id}", "{description}")):
            raise ValueError("Branch pattern must contain {id} or {description}")
        return v


class DefaultsConfig(BaseModel):
    """Defaults applied to new tasks."""

    priority: Priority = Priority.P2
    owner: str = ""


class WorkspaceConfig(BaseModel):
    """Root configuration from devbrain.yml."""

    version: int = 1
    task_id: TaskIdConfig = Field(default_factory=TaskIdConfig)
    branch: BranchConfig = Field(default_factory=BranchConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)

    @classmethod
    def default(cls) -> "WorkspaceConfig":
        """Return default configuration."""
        return cls()
