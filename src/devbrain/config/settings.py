"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime settings, built once at process start and passed explicitly.

    Values come from keyword arguments (CLI flags) first, then DEVBRAIN_*
    environment variables, then the defaults below.
    """

    base_path: Path = Field(
        default_factory=lambda: Path.home() / ".devbrain",
        description="Workspace root holding backlog.yaml, tickets/, work/ and repos/",
    )

    lock_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for the backlog lock before failing with Busy",
    )

    git_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds before a git subprocess is killed",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    model_config = {
        "env_prefix": "DEVBRAIN_",
    }
