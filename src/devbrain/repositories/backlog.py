"""File-backed backlog registry."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..errors import CorruptDataError
from ..models import BacklogRegistry
from ..utils import FileLock, atomic_write_yaml

logger = logging.getLogger(__name__)


class BacklogStore:
    """
    Repository for the task registry stored in backlog.yaml.

    The registry file is the single source of truth for task metadata.
    Writers go through transaction(), which serializes concurrent processes
    with an advisory lock on a sidecar file; readers that tolerate a slightly
    stale view use load() directly.
    """

    BACKLOG_FILE = "backlog.yaml"
    LOCK_SUFFIX = ".lock"

    def __init__(self, base_path: Path, lock_timeout: float = 10.0) -> None:
        """
        Initialize the store.

        Args:
            base_path: Workspace root containing backlog.yaml
            lock_timeout: Seconds to wait for the write lock before BusyError
        """
        self.base_path = base_path
        self.lock_timeout = lock_timeout

    @property
    def path(self) -> Path:
        """Path to backlog.yaml."""
        return self.base_path / self.BACKLOG_FILE

    @property
    def lock_path(self) -> Path:
        """Path to the advisory lock file."""
        return self.path.with_name(self.BACKLOG_FILE + self.LOCK_SUFFIX)

    def exists(self) -> bool:
        """Whether the registry file has been written yet."""
        return self.path.exists()

    def load(self) -> BacklogRegistry:
        """
        Read the registry without taking the lock.

        A missing file is the first-use case and yields an empty registry.

        Raises:
            CorruptDataError: If the file cannot be parsed. The file is left
                untouched so nothing is lost.
        """
        if not self.path.exists():
            logger.debug("No %s at %s, using empty registry", self.BACKLOG_FILE, self.base_path)
            return BacklogRegistry.empty()

        try:
            with self.path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CorruptDataError(f"{self.path} is not valid YAML: {e}") from e

        if data is None:
            return BacklogRegistry.empty()
        if not isinstance(data, dict):
            raise CorruptDataError(
                f"{self.path}: expected a mapping at top level, got {type(data).__name__}"
            )

        try:
            return BacklogRegistry.from_data(data)
        except (ValidationError, ValueError, TypeError, AttributeError) as e:
            raise CorruptDataError(f"{self.path} contains invalid task records: {e}") from e

    def save(self, registry: BacklogRegistry) -> None:
        """Write the registry atomically without taking the lock."""
        atomic_write_yaml(
            self.path,
            registry.to_data(),
            header="# Managed by devbrain - edit with care\n",
        )
        logger.debug("Saved %d task(s) to %s", len(registry.tasks), self.path)

    @contextmanager
    def transaction(self) -> Iterator[BacklogRegistry]:
        """
        Lock, load, yield the registry for mutation, then persist it.

        The registry is saved only if the block exits without an exception;
        an exception leaves the file exactly as it was. The lock is held
        until the rename completes or the block fails.

        Example:
            with store.transaction() as registry:
                registry.require("TASK-00001").priority = Priority.P0

        Raises:
            BusyError: If another process holds the lock past the timeout.
            CorruptDataError: If the current file cannot be parsed.
        """
        with FileLock(self.lock_path, timeout=self.lock_timeout):
            registry = self.load()
            yield registry
            self.save(registry)
