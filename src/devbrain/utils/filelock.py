"""Advisory file lock with a bounded wait."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import IO, Any

from ..errors import BusyError

logger = logging.getLogger(__name__)

# Byte range locked on Windows, where msvcrt locks regions rather than files
WINDOWS_LOCK_BYTES = 1


class FileLock:
    """Exclusive advisory lock on a sidecar lock file.

    Uses fcntl.flock where available and msvcrt.locking on Windows. The lock
    is polled without blocking until ``timeout`` seconds have passed, after
    which BusyError is raised instead of waiting forever.

    Example:
        with FileLock(Path("backlog.yaml.lock"), timeout=5):
            ...
    """

    def __init__(self, lock_path: Path, timeout: float = 10.0, poll_interval: float = 0.05):
        self.lock_path = lock_path
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.handle: IO[str] | None = None

    def acquire(self) -> None:
        """Acquire the lock, raising BusyError after the timeout."""
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(self.lock_path, "a+")  # noqa: SIM115 - closed in release()
        deadline = time.monotonic() + self.timeout

        while True:
            try:
                _lock(handle)
                break
            except OSError:
                if time.monotonic() >= deadline:
                    handle.close()
                    raise BusyError(
                        f"could not lock {self.lock_path} within {self.timeout:g}s; "
                        "another devbrain process is writing, retry shortly"
                    ) from None
                time.sleep(self.poll_interval)

        self.handle = handle
        logger.debug("Acquired lock %s", self.lock_path)

    def release(self) -> None:
        """Release the lock if held."""
        if self.handle is None:
            return
        try:
            _unlock(self.handle)
        finally:
            self.handle.close()
            self.handle = None
            logger.debug("Released lock %s", self.lock_path)

    @property
    def locked(self) -> bool:
        """Whether this instance currently holds the lock."""
        return self.handle is not None

    def __enter__(self) -> FileLock:
        self.acquire()
        return self

    def __exit__(self, *args: Any) -> None:
        self.release()


def _lock(handle: IO[str]) -> None:
    """Try once to take an exclusive lock; raise OSError if it is held."""
    try:
        import fcntl
    except ImportError:
        import msvcrt

        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, WINDOWS_LOCK_BYTES)
        return
    fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)


def _unlock(handle: IO[str]) -> None:
    try:
        import fcntl
    except ImportError:
        if os.name == "nt":
            import msvcrt

            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, WINDOWS_LOCK_BYTES)
        return
    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
