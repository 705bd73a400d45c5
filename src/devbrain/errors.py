"""Exception hierarchy for devbrain.

Every error raised by the lifecycle engine and its stores derives from
DevBrainError so that the CLI can report any failure with a non-zero exit
code while callers that care can still catch the specific subclass.
"""

from __future__ import annotations


class DevBrainError(Exception):
    """Base exception for devbrain errors."""

    pass


class TaskNotFoundError(DevBrainError):
    """Task ID is not present in the registry or on disk."""

    def __init__(self, task_id: str, message: str | None = None) -> None:
        self.task_id = task_id
        super().__init__(message or f"task {task_id} not found")


class AlreadyExistsError(DevBrainError):
    """Duplicate task ID, duplicate branch, or ticket directory already present."""

    pass


class InvalidTransitionError(DevBrainError):
    """Requested lifecycle transition is not allowed from the current status."""

    def __init__(self, task_id: str, status: str, message: str) -> None:
        self.task_id = task_id
        self.status = status
        super().__init__(message)


class BusyError(DevBrainError):
    """Registry lock could not be acquired in time. Safe to retry."""

    pass


class CorruptDataError(DevBrainError):
    """Registry file could not be parsed. Never repaired automatically."""

    pass


class InvalidIdentifierError(DevBrainError, ValueError):
    """Task ID or branch name contains characters unsafe for paths or git."""

    pass


class ExternalToolError(DevBrainError):
    """External command (git) exited non-zero or could not be started."""

    def __init__(
        self,
        command: list[str],
        stderr: str = "",
        returncode: int | None = None,
        message: str | None = None,
    ) -> None:
        self.command = command
        self.stderr = stderr
        self.returncode = returncode
        if message is None:
            message = f"`{' '.join(command)}` failed"
            if returncode is not None:
                message += f" (exit {returncode})"
            if stderr:
                message += f": {stderr.strip()}"
        super().__init__(message)


class ExternalToolTimeoutError(ExternalToolError):
    """External command did not finish within its timeout and was killed."""

    pass


class AlreadyCheckedOutError(ExternalToolError):
    """Branch is already checked out in another worktree."""

    pass
