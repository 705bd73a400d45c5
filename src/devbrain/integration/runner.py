"""Subprocess seam for external tools."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ..errors import ExternalToolError, ExternalToolTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Captured output of a finished command."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """
    Runs external commands with a timeout and captured output.

    Every git invocation goes through here so that tests can replace the
    runner and so that no subprocess can hang the caller indefinitely.
    """

    def __init__(self, timeout: float = 60.0) -> None:
        """
        Initialize the runner.

        Args:
            timeout: Seconds before a command is killed
        """
        self.timeout = timeout

    def run(
        self,
        args: list[str],
        cwd: Path | str | None = None,
        check: bool = True,
    ) -> CommandResult:
        """
        Run a command and capture its output.

        Args:
            args: Command and arguments
            cwd: Working directory
            check: Raise ExternalToolError on a non-zero exit

        Raises:
            ExternalToolTimeoutError: If the command exceeds the timeout.
            ExternalToolError: If the command cannot be started, or exits
                non-zero while check is True.
        """
        logger.debug("Running %s (cwd=%s)", " ".join(args), cwd)
        try:
            completed = subprocess.run(
                args,
                cwd=str(cwd) if cwd is not None else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ExternalToolTimeoutError(
                args,
                message=f"`{' '.join(args)}` timed out after {self.timeout:g}s",
            ) from e
        except OSError as e:
            raise ExternalToolError(args, message=f"could not run `{args[0]}`: {e}") from e

        result = CommandResult(
            args=list(args),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if check and not result.ok:
            raise ExternalToolError(args, stderr=result.stderr, returncode=result.returncode)
        return result

    def git(self, *args: str, cwd: Path | str | None = None, check: bool = True) -> CommandResult:
        """Run ``git`` with the given arguments."""
        return self.run(["git", *args], cwd=cwd, check=check)
