"""Terminal output for the devbrain CLI.

Status lines go to stdout, warnings and errors to stderr. Colour is only
applied when the target stream is a TTY, so piped output such as
``eval "$(devbrain resume T --print-env)"`` stays plain.
"""

import shlex
import sys
from collections.abc import Iterable
from typing import TextIO

from ..models import Task, TaskStatus

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
DIM = "\033[2m"
RESET = "\033[0m"
CHECK = "\u2713"  # ✓
BULLET = "\u2022"  # •
CROSS = "\u2717"  # ✗
WARN = "!"

STATUS_COLORS = {
    TaskStatus.IN_PROGRESS: GREEN,
    TaskStatus.BLOCKED: RED,
    TaskStatus.REVIEW: YELLOW,
    TaskStatus.DONE: DIM,
    TaskStatus.ARCHIVED: DIM,
}

TITLE_WIDTH = 40
TABLE_HEADER = f"{'ID':<12} {'STATUS':<12} {'PRI':<3} {'BRANCH':<30} TITLE"


def _supports_color(stream: TextIO | None = None) -> bool:
    """Check if the stream is a terminal that supports color output."""
    stream = stream or sys.stdout
    # Check if the stream is a TTY
    return hasattr(stream, "isatty") and stream.isatty()


def _colorize(text: str, color: str, stream: TextIO | None = None) -> str:
    """Apply color to text if the stream supports it."""
    if _supports_color(stream):
        return f"{color}{text}{RESET}"
    return text


def success(message: str) -> None:
    """Print success message with green checkmark."""
    print(f"{_colorize(CHECK, GREEN)} {message}")


def info(message: str) -> None:
    """Print info message with yellow bullet."""
    print(f"{_colorize(BULLET, YELLOW)} {message}")


def header(message: str) -> None:
    """Print header message in blue."""
    print(_colorize(message, BLUE))


def warning(message: str) -> None:
    """Print a non-fatal problem to stderr."""
    mark = _colorize(WARN, YELLOW, sys.stderr)
    print(f"{mark} warning: {message}", file=sys.stderr)


def error(message: str) -> None:
    """Print error message to stderr with red cross."""
    cross = _colorize(CROSS, RED, sys.stderr)
    print(f"{cross} {message}", file=sys.stderr)


def env_exports(task: Task) -> str:
    """Shell export lines for the task environment, values quoted for sh."""
    return "\n".join(
        f"export {name}={shlex.quote(value)}" for name, value in task.environment().items()
    )


def task_row(task: Task) -> str:
    """One fixed-width row of the task table. Long titles are truncated."""
    title = task.title
    if len(title) > TITLE_WIDTH:
        title = title[: TITLE_WIDTH - 3] + "..."
    # Pad before colouring so escape codes don't shift the columns
    status = f"{task.status.value:<12}"
    if task.status in STATUS_COLORS:
        status = _colorize(status, STATUS_COLORS[task.status])
    return f"{task.id:<12} {status} {task.priority.value:<3} {task.branch:<30} {title}"


def task_table(tasks: Iterable[Task]) -> None:
    """Print a header line followed by one row per task."""
    header(TABLE_HEADER)
    for task in tasks:
        print(task_row(task))
