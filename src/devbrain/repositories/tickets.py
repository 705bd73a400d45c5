"""Filesystem repository for per-task ticket directories."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

from ..errors import AlreadyExistsError, TaskNotFoundError
from ..models import Task, TaskType
from ..utils import atomic_write_text, atomic_write_yaml, validate_task_id

if TYPE_CHECKING:
    from ..services.template_service import TemplateService

logger = logging.getLogger(__name__)


class TicketDirectoryManager:
    """
    Repository for ticket directories stored under tickets/.

    Active tickets live at tickets/<TASK-ID>/, archived ones at
    tickets/_archived/<TASK-ID>/. Each directory holds the task's notes,
    context and status file plus session/knowledge/communication folders.
    Moving between the two roots is a single rename.
    """

    TICKETS_DIR = "tickets"
    ARCHIVED_DIR = "_archived"
    NOTES_FILE = "notes.md"
    CONTEXT_FILE = "context.md"
    STATUS_FILE = "status.yaml"
    HANDOFF_FILE = "handoff.md"
    SUBDIRS = ("sessions", "knowledge", "communications")

    def __init__(self, base_path: Path, template_service: TemplateService | None = None) -> None:
        """
        Initialize the manager.

        Args:
            base_path: Workspace root containing tickets/
            template_service: Renders notes.md and context.md for new tickets
        """
        self.base_path = base_path
        if template_service is None:
            from ..services.template_service import TemplateService

            template_service = TemplateService(base_path)
        self._templates = template_service

    @property
    def tickets_root(self) -> Path:
        return self.base_path / self.TICKETS_DIR

    @property
    def archived_root(self) -> Path:
        return self.tickets_root / self.ARCHIVED_DIR

    def active_path(self, task_id: str) -> Path:
        """Path of the ticket directory while the task is not archived."""
        return self.tickets_root / validate_task_id(task_id)

    def archived_path(self, task_id: str) -> Path:
        """Path of the ticket directory once the task is archived."""
        return self.archived_root / validate_task_id(task_id)

    def resolve(self, task_id: str) -> Path:
        """
        Find where a ticket directory currently lives.

        Returns the active path if it exists, else the archived path if that
        exists, else the active path as the default location.
        """
        active = self.active_path(task_id)
        if active.is_dir():
            return active
        archived = self.archived_path(task_id)
        if archived.is_dir():
            return archived
        return active

    def exists(self, task_id: str) -> bool:
        """Whether a ticket directory exists in either root."""
        return self.active_path(task_id).is_dir() or self.archived_path(task_id).is_dir()

    def create(self, task_id: str, task_type: TaskType, title: str = "") -> Path:
        """
        Create the ticket directory tree for a new task.

        Raises:
            AlreadyExistsError: If the directory exists in either root.
            InvalidIdentifierError: If task_id is not a safe path segment.
        """
        path = self.active_path(task_id)
        if self.exists(task_id):
            raise AlreadyExistsError(f"ticket directory for {task_id} already exists")

        self.tickets_root.mkdir(parents=True, exist_ok=True)
        try:
            path.mkdir()
        except FileExistsError as e:
            raise AlreadyExistsError(f"ticket directory for {task_id} already exists") from e

        try:
            atomic_write_text(
                path / self.NOTES_FILE,
                self._templates.render_notes(task_id, task_type, title),
            )
            atomic_write_text(
                path / self.CONTEXT_FILE,
                self._templates.render_context(task_id, title),
            )
            for name in self.SUBDIRS:
                (path / name).mkdir()
        except OSError:
            shutil.rmtree(path, ignore_errors=True)
            raise

        logger.info("Created ticket directory %s", path)
        return path

    def move_to_archived(self, task_id: str) -> Path:
        """Move a ticket directory into the archived root."""
        return self._move(task_id, self.active_path(task_id), self.archived_path(task_id))

    def move_to_active(self, task_id: str) -> Path:
        """Move a ticket directory back into the active root."""
        return self._move(task_id, self.archived_path(task_id), self.active_path(task_id))

    def _move(self, task_id: str, source: Path, target: Path) -> Path:
        """Rename source to target, treating an existing target as already moved."""
        if target.exists():
            logger.debug("%s already at %s", task_id, target)
            return target
        if not source.exists():
            raise TaskNotFoundError(task_id, f"ticket directory for {task_id} not found")

        target.parent.mkdir(parents=True, exist_ok=True)
        source.rename(target)
        logger.info("Moved ticket directory %s -> %s", source, target)
        return target

    def write_status(self, task: Task) -> bool:
        """
        Write status.yaml mirroring the task's registry record.

        Returns:
            False if the ticket directory does not exist, True otherwise.
        """
        path = Path(task.ticket_path) if task.ticket_path else self.resolve(task.id)
        if not path.is_dir():
            logger.warning("Ticket directory %s missing, status.yaml not written", path)
            return False
        atomic_write_yaml(path / self.STATUS_FILE, task.to_record())
        return True

    def read_status(self, task_id: str) -> Task | None:
        """Read status.yaml for a task, or None if absent or unreadable."""
        status_file = self.resolve(task_id) / self.STATUS_FILE
        if not status_file.exists():
            return None
        try:
            with status_file.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
            if not isinstance(data, dict):
                return None
            return Task.from_record(data)
        except Exception as e:
            logger.warning(f"Failed to read {status_file}: {e}")
            return None
