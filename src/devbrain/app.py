"""Service wiring for a devbrain workspace."""

from __future__ import annotations

import logging

from .config import Settings
from .integration import CommandRunner, GitWorktreeManager, RepoSyncService
from .repositories import BacklogStore, TicketDirectoryManager
from .services import (
    ConfigService,
    HandoffService,
    ProtectedBranchResolver,
    TaskLifecycleService,
    TemplateService,
)

logger = logging.getLogger(__name__)


class DevBrain:
    """All services for one workspace, built from Settings."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        base_path = self.settings.base_path.expanduser()
        logger.debug("Workspace root: %s", base_path)

        self.config_service = ConfigService(base_path)
        self.config_service.get_config()
        if self.config_service.has_config_error:
            logger.warning(f"Using default configuration: {self.config_service.config_error}")

        self.runner = CommandRunner(timeout=self.settings.git_timeout)
        self.store = BacklogStore(base_path, lock_timeout=self.settings.lock_timeout)
        self.template_service = TemplateService(base_path)
        self.tickets = TicketDirectoryManager(base_path, self.template_service)
        self.worktrees = GitWorktreeManager(base_path, self.runner)
        self.handoff_service = HandoffService()
        self.lifecycle = TaskLifecycleService(
            self.store,
            self.tickets,
            self.worktrees,
            self.config_service,
            self.handoff_service,
            repos_root=self.worktrees.repos_root,
        )
        self.protected_branches = ProtectedBranchResolver(self.store, self.worktrees.repos_root)
        self.repo_sync = RepoSyncService(base_path, self.runner)
