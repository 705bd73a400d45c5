"""Service layer for business logic."""

from .config_service import ConfigService
from .handoff_service import HandoffService
from .lifecycle_service import TaskLifecycleService
from .protected_branches import ProtectedBranchResolver, protected_branches
from .template_service import TemplateService

__all__ = [
    "ConfigService",
    "HandoffService",
    "ProtectedBranchResolver",
    "TaskLifecycleService",
    "TemplateService",
    "protected_branches",
]
