"""Template service for ticket directory scaffolds."""

from __future__ import annotations

import logging
from pathlib import Path

import frontmatter

from ..models import TaskType

logger = logging.getLogger(__name__)

# Default notes.md content per task type
BUILTIN_NOTES_TEMPLATES: dict[TaskType, str] = {
    TaskType.FEAT: """# Feature Notes: {task_id}

## Requirements

## Acceptance Criteria

## Implementation Notes

## Open Questions
""",
    TaskType.BUG: """# Bug Notes: {task_id}

## Description

## Steps to Reproduce

## Expected Behavior

## Actual Behavior

## Root Cause Analysis

## Fix Notes
""",
    TaskType.SPIKE: """# Spike Notes: {task_id}

## Objective

## Research Questions

## Findings

## Recommendations

## Time-Box
""",
    TaskType.REFACTOR: """# Refactor Notes: {task_id}

## Motivation

## Current State

## Target State

## Affected Components

## Risks

## Rollback Plan
""",
}

CONTEXT_TEMPLATE = """# Task Context: {task_id}

## Summary
{title}

## Current Focus

## Recent Progress

## Open Questions

## Decisions Made

## Blockers

## Next Steps

## Related Resources
"""


class TemplateService:
    """Service for rendering the files a new ticket directory starts with."""

    TEMPLATES_DIR = "templates"

    def __init__(self, base_path: Path) -> None:
        """Initialize the template service.

        Args:
            base_path: Workspace root; custom templates live in its templates/
        """
        self.base_path = base_path

    @property
    def templates_path(self) -> Path:
        """Get path to the custom templates directory."""
        return self.base_path / self.TEMPLATES_DIR

    def get_template(self, task_type: TaskType) -> str:
        """
        Load the notes template for a task type.

        A custom ``templates/<type>.md`` wins over the built-in template. Its
        front matter, if any, is discarded; only the body is used.
        """
        template_file = self.templates_path / f"{task_type.value}.md"

        if template_file.exists():
            try:
                post = frontmatter.load(template_file)
                return post.content + "\n"
            except Exception as e:
                logger.warning(f"Failed to load template {template_file}: {e}")

        return BUILTIN_NOTES_TEMPLATES[task_type]

    def render_notes(self, task_id: str, task_type: TaskType, title: str = "") -> str:
        """Render notes.md for a new task."""
        content = self.get_template(task_type)
        return content.replace("{task_id}", task_id).replace("{title}", title)

    def render_context(self, task_id: str, title: str = "") -> str:
        """Render context.md for a new task."""
        return CONTEXT_TEMPLATE.replace("{task_id}", task_id).replace("{title}", title)
