"""Handoff document generation for archived tasks."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import frontmatter

from ..models import HandoffDocument, Task
from ..utils import atomic_write_text, now_utc

logger = logging.getLogger(__name__)

_CHECKBOX_PREFIXES = ("[ ] ", "[x] ", "[X] ")


def extract_list_items(content: str) -> list[str]:
    """
    Collect "- item" lines from markdown.

    Checkbox markers are stripped; empty items and bracketed placeholders
    such as "- [link]" are skipped.
    """
    items = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped.startswith("- "):
            continue
        item = stripped[2:]
        for prefix in _CHECKBOX_PREFIXES:
            if item.startswith(prefix):
                item = item[len(prefix) :]
                break
        item = item.strip()
        if item and not item.startswith("["):
            items.append(item)
    return items


def extract_section_items(content: str, heading: str) -> list[str]:
    """List items under a "## Heading" up to the next level-2 heading."""
    idx = content.find(heading)
    if idx < 0:
        return []
    rest = content[idx + len(heading) :]
    end = rest.find("\n## ")
    if end >= 0:
        rest = rest[:end]
    return extract_list_items(rest)


class HandoffService:
    """Builds and writes the handoff.md summary when a task is archived."""

    NOTES_FILE = "notes.md"
    CONTEXT_FILE = "context.md"
    HANDOFF_FILE = "handoff.md"
    RELATED_FILES = ("design.md",)
    KNOWLEDGE_DIR = "knowledge"

    def build(self, task: Task, ticket_dir: Path, when: datetime | None = None) -> HandoffDocument:
        """
        Gather the handoff content from a ticket directory.

        Learnings come from every list item in notes.md; completed work and
        open items from the "Recent Progress" and "Open Questions" sections
        of context.md. Missing files simply leave their fields empty.
        """
        title = task.title or task.branch
        summary = f"Task {task.id} ({task.type.value}): {title}"
        learnings: list[str] = []
        completed: list[str] = []
        open_items: list[str] = []
        related: list[str] = []

        notes = self._read(ticket_dir / self.NOTES_FILE)
        if notes is not None:
            learnings = extract_list_items(notes)

        context = self._read(ticket_dir / self.CONTEXT_FILE)
        if context is not None:
            completed = extract_section_items(context, "## Recent Progress")
            open_items = extract_section_items(context, "## Open Questions")

        for name in self.RELATED_FILES:
            if (ticket_dir / name).is_file():
                related.append(name)
        knowledge = ticket_dir / self.KNOWLEDGE_DIR
        if knowledge.is_dir():
            related.extend(
                f"{self.KNOWLEDGE_DIR}/{p.name}" for p in sorted(knowledge.iterdir()) if p.is_file()
            )

        return HandoffDocument(
            task_id=task.id,
            summary=summary,
            completed_work=completed,
            open_items=open_items,
            learnings=learnings,
            related_docs=related,
            generated_at=when or now_utc(),
        )

    def write(self, handoff: HandoffDocument, ticket_dir: Path) -> Path:
        """Write handoff.md with YAML front matter into the ticket directory."""
        post = frontmatter.Post(handoff.to_markdown(), **handoff.to_frontmatter())
        path = ticket_dir / self.HANDOFF_FILE
        atomic_write_text(path, frontmatter.dumps(post, sort_keys=False) + "\n")
        logger.info("Wrote handoff for %s to %s", handoff.task_id, path)
        return path

    def read(self, ticket_dir: Path) -> frontmatter.Post | None:
        """Load an existing handoff.md, or None if there is none."""
        path = ticket_dir / self.HANDOFF_FILE
        if not path.exists():
            return None
        return frontmatter.load(path)

    def _read(self, path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return None
