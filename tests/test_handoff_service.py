"""Tests for HandoffService."""

from datetime import UTC, datetime
from pathlib import Path

import frontmatter
import pytest

from devbrain.models import Task, TaskType
from devbrain.services import HandoffService
from devbrain.services.handoff_service import extract_list_items, extract_section_items

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

CONTEXT = """# Task Context: TASK-00001

## Summary
Login form

## Recent Progress
- Built the form
- Wired validation

## Open Questions
- [ ] Rate limiting?
- Session length

## Decisions Made
- Use cookies
"""

NOTES = """# Feature Notes: TASK-00001

## Implementation Notes
- Reuse the auth client
- [x] Tokens expire after an hour
-
- [link](http://example.com)
"""


@pytest.fixture
def ticket_dir(tmp_path: Path) -> Path:
    path = tmp_path / "tickets" / "TASK-00001"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def task() -> Task:
    return Task(id="TASK-00001", type=TaskType.FEAT, branch="login", title="Add login")


class TestExtraction:
    """Tests for markdown list extraction."""

    def test_list_items(self):
        assert extract_list_items(NOTES) == ["Reuse the auth client", "Tokens expire after an hour"]

    def test_section_items_stop_at_next_heading(self):
        assert extract_section_items(CONTEXT, "## Recent Progress") == [
            "Built the form",
            "Wired validation",
        ]
        assert extract_section_items(CONTEXT, "## Open Questions") == [
            "Rate limiting?",
            "Session length",
        ]

    def test_missing_section(self):
        assert extract_section_items(CONTEXT, "## Blockers") == []


class TestBuild:
    """Tests for HandoffService.build."""

    def test_build_from_ticket(self, ticket_dir: Path, task: Task):
        (ticket_dir / "notes.md").write_text(NOTES)
        (ticket_dir / "context.md").write_text(CONTEXT)
        (ticket_dir / "design.md").write_text("# Design\n")
        (ticket_dir / "knowledge").mkdir()
        (ticket_dir / "knowledge" / "auth.md").write_text("notes\n")

        handoff = HandoffService().build(task, ticket_dir, NOW)

        assert handoff.summary == "Task TASK-00001 (feat): Add login"
        assert handoff.completed_work == ["Built the form", "Wired validation"]
        assert handoff.open_items == ["Rate limiting?", "Session length"]
        assert handoff.learnings == ["Reuse the auth client", "Tokens expire after an hour"]
        assert handoff.related_docs == ["design.md", "knowledge/auth.md"]
        assert handoff.generated_at == NOW

    def test_build_with_missing_files(self, ticket_dir: Path, task: Task):
        handoff = HandoffService().build(task, ticket_dir, NOW)

        assert handoff.completed_work == []
        assert handoff.open_items == []
        assert handoff.learnings == []

    def test_build_with_invalid_utf8(self, ticket_dir: Path, task: Task):
        (ticket_dir / "notes.md").write_bytes(b"- caf\xe9 notes\n")
        (ticket_dir / "context.md").write_bytes(b"## Recent Progress\n- \xff\xfe done\n")

        handoff = HandoffService().build(task, ticket_dir, NOW)

        assert handoff.learnings == ["caf\ufffd notes"]
        assert handoff.completed_work == ["\ufffd\ufffd done"]

        path = HandoffService().write(handoff, ticket_dir)
        assert "caf\ufffd notes" in path.read_text(encoding="utf-8")


class TestWrite:
    """Tests for writing handoff.md."""

    def test_write_has_frontmatter(self, ticket_dir: Path, task: Task):
        (ticket_dir / "context.md").write_text(CONTEXT)
        service = HandoffService()
        handoff = service.build(task, ticket_dir, NOW)

        path = service.write(handoff, ticket_dir)

        post = frontmatter.load(path)
        assert post["task_id"] == "TASK-00001"
        assert post["status"] == "archived"
        assert "# Handoff: TASK-00001" in post.content
        assert "- [ ] Rate limiting?" in post.content

    def test_read(self, ticket_dir: Path, task: Task):
        service = HandoffService()
        assert service.read(ticket_dir) is None
        service.write(service.build(task, ticket_dir, NOW), ticket_dir)
        post = service.read(ticket_dir)
        assert post is not None
        assert post["task_id"] == "TASK-00001"
