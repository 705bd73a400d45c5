"""Tests for TemplateService."""

from pathlib import Path

import pytest

from devbrain.models import TaskType
from devbrain.services import TemplateService


@pytest.fixture
def service(tmp_path: Path) -> TemplateService:
    return TemplateService(tmp_path)


class TestBuiltinTemplates:
    """Tests for the built-in notes scaffolds."""

    @pytest.mark.parametrize(
        "task_type,heading",
        [
            (TaskType.FEAT, "## Acceptance Criteria"),
            (TaskType.BUG, "## Steps to Reproduce"),
            (TaskType.SPIKE, "## Research Questions"),
            (TaskType.REFACTOR, "## Rollback Plan"),
        ],
    )
    def test_type_specific_sections(self, service: TemplateService, task_type, heading):
        assert heading in service.render_notes("TASK-00001", task_type)

    def test_task_id_substituted(self, service: TemplateService):
        notes = service.render_notes("TASK-00042", TaskType.FEAT)
        assert "TASK-00042" in notes
        assert "{task_id}" not in notes

    def test_context_scaffold(self, service: TemplateService):
        context = service.render_context("TASK-00042", "Add login")
        assert context.startswith("# Task Context: TASK-00042")
        assert "## Recent Progress" in context
        assert "## Open Questions" in context
        assert "Add login" in context


class TestCustomTemplates:
    """Tests for templates/<type>.md overrides."""

    def test_override_strips_frontmatter(self, service: TemplateService, tmp_path: Path):
        (tmp_path / "templates").mkdir()
        (tmp_path / "templates" / "bug.md").write_text(
            "---\npriority: P0\n---\n# Incident {task_id}\n\n## Timeline\n"
        )

        notes = service.render_notes("TASK-00007", TaskType.BUG)

        assert notes.startswith("# Incident TASK-00007")
        assert "priority" not in notes

    def test_other_types_keep_builtin(self, service: TemplateService, tmp_path: Path):
        (tmp_path / "templates").mkdir()
        (tmp_path / "templates" / "bug.md").write_text("# Incident\n")

        assert "## Acceptance Criteria" in service.render_notes("TASK-00001", TaskType.FEAT)
