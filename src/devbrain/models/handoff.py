"""Handoff document model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HandoffDocument(BaseModel):
    """Summary generated once when a task is archived.

    Captures what was done, what is still open and what was learned so the
    next person picking up the area has context. Immutable after creation.
    """

    model_config = ConfigDict(frozen=True)

    task_id: str
    summary: str = ""
    completed_work: list[str] = Field(default_factory=list)
    open_items: list[str] = Field(default_factory=list)
    learnings: list[str] = Field(default_factory=list)
    related_docs: list[str] = Field(default_factory=list)
    generated_at: datetime

    def to_frontmatter(self) -> dict:
        """Metadata written to the front matter of handoff.md."""
        return {
            "task_id": self.task_id,
            "generated_at": self.generated_at.isoformat(),
            "status": "archived",
        }

    def to_markdown(self) -> str:
        """Render the body of handoff.md."""
        lines = [f"# Handoff: {self.task_id}", "", "## Summary", self.summary or "-", ""]

        def section(title: str, items: list[str], empty: str, checkbox: bool = False) -> None:
            lines.append(f"## {title}")
            if items:
                marker = "- [ ] " if checkbox else "- "
                lines.extend(f"{marker}{item}" for item in items)
            else:
                lines.append(f"- {empty}")
            lines.append("")

        section("Completed Work", self.completed_work, "No completed work items recorded")
        section("Open Items", self.open_items, "No open items", checkbox=True)
        section("Key Learnings", self.learnings, "No learnings recorded")
        section("Related Documentation", self.related_docs, "No related documentation")

        lines.append("## Provenance")
        lines.append(f"This handoff was generated from {self.task_id} notes and context.")
        return "\n".join(lines) + "\n"
