"""
Markdown rendering for progress comments and description sections.

Rendered bodies are deterministic for a given input (no timestamps), so an
unchanged rollup renders byte-identical text and callers can skip the write.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, Field

from beads_bridge.core.beads.models import EpicStatus
from beads_bridge.core.diagrams.mermaid import fenced
from beads_bridge.core.refs.resolver import EpicLink

# Hidden marker identifying comments authored by the bridge
COMMENT_MARKER = "<!-- beads-bridge:progress -->"

PROGRESS_BAR_WIDTH = 20


def progress_bar(percent: int) -> str:
    """
    Render a 20-block progress bar.

    Example:
        >>> progress_bar(50)
        '`██████████░░░░░░░░░░` 50%'
    """
    percent = max(0, min(100, percent))
    filled = int(math.floor(percent / 5 + 0.5))
    bar = "█" * filled + "░" * (PROGRESS_BAR_WIDTH - filled)
    return f"`{bar}` {percent}%"


def render_progress_comment(
    metrics: EpicStatus,
    epics: list[EpicLink] | None = None,
    *,
    diagram: str | None = None,
    include_blockers: bool = True,
    narrative: str | None = None,
    max_items: int = 5,
) -> str:
    """Render the body of the bridge's progress comment."""
    lines: list[str] = [COMMENT_MARKER]

    if diagram:
        lines += ["## Dependency Diagram", "", fenced(diagram), "", "---", ""]

    lines += [
        "## Progress Update",
        "",
        progress_bar(metrics.percent_complete),
        "",
        f"**Overall:** {metrics.completed}/{metrics.total} tasks completed "
        f"({metrics.percent_complete}%)",
        "",
        "### Summary",
        f"- ✅ Completed: {metrics.completed}",
        f"- 🔄 In Progress: {metrics.in_progress}",
        f"- 🚧 Blocked: {metrics.blocked}",
        f"- 📝 Not Started: {metrics.not_started}",
        "",
    ]

    if epics and len(epics) > 1:
        lines += ["### Tracked Epics", ""]
        lines += [f"- `{e.epic_id}` ({e.repository})" for e in epics]
        lines.append("")

    if include_blockers and metrics.blockers:
        lines += ["### ⚠️ Blockers", ""]
        for blocker in metrics.blockers[:max_items]:
            lines.append(f"- **{blocker.id}**: {blocker.title}")
            for dep_id in blocker.blocked_by:
                lines.append(f"  - Blocked by: {dep_id}")
        if len(metrics.blockers) > max_items:
            lines.append(f"- ...and {len(metrics.blockers) - max_items} more blocked tasks")
        lines.append("")

    if metrics.discovered:
        lines.append(f"*{len(metrics.discovered)} task(s) discovered during implementation*")
        lines.append("")

    if narrative:
        lines += ["### Notes", "", narrative.strip(), ""]

    return "\n".join(lines).rstrip("\n") + "\n"


def render_diagram_section(diagram: str, header: str = "## Dependency Diagram") -> str:
    """Content placed between description markers (markers not included)."""
    return f"\n{header}\n\n{fenced(diagram)}\n\n"


class NarrativeSections(BaseModel):
    """Automatically generated parts of a narrative progress comment."""

    summary: str
    blockers: list[str] = Field(default_factory=list)
    whats_next: list[str] = Field(default_factory=list)


def _plural(count: int, word: str = "task") -> str:
    return word if count == 1 else f"{word}s"


def build_narrative_sections(metrics: EpicStatus) -> NarrativeSections:
    """Summarize a rollup as prose plus blocker and next-step lists."""
    summary = (
        f"Completed {metrics.completed} {_plural(metrics.completed)}, "
        f"{metrics.in_progress} in progress, {metrics.blocked} blocked, "
        f"{metrics.not_started} open."
    )
    blockers = [
        f"{b.id}: {b.title} (blocked by: {', '.join(b.blocked_by)})"
        if b.blocked_by
        else f"{b.id}: {b.title}"
        for b in metrics.blockers
    ]
    whats_next = []
    if metrics.in_progress:
        whats_next.append(
            f"Continue {metrics.in_progress} in-progress {_plural(metrics.in_progress)}"
        )
    if metrics.not_started:
        whats_next.append(f"Start {metrics.not_started} open {_plural(metrics.not_started)}")
    return NarrativeSections(summary=summary, blockers=blockers, whats_next=whats_next)


def render_narrative_comment(metrics: EpicStatus, user_narrative: str | None = None) -> str:
    """Render the narrative comment posted to Shortcut stories."""
    sections = build_narrative_sections(metrics)
    parts = [COMMENT_MARKER, "## Progress Update", "", sections.summary]
    if sections.blockers:
        parts += ["", "**Current Blockers:**"]
        parts += [f"- {b}" for b in sections.blockers]
    if sections.whats_next:
        parts += ["", "**What's Next:**"]
        parts += [f"- {n}" for n in sections.whats_next]
    if user_narrative:
        parts += ["", user_narrative.strip()]
    return "\n".join(parts) + "\n"
