"""
Progress orchestrator.

Pushes the aggregated progress of every epic linked to an external issue
into that issue, as a single bridge-authored comment that is edited in
place on later syncs.
"""

from __future__ import annotations

import logging
from typing import Any

from beads_bridge.core.backends.backend import ProjectBackend
from beads_bridge.core.beads.models import EpicStatus
from beads_bridge.core.diagrams.mermaid import DiagramGenerator
from beads_bridge.core.errors import BridgeError, ConfigurationError, NotSupportedError
from beads_bridge.core.refs.resolver import ExternalRefResolver

from .comments import upsert_bridge_comment
from .models import CapabilityResult
from .renderer import render_progress_comment
from .shortcut_sync import ShortcutStorySync

logger = logging.getLogger(__name__)


class ProgressOrchestrator:
    """
    Sync aggregated epic progress to an external issue.

    Example:
        >>> orchestrator = ProgressOrchestrator(github, ExternalRefResolver(beads))
        >>> result = orchestrator.sync_progress("org/repo", 123)
        >>> result.success
        True
    """

    def __init__(
        self,
        backend: ProjectBackend,
        resolver: ExternalRefResolver,
        diagrams: DiagramGenerator | None = None,
        story_sync: ShortcutStorySync | None = None,
    ) -> None:
        self.backend = backend
        self.resolver = resolver
        self.diagrams = diagrams
        self.story_sync = story_sync

    def _issue_id(self, repository: str, issue_number: int) -> str:
        if self.backend.name == "github":
            return f"{repository}#{issue_number}"
        return str(issue_number)

    def sync_progress(
        self,
        repository: str | None,
        issue_number: int | None,
        *,
        narrative: str | None = None,
        include_blockers: bool = True,
    ) -> CapabilityResult:
        """
        Sync progress for ``repository`` / ``issue_number``.

        Returns:
            CapabilityResult with ``VALIDATION_ERROR`` for missing input,
            ``NOT_FOUND`` when no epic references the issue, and
            ``SYNC_ERROR`` for failures while talking to the tracker or backend.
        """
        if not repository or issue_number is None:
            return CapabilityResult.fail(
                "VALIDATION_ERROR", "repository and issue_number are required"
            )

        if self.backend.name == "shortcut" and self.story_sync is not None:
            story = self.story_sync.sync_story(issue_number, narrative)
            if not story.success:
                return CapabilityResult.fail("SYNC_ERROR", story.error or "Shortcut sync failed")
            return CapabilityResult.ok(story.model_dump(mode="json"))

        try:
            return self._sync_comment(repository, issue_number, narrative, include_blockers)
        except ConfigurationError:
            raise
        except BridgeError as e:
            logger.warning("Progress sync failed for %s#%s: %s", repository, issue_number, e)
            return CapabilityResult.from_error(e, code="SYNC_ERROR")

    def _sync_comment(
        self,
        repository: str,
        issue_number: int,
        narrative: str | None,
        include_blockers: bool,
    ) -> CapabilityResult:
        resolution = self.resolver.resolve(repository=repository, issue_number=issue_number)
        primary = resolution.primary_epic
        if primary is None:
            return CapabilityResult.fail(
                "NOT_FOUND", f"No beads epics reference {resolution.external_ref}"
            )

        diagram = None
        if self.diagrams is not None:
            diagram = self.diagrams.generate(primary.repository, primary.epic_id)

        body = render_progress_comment(
            resolution.metrics,
            resolution.epics,
            diagram=diagram,
            include_blockers=include_blockers,
            narrative=narrative,
        )
        issue_id = self._issue_id(repository, issue_number)
        comment = upsert_bridge_comment(self.backend, issue_id, body)

        if self.backend.supports_custom_fields:
            self._update_fields(issue_id, resolution.metrics)

        data: dict[str, Any] = {
            "external_ref": resolution.external_ref,
            "epics": [e.model_dump() for e in resolution.epics],
            "metrics": resolution.metrics.model_dump(),
            "comment": comment.model_dump(),
        }
        return CapabilityResult.ok(data)

    def _update_fields(self, issue_id: str, metrics: EpicStatus) -> None:
        update_field = getattr(self.backend, "update_project_field", None)
        if not callable(update_field):
            raise NotSupportedError("update_project_field")
        update_field(issue_id, "progress_percent", metrics.percent_complete)
        update_field(issue_id, "tasks_completed", metrics.completed)
        update_field(issue_id, "tasks_total", metrics.total)
