"""
Progress sync for Shortcut stories.

Shortcut stories get two things:
    1. A "Yak Map" section in the story description holding the dependency
       diagram of the primary epic (replaced in place on every sync).
    2. A narrative progress comment (summary, blockers, what's next and an
       optional note from the user).
"""

from __future__ import annotations

import logging

from beads_bridge.core.backends.backend import ProjectBackend
from beads_bridge.core.backends.models import IssueUpdate
from beads_bridge.core.diagrams.mermaid import DiagramGenerator, fenced
from beads_bridge.core.errors import BridgeError, ConfigurationError, NotFoundError
from beads_bridge.core.refs.resolver import ExternalRefResolver

from .comments import upsert_bridge_comment
from .models import StorySyncResult
from .renderer import render_narrative_comment
from .sections import upsert_section

logger = logging.getLogger(__name__)

YAK_MAP_START = "<!-- YAK_MAP_START -->"
YAK_MAP_END = "<!-- YAK_MAP_END -->"


def format_yak_map(diagram: str) -> str:
    """Content of the Yak Map section, without markers."""
    return f"---\n\n## Yak Map\n\n{fenced(diagram)}\n"


class ShortcutStorySync:
    """
    Sync beads progress to a single Shortcut story.

    Example:
        >>> sync = ShortcutStorySync(shortcut_backend, resolver, diagrams)
        >>> result = sync.sync_story(12345, narrative="Auth flow landed")
    """

    def __init__(
        self,
        backend: ProjectBackend,
        resolver: ExternalRefResolver,
        diagrams: DiagramGenerator | None = None,
    ) -> None:
        self.backend = backend
        self.resolver = resolver
        self.diagrams = diagrams

    def sync_story(self, story_id: int, narrative: str | None = None) -> StorySyncResult:
        """
        Update the story's Yak Map and narrative comment.

        Failures of the bridge or the backend are returned as an
        unsuccessful result. Configuration errors propagate.
        """
        try:
            resolution = self.resolver.resolve(external_ref=f"shortcut:{story_id}")
            primary = resolution.primary_epic
            if primary is None:
                raise NotFoundError(f"No beads epic references shortcut:{story_id}")

            story = self.backend.get_issue(str(story_id))

            if self.diagrams is not None:
                diagram = self.diagrams.generate(primary.repository, primary.epic_id)
                description = upsert_section(
                    story.body, YAK_MAP_START, YAK_MAP_END, format_yak_map(diagram)
                )
                if description != story.body:
                    self.backend.update_issue(str(story_id), IssueUpdate(body=description))
                    logger.info("Updated Yak Map on story %s", story_id)
                else:
                    logger.info("Yak Map on story %s is up to date", story_id)

            upsert_bridge_comment(
                self.backend,
                str(story_id),
                render_narrative_comment(resolution.metrics, narrative),
            )
        except ConfigurationError:
            raise
        except BridgeError as e:
            logger.warning("Shortcut sync failed for story %s: %s", story_id, e)
            return StorySyncResult(success=False, story_id=story_id, error=e.message)

        return StorySyncResult(success=True, story_id=story_id, story_url=story.url or None)
