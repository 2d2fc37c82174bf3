"""
Idempotent upsert of the single bridge-authored comment on an issue.
"""

from __future__ import annotations

import logging

from beads_bridge.core.backends.backend import ProjectBackend
from beads_bridge.core.backends.models import Comment
from beads_bridge.core.errors import NotSupportedError

from .models import CommentAction
from .renderer import COMMENT_MARKER

logger = logging.getLogger(__name__)


def find_bridge_comment(comments: list[Comment], marker: str = COMMENT_MARKER) -> Comment | None:
    """Return the most recent comment carrying the bridge marker."""
    for comment in reversed(comments):
        if marker in comment.body:
            return comment
    return None


def upsert_bridge_comment(backend: ProjectBackend, issue_id: str, body: str) -> CommentAction:
    """
    Create or refresh the bridge comment on ``issue_id``.

    Nothing is written when the existing comment already has ``body``. When
    the backend cannot edit comments, a new comment is appended instead.
    """
    existing = find_bridge_comment(backend.list_comments(issue_id))

    if existing is not None and existing.body == body:
        logger.info("Progress comment on %s is up to date", issue_id)
        return CommentAction(action="unchanged", comment_id=existing.id)

    update_comment = getattr(backend, "update_comment", None)
    if existing is not None and callable(update_comment):
        try:
            comment = update_comment(issue_id, existing.id, body)
        except NotSupportedError:
            logger.debug("%s cannot edit comments, appending", backend.name)
        else:
            logger.info("Updated progress comment %s on %s", existing.id, issue_id)
            return CommentAction(action="updated", comment_id=comment.id or existing.id)

    comment = backend.add_comment(issue_id, body)
    logger.info("Posted progress comment on %s", issue_id)
    return CommentAction(action="created", comment_id=comment.id)
