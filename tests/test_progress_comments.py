"""
Unit tests for the bridge comment upsert.
"""

from unittest.mock import Mock

from beads_bridge.core.backends.models import Comment
from beads_bridge.core.errors import NotSupportedError
from beads_bridge.core.progress.comments import find_bridge_comment, upsert_bridge_comment
from beads_bridge.core.progress.renderer import COMMENT_MARKER

from .conftest import FakeBackend


def bridge_body(text: str) -> str:
    return f"{COMMENT_MARKER}\n{text}\n"


class TestFindBridgeComment:
    """Locating the bridge-authored comment."""

    def test_ignores_user_comments(self):
        comments = [Comment(id="1", body="LGTM"), Comment(id="2", body=bridge_body("v1"))]
        assert find_bridge_comment(comments).id == "2"

    def test_most_recent_wins(self):
        comments = [
            Comment(id="1", body=bridge_body("v1")),
            Comment(id="2", body="user"),
            Comment(id="3", body=bridge_body("v2")),
        ]
        assert find_bridge_comment(comments).id == "3"

    def test_none(self):
        assert find_bridge_comment([Comment(id="1", body="hello")]) is None


class TestUpsertBridgeComment:
    """Create, update or leave the comment alone."""

    def test_creates_when_missing(self, fake_backend):
        action = upsert_bridge_comment(fake_backend, "org/repo#1", bridge_body("v1"))
        assert action.action == "created"
        assert fake_backend.writes == [("add_comment", "org/repo#1")]

    def test_unchanged_body_writes_nothing(self, fake_backend):
        upsert_bridge_comment(fake_backend, "org/repo#1", bridge_body("v1"))
        fake_backend.writes.clear()

        action = upsert_bridge_comment(fake_backend, "org/repo#1", bridge_body("v1"))

        assert action.action == "unchanged"
        assert fake_backend.writes == []

    def test_updates_in_place(self, fake_backend):
        created = upsert_bridge_comment(fake_backend, "org/repo#1", bridge_body("v1"))
        action = upsert_bridge_comment(fake_backend, "org/repo#1", bridge_body("v2"))

        assert action.action == "updated"
        assert action.comment_id == created.comment_id
        comments = fake_backend.list_comments("org/repo#1")
        assert len(comments) == 1
        assert comments[0].body == bridge_body("v2")

    def test_appends_when_backend_cannot_edit(self):
        backend = FakeBackend(name="shortcut", editable_comments=False)
        upsert_bridge_comment(backend, "42", bridge_body("v1"))
        action = upsert_bridge_comment(backend, "42", bridge_body("v2"))

        assert action.action == "created"
        assert len(backend.list_comments("42")) == 2

    def test_appends_when_edit_not_supported(self):
        backend = Mock()
        backend.name = "legacy"
        backend.list_comments.return_value = [Comment(id="7", body=bridge_body("v1"))]
        backend.update_comment.side_effect = NotSupportedError("update_comment")
        backend.add_comment.return_value = Comment(id="8", body=bridge_body("v2"))

        action = upsert_bridge_comment(backend, "1", bridge_body("v2"))

        assert action.action == "created"
        assert action.comment_id == "8"
        backend.add_comment.assert_called_once_with("1", bridge_body("v2"))
