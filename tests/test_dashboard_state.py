"""
Tests for dashboard snapshots and the read-only liveweb backend.
"""

from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from beads_bridge.core.backends import get_backend
from beads_bridge.core.backends.models import CreateIssueParams, IssueUpdate, LinkType, SearchQuery
from beads_bridge.core.beads.models import BeadsIssue, DependencyTreeNode
from beads_bridge.core.dashboard.state import (
    DashboardMetrics,
    IssueState,
    LiveStateBackend,
    build_issue_state,
)
from beads_bridge.core.errors import NotFoundError, NotSupportedError


@pytest.fixture
def tree():
    return DependencyTreeNode(
        issue=BeadsIssue(id="e1", title="Checkout epic", status="in_progress", issue_type="epic"),
        children=[
            DependencyTreeNode(
                issue=BeadsIssue(id="t1", title="Cart API", status="closed", parent_id="e1"),
                depth=1,
            ),
            DependencyTreeNode(
                issue=BeadsIssue(
                    id="t2", title="Payment form", status="blocked", parent_id="e1", assignee="sam"
                ),
                depth=1,
                children=[
                    DependencyTreeNode(
                        issue=BeadsIssue(id="t3", title="Card validation", parent_id="t2"), depth=2
                    )
                ],
            ),
        ],
    )


@pytest.fixture
def state(tree):
    return build_issue_state(tree, "graph TD", base_url="http://localhost:4000")


# ==============================================================================
# Snapshot building
# ==============================================================================


class TestBuildIssueState:
    """Turning a dependency tree into a snapshot."""

    def test_includes_root_and_descendants(self, state):
        assert state.root_id == "e1"
        assert [i.id for i in state.issues] == ["e1", "t1", "t2", "t3"]
        assert state.diagram == "graph TD"

    def test_metrics(self, state):
        assert state.metrics == DashboardMetrics(
            total=4, completed=1, in_progress=1, blocked=1, open=1
        )

    def test_issue_mapping(self, state):
        closed, blocked = state.issues[1], state.issues[2]
        assert closed.state == "closed"
        assert blocked.state == "open"
        assert blocked.metadata["beads_status"] == "blocked"
        assert blocked.metadata["parent_id"] == "e1"
        assert blocked.assignees == ["sam"]
        assert blocked.url == "http://localhost:4000/issue/t2"

    def test_snapshot_is_frozen(self, state):
        with pytest.raises(ValidationError):
            state.diagram = "changed"

    def test_camel_case_dump(self, state):
        data = state.model_dump(mode="json", by_alias=True)
        assert data["rootId"] == "e1"
        assert data["metrics"]["inProgress"] == 1
        assert "lastUpdate" in data


# ==============================================================================
# LiveStateBackend
# ==============================================================================


class TestLiveStateBackend:
    """In-memory snapshot store and read-only backend."""

    def test_registered_as_liveweb(self):
        assert isinstance(get_backend("liveweb"), LiveStateBackend)

    def test_update_replaces_and_broadcasts(self, state):
        broadcaster = Mock()
        backend = LiveStateBackend(broadcaster=broadcaster)

        backend.update_state("e1", state)
        newer = IssueState(root_id="e1")
        backend.update_state("e1", newer)

        assert backend.get_state("e1") is newer
        broadcaster.broadcast.assert_called_with({"type": "update", "issueId": "e1", "data": newer})
        assert broadcaster.broadcast.call_count == 2

    def test_update_without_broadcaster(self, state):
        backend = LiveStateBackend()
        backend.update_state("e1", state)
        assert backend.get_state("e1") is state

    def test_clear(self, state):
        backend = LiveStateBackend()
        backend.update_state("e1", state)
        backend.clear()
        assert backend.get_state("e1") is None

    def test_always_authenticated(self):
        backend = LiveStateBackend()
        backend.authenticate()
        assert backend.is_authenticated()

    def test_get_issue(self, state):
        backend = LiveStateBackend()
        backend.update_state("e1", state)
        assert backend.get_issue("e1").title == "Checkout epic"

    def test_get_issue_without_snapshot(self):
        with pytest.raises(NotFoundError):
            LiveStateBackend().get_issue("e1")

    def test_search(self, state):
        backend = LiveStateBackend()
        backend.update_state("e1", state)
        assert [i.id for i in backend.search_issues(SearchQuery(state="closed"))] == ["t1"]
        assert [i.id for i in backend.search_issues(SearchQuery(text="PAYMENT"))] == ["t2"]
        assert len(backend.search_issues(SearchQuery())) == 4

    def test_no_comments_or_links(self):
        backend = LiveStateBackend()
        assert backend.list_comments("e1") == []
        assert backend.get_linked_issues("e1") == []

    @pytest.mark.parametrize(
        "operation,call",
        [
            ("create_issue", lambda b: b.create_issue(CreateIssueParams(title="x"))),
            ("update_issue", lambda b: b.update_issue("e1", IssueUpdate(title="x"))),
            ("add_comment", lambda b: b.add_comment("e1", "hi")),
            ("link_issues", lambda b: b.link_issues("e1", "t1", LinkType.BLOCKS)),
        ],
    )
    def test_writes_not_supported(self, operation, call):
        with pytest.raises(NotSupportedError) as exc_info:
            call(LiveStateBackend())
        assert exc_info.value.operation == operation
