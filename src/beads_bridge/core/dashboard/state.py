"""
Live dashboard state and the read-only "liveweb" backend.

The dashboard keeps one immutable IssueState snapshot per root bead. A new
snapshot replaces the old one wholesale and is pushed to the broadcaster.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from beads_bridge.core.backends.backend import register_backend
from beads_bridge.core.backends.models import (
    Comment,
    CreateIssueParams,
    Issue,
    IssueStatus,
    IssueUpdate,
    LinkedIssue,
    LinkType,
    SearchQuery,
)
from beads_bridge.core.beads.models import BeadsIssue, BeadsStatus, DependencyTreeNode
from beads_bridge.core.errors import NotFoundError, NotSupportedError

from .broadcaster import Broadcaster

logger = logging.getLogger(__name__)


class DashboardMetrics(BaseModel):
    """Status counts for the issues in a snapshot."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    completed: int = 0
    in_progress: int = 0
    blocked: int = 0
    open: int = 0


class IssueState(BaseModel):
    """Immutable snapshot of one root bead and its descendants."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    diagram: str = ""
    metrics: DashboardMetrics = Field(default_factory=DashboardMetrics)
    issues: tuple[Issue, ...] = ()
    root_id: str | None = None
    last_update: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def _to_dashboard_issue(issue: BeadsIssue, number: int, base_url: str) -> Issue:
    return Issue(
        id=issue.id,
        number=number,
        title=issue.title,
        body=issue.description,
        state=(
            IssueStatus.CLOSED.value
            if issue.status == BeadsStatus.CLOSED.value
            else IssueStatus.OPEN.value
        ),
        url=f"{base_url}/issue/{issue.id}",
        labels=list(issue.labels),
        assignees=[issue.assignee] if issue.assignee else [],
        metadata={
            "beads_status": issue.status,
            "beads_priority": issue.priority,
            "beads_type": issue.issue_type,
            "parent_id": issue.parent_id,
        },
    )


def build_issue_state(
    tree: DependencyTreeNode, diagram: str = "", base_url: str = "http://localhost:3000"
) -> IssueState:
    """Build a snapshot from a root bead's dependency tree."""
    beads = [tree.issue] + tree.flatten()
    issues = tuple(
        _to_dashboard_issue(bead, number, base_url) for number, bead in enumerate(beads, start=1)
    )
    statuses = [bead.status for bead in beads]
    metrics = DashboardMetrics(
        total=len(beads),
        completed=statuses.count(BeadsStatus.CLOSED.value),
        in_progress=statuses.count(BeadsStatus.IN_PROGRESS.value),
        blocked=statuses.count(BeadsStatus.BLOCKED.value),
        open=statuses.count(BeadsStatus.OPEN.value),
    )
    return IssueState(diagram=diagram, metrics=metrics, issues=issues, root_id=tree.issue.id)


@register_backend("liveweb")
class LiveStateBackend:
    """
    Read-only backend serving the dashboard's in-memory snapshots.

    Every write operation raises NotSupportedError.

    Example:
        >>> backend = LiveStateBackend(broadcaster=Broadcaster())
        >>> backend.update_state("front-e1", snapshot)
        >>> backend.get_state("front-e1") is snapshot
        True
    """

    name = "liveweb"
    supports_projects = False
    supports_sub_issues = False
    supports_custom_fields = False

    def __init__(self, broadcaster: Broadcaster | None = None, **_: object) -> None:
        self.broadcaster = broadcaster
        self._states: dict[str, IssueState] = {}
        self._lock = threading.Lock()

    def set_broadcaster(self, broadcaster: Broadcaster) -> None:
        self.broadcaster = broadcaster

    def update_state(self, issue_id: str, state: IssueState) -> None:
        """Replace the snapshot for ``issue_id`` and broadcast it."""
        with self._lock:
            self._states[issue_id] = state
        logger.debug("Updated state for %s (%d issues)", issue_id, len(state.issues))
        if self.broadcaster is not None:
            self.broadcaster.broadcast({"type": "update", "issueId": issue_id, "data": state})

    def get_state(self, issue_id: str) -> IssueState | None:
        return self._states.get(issue_id)

    def clear(self) -> None:
        """Drop every snapshot."""
        with self._lock:
            self._states.clear()

    def authenticate(self) -> None:
        pass

    def is_authenticated(self) -> bool:
        return True

    def get_issue(self, issue_id: str) -> Issue:
        state = self._states.get(issue_id)
        if state is None:
            raise NotFoundError(f"Issue not found: {issue_id}")
        for issue in state.issues:
            if issue.id == issue_id:
                return issue
        raise NotFoundError(f"Issue not found in state: {issue_id}")

    def search_issues(self, query: SearchQuery) -> list[Issue]:
        with self._lock:
            states = list(self._states.values())
        text = query.text.lower() if query.text else None
        results = []
        for state in states:
            for issue in state.issues:
                if query.state and issue.state != query.state:
                    continue
                if text and text not in issue.title.lower():
                    continue
                results.append(issue)
        return results

    def list_comments(self, issue_id: str) -> list[Comment]:
        return []

    def get_linked_issues(self, issue_id: str) -> list[LinkedIssue]:
        return []

    def create_issue(self, params: CreateIssueParams) -> Issue:
        raise NotSupportedError("create_issue")

    def update_issue(self, issue_id: str, updates: IssueUpdate) -> Issue:
        raise NotSupportedError("update_issue")

    def add_comment(self, issue_id: str, body: str) -> Comment:
        raise NotSupportedError("add_comment")

    def link_issues(self, parent_id: str, child_id: str, link_type: LinkType) -> None:
        raise NotSupportedError("link_issues")
