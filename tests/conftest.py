"""
Pytest configuration and shared fixtures.

Provides config isolation, bead factories, an in-memory beads tracker and an
in-memory project backend used across the test suite.
"""

import itertools
from typing import Any

import pytest

from beads_bridge.core.backends.models import (
    Comment,
    CreateIssueParams,
    Issue,
    IssueUpdate,
    LinkedIssue,
    LinkType,
    SearchQuery,
)
from beads_bridge.core.beads.models import BeadsIssue, EpicStatus, IssueSummary
from beads_bridge.core.config.loader import clear_cache
from beads_bridge.core.errors import NotFoundError

# ==============================================================================
# Environment Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path, monkeypatch):
    """Keep user config, .env files and tokens on the host out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in (
        "BEADS_BRIDGE_BACKEND",
        "BEADS_BRIDGE_POLL_INTERVAL",
        "BEADS_BRIDGE_LOG_LEVEL",
        "GH_TOKEN",
        "GITHUB_TOKEN",
        "SHORTCUT_API_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Sample Data Fixtures
# ==============================================================================


def make_bead(
    bead_id: str,
    *,
    status: str = "open",
    issue_type: str = "task",
    external_ref: str | None = None,
    title: str | None = None,
    **kwargs: Any,
) -> BeadsIssue:
    """Build a BeadsIssue with sensible defaults."""
    return BeadsIssue(
        id=bead_id,
        title=title or f"Bead {bead_id}",
        status=status,
        issue_type=issue_type,
        external_ref=external_ref,
        **kwargs,
    )


@pytest.fixture
def frontend_status():
    """Rollup for the frontend epic: 2 of 5 done, one blocker."""
    return EpicStatus(
        total=5,
        completed=2,
        in_progress=1,
        blocked=1,
        not_started=1,
        blockers=[
            IssueSummary(id="front-4", title="Wire API", status="blocked", blocked_by=["back-2"])
        ],
    )


# ==============================================================================
# In-memory Collaborators
# ==============================================================================


class FakeTracker:
    """
    In-memory stand-in for BeadsClient.

    ``repositories`` maps repository name to its beads; ``statuses`` maps
    (repository, epic id) to the rollup returned by ``get_epic_status``.
    """

    def __init__(
        self,
        repositories: dict[str, list[BeadsIssue]] | None = None,
        statuses: dict[tuple[str, str], EpicStatus] | None = None,
        diagram: str = 'graph TD\n  front-e1["☐ front-e1: Epic"]',
    ) -> None:
        self.repositories = repositories or {}
        self.statuses = statuses or {}
        self.diagram = diagram
        self.bd_calls: list[list[str]] = []
        self.dependencies: list[tuple[str | None, str, str, str]] = []

    def get_all_issues(self) -> dict[str, list[BeadsIssue]]:
        return {name: list(issues) for name, issues in self.repositories.items()}

    def get_epic_status(self, repository: str | None, epic_id: str) -> EpicStatus:
        return self.statuses.get((repository or "", epic_id), EpicStatus())

    def get_issue(self, issue_id: str, repository: str | None = None) -> BeadsIssue:
        for name, issues in self.repositories.items():
            if repository and name != repository:
                continue
            for issue in issues:
                if issue.id == issue_id:
                    return issue
        raise NotFoundError(f"Bead {issue_id} not found")

    def run_bd(self, args: list[str], repository: str | None = None) -> str:
        self.bd_calls.append(args)
        return self.diagram

    def create_issue(
        self, repository: str | None, title: str, *, issue_type: str = "task", **kwargs: Any
    ) -> BeadsIssue:
        issues = self.repositories.setdefault(repository or "", [])
        kwargs = {key: value for key, value in kwargs.items() if value is not None}
        bead = make_bead(
            f"{repository}-{len(issues) + 1}", title=title, issue_type=issue_type, **kwargs
        )
        issues.append(bead)
        return bead

    def add_dependency(
        self, repository: str | None, issue_id: str, depends_on_id: str, dep_type: str = "blocks"
    ) -> None:
        self.dependencies.append((repository, issue_id, depends_on_id, dep_type))


class FakeBackend:
    """In-memory ProjectBackend that records every write."""

    supports_projects = False
    supports_sub_issues = False
    supports_custom_fields = False

    def __init__(self, name: str = "github", editable_comments: bool = True) -> None:
        self.name = name
        self.issues: dict[str, Issue] = {}
        self.comments: dict[str, list[Comment]] = {}
        self.writes: list[tuple[str, ...]] = []
        self.auth_calls = 0
        self._ids = itertools.count(1)
        if editable_comments:
            self.update_comment = self._update_comment

    def add_issue(self, issue_id: str, body: str = "", **kwargs: Any) -> Issue:
        issue = Issue(id=issue_id, body=body, **kwargs)
        self.issues[issue_id] = issue
        return issue

    def authenticate(self) -> None:
        self.auth_calls += 1

    def is_authenticated(self) -> bool:
        return self.auth_calls > 0

    def get_issue(self, issue_id: str) -> Issue:
        if issue_id not in self.issues:
            raise NotFoundError(f"Issue not found: {issue_id}")
        return self.issues[issue_id]

    def search_issues(self, query: SearchQuery) -> list[Issue]:
        return list(self.issues.values())

    def list_comments(self, issue_id: str) -> list[Comment]:
        return list(self.comments.get(issue_id, []))

    def get_linked_issues(self, issue_id: str) -> list[LinkedIssue]:
        return []

    def create_issue(self, params: CreateIssueParams) -> Issue:
        self.writes.append(("create_issue", params.title))
        return self.add_issue(str(next(self._ids)), params.body, title=params.title)

    def update_issue(self, issue_id: str, updates: IssueUpdate) -> Issue:
        self.writes.append(("update_issue", issue_id))
        issue = self.get_issue(issue_id).model_copy(update=updates.as_payload())
        self.issues[issue_id] = issue
        return issue

    def add_comment(self, issue_id: str, body: str) -> Comment:
        self.writes.append(("add_comment", issue_id))
        comment = Comment(id=str(next(self._ids)), body=body)
        self.comments.setdefault(issue_id, []).append(comment)
        return comment

    def _update_comment(self, issue_id: str, comment_id: str, body: str) -> Comment:
        self.writes.append(("update_comment", issue_id, comment_id))
        comments = self.comments[issue_id]
        for index, comment in enumerate(comments):
            if comment.id == comment_id:
                comments[index] = comment.model_copy(update={"body": body})
                return comments[index]
        raise NotFoundError(f"Comment not found: {comment_id}")

    def link_issues(self, parent_id: str, child_id: str, link_type: LinkType) -> None:
        self.writes.append(("link_issues", parent_id, child_id))


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def two_repo_tracker(frontend_status):
    """
    Two repositories: "frontend" has an epic linked to github:org/repo#123,
    "backend" has nothing linked.
    """
    return FakeTracker(
        repositories={
            "frontend": [
                make_bead("front-e1", issue_type="epic", external_ref="github:org/repo#123"),
                make_bead("front-1", external_ref="github:org/repo#123"),
            ],
            "backend": [
                make_bead("back-e1", issue_type="epic", external_ref="github:org/other#9"),
            ],
        },
        statuses={("frontend", "front-e1"): frontend_status},
    )
