"""
Pydantic models for beads issues and epic progress rollups.
"""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class BeadsStatus(str, Enum):
    """Status of a bead."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    CLOSED = "closed"


class BeadsIssueType(str, Enum):
    """Type of a bead."""

    TASK = "task"
    EPIC = "epic"
    BUG = "bug"
    FEATURE = "feature"
    CHORE = "chore"


class BeadsDependency(BaseModel):
    """A dependency edge as reported by ``bd show --json``."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str = ""
    status: str = BeadsStatus.OPEN.value
    dependency_type: str = Field(
        default="blocks", description="blocks, related, parent-child or discovered-from"
    )


class BeadsIssue(BaseModel):
    """
    A bead as returned by the ``bd`` CLI.

    Unknown fields are ignored so newer bd versions keep working.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str = ""
    description: str = ""
    status: str = BeadsStatus.OPEN.value
    issue_type: str = BeadsIssueType.TASK.value
    priority: int = 2
    external_ref: str | None = None
    assignee: str | None = None
    labels: list[str] = Field(default_factory=list)
    parent_id: str | None = None
    dependencies: list[BeadsDependency] = Field(default_factory=list)
    dependents: list[BeadsDependency] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None
    closed_at: str | None = None

    @property
    def is_epic(self) -> bool:
        return self.issue_type == BeadsIssueType.EPIC.value

    def open_blockers(self) -> list[BeadsDependency]:
        """Blocking dependencies that are not closed yet."""
        return [
            d
            for d in self.dependencies
            if d.dependency_type == "blocks" and d.status != BeadsStatus.CLOSED.value
        ]

    def is_discovered(self) -> bool:
        """True when the bead was discovered while working on another one."""
        return any(d.dependency_type == "discovered-from" for d in self.dependencies)


class IssueSummary(BaseModel):
    """Short description of a bead used in blocker/discovered lists."""

    id: str
    title: str = ""
    status: str = BeadsStatus.OPEN.value
    blocked_by: list[str] = Field(default_factory=list)

    @classmethod
    def from_issue(cls, issue: BeadsIssue) -> IssueSummary:
        return cls(
            id=issue.id,
            title=issue.title,
            status=issue.status,
            blocked_by=[d.id for d in issue.open_blockers()],
        )


def percent_complete(completed: int, total: int) -> int:
    """
    Percentage of completed work, rounded half up.

    Defined as 0 when there is no work at all.

    Example:
        >>> percent_complete(1, 3)
        33
        >>> percent_complete(0, 0)
        0
    """
    if total <= 0:
        return 0
    return int(math.floor(completed / total * 100 + 0.5))


class EpicStatus(BaseModel):
    """
    Recursive progress rollup for one epic, or an aggregate of several.

    ``percent_complete`` is always derived from the counters.
    """

    total: int = 0
    completed: int = 0
    in_progress: int = 0
    blocked: int = 0
    not_started: int = 0
    blockers: list[IssueSummary] = Field(default_factory=list)
    discovered: list[IssueSummary] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def percent_complete(self) -> int:
        return percent_complete(self.completed, self.total)

    @classmethod
    def empty(cls) -> EpicStatus:
        return cls()

    @classmethod
    def aggregate(cls, statuses: list[EpicStatus]) -> EpicStatus:
        """
        Sum counters across statuses.

        Blocker and discovered lists are concatenated in order without
        deduplication. If two repositories share an underlying issue it is
        counted twice.
        """
        result = cls()
        for status in statuses:
            result.total += status.total
            result.completed += status.completed
            result.in_progress += status.in_progress
            result.blocked += status.blocked
            result.not_started += status.not_started
            result.blockers.extend(status.blockers)
            result.discovered.extend(status.discovered)
        return result


class DependencyTreeNode(BaseModel):
    """A node in an epic's descendant tree."""

    issue: BeadsIssue
    children: list[DependencyTreeNode] = Field(default_factory=list)
    depth: int = 0

    def flatten(self) -> list[BeadsIssue]:
        """All descendants in depth-first order, excluding this node."""
        result: list[BeadsIssue] = []
        for child in self.children:
            result.append(child.issue)
            result.extend(child.flatten())
        return result
