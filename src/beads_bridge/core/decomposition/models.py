"""
Models for turning an external issue's task list into beads epics.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ParsedTask(BaseModel):
    """One markdown checkbox item from an issue body."""

    description: str
    completed: bool = False
    repository: str | None = Field(
        default=None, description="Configured repository named by a [repo] prefix"
    )
    original_line: str = ""


class RepositoryReference(BaseModel):
    """A repository the issue touches, with the tasks assigned to it."""

    name: str
    tasks: list[str] = Field(default_factory=list)
    explicit: bool = Field(
        default=False, description="Listed under a Repositories heading"
    )


class ParsedIssue(BaseModel):
    """An external issue broken down for decomposition."""

    issue_id: str
    external_ref: str
    title: str
    body: str = ""
    url: str = ""
    tasks: list[ParsedTask] = Field(default_factory=list)
    repositories: list[RepositoryReference] = Field(default_factory=list)

    @property
    def is_multi_repository(self) -> bool:
        return len(self.repositories) > 1


class EpicCreationResult(BaseModel):
    """Outcome of creating (or finding) the epic in one repository."""

    repository: str
    success: bool
    epic_id: str | None = None
    child_issue_ids: list[str] = Field(default_factory=list)
    existing: bool = Field(
        default=False, description="An epic already referenced the issue; nothing was created"
    )
    error: str | None = None


class DecompositionResult(BaseModel):
    """Outcome of decomposing one external issue."""

    success: bool
    issue_id: str
    external_ref: str | None = None
    epics: list[EpicCreationResult] = Field(default_factory=list)
    confirmation_comment: str = ""
    error: str | None = None
    error_code: str | None = None

    @property
    def total_tasks(self) -> int:
        return sum(len(e.child_issue_ids) for e in self.epics if e.success)
