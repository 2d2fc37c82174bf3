"""
Data models shared by all project-management backends.

Backends translate their native payloads into these Pydantic models so the
orchestration layer never has to care which system it is talking to.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class IssueStatus(str, Enum):
    """Open/closed state of an external issue."""

    OPEN = "open"
    CLOSED = "closed"


class LinkType(str, Enum):
    """Relationship created by ``link_issues``."""

    PARENT_CHILD = "parent-child"
    BLOCKS = "blocks"
    RELATED = "related"


class User(BaseModel):
    """Minimal user identity."""

    id: str = ""
    login: str = ""
    name: str | None = None


class Issue(BaseModel):
    """An issue or story as seen through a backend."""

    id: str = Field(..., description="Backend-specific identifier")
    number: int = Field(default=0, description="Human-readable number")
    title: str = Field(default="")
    body: str = Field(default="", description="Description (markdown)")
    state: str = Field(default=IssueStatus.OPEN.value)
    url: str = Field(default="")
    labels: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Backend-specific extras (parent id, status...)"
    )


class Comment(BaseModel):
    """A comment on an issue."""

    id: str
    body: str = ""
    author: User = Field(default_factory=User)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    url: str | None = None


class LinkedIssue(BaseModel):
    """An issue related to another one, with the relation kind."""

    issue: Issue
    link_type: str = Field(
        ..., description="parent, child, blocks, blocked-by or relates-to"
    )


class SearchQuery(BaseModel):
    """Search filters. All fields are optional and combined with AND."""

    state: str | None = None
    text: str | None = None
    labels: list[str] = Field(default_factory=list)
    repository: str | None = None


class CreateIssueParams(BaseModel):
    """Parameters for ``create_issue``."""

    title: str
    body: str = ""
    repository: str | None = None
    labels: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)


class IssueUpdate(BaseModel):
    """Partial update for ``update_issue``. ``None`` means unchanged."""

    title: str | None = None
    body: str | None = None
    state: str | None = None
    labels: list[str] | None = None
    assignees: list[str] | None = None

    def as_payload(self) -> dict[str, Any]:
        """Return only the fields that were set."""
        return self.model_dump(exclude_none=True)
