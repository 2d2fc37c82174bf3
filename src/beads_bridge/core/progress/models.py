"""
Result models returned by the progress orchestration layer.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from beads_bridge.core.errors import BridgeError


class ErrorDetail(BaseModel):
    """Machine-readable error carried in a failed result."""

    code: str
    message: str


class CapabilityResult(BaseModel):
    """
    Structured outcome of an orchestration call.

    Classifiable failures are reported here instead of being raised, so
    callers (CLI, dashboard) can render them uniformly.
    """

    success: bool
    data: dict[str, Any] | None = None
    error: ErrorDetail | None = None

    @classmethod
    def ok(cls, data: dict[str, Any] | None = None) -> CapabilityResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, message: str) -> CapabilityResult:
        return cls(success=False, error=ErrorDetail(code=code, message=message))

    @classmethod
    def from_error(cls, error: BridgeError, code: str | None = None) -> CapabilityResult:
        return cls.fail(code or error.code, error.message)


class CommentAction(BaseModel):
    """What happened to the bridge comment during a sync."""

    action: str = Field(..., description="created, updated or unchanged")
    comment_id: str | None = None


class StorySyncResult(BaseModel):
    """Outcome of syncing one Shortcut story."""

    success: bool
    story_id: int
    story_url: str | None = None
    error: str | None = None
    synced_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
