"""
Sync report models.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SyncStatus(str, Enum):
    """Outcome for one bead."""

    SYNCED = "synced"
    SKIPPED = "skipped"
    ERROR = "error"


class SyncDetail(BaseModel):
    """Per-bead outcome line in a SyncReport."""

    id: str
    status: SyncStatus
    message: str | None = None


class SyncReport(BaseModel):
    """
    Summary of a sync run.

    ``errors > 0`` is a hard failure for the caller (the CLI exits 1).
    """

    total: int = 0
    synced: int = 0
    skipped: int = 0
    errors: int = 0
    details: list[SyncDetail] = Field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.errors > 0

    def record(self, bead_id: str, status: SyncStatus, message: str | None = None) -> None:
        """Append a detail line and bump the matching counter."""
        self.details.append(SyncDetail(id=bead_id, status=status, message=message))
        if status == SyncStatus.SYNCED:
            self.synced += 1
        elif status == SyncStatus.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1

    def merge(self, other: SyncReport) -> None:
        """Fold another report into this one."""
        self.total += other.total
        self.synced += other.synced
        self.skipped += other.skipped
        self.errors += other.errors
        self.details.extend(other.details)
