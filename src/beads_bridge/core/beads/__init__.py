"""
Local beads tracker: models and the ``bd`` CLI client.
"""

from .client import BeadsClient, BeadsCommandError, BeadsNotAvailableError
from .models import (
    BeadsDependency,
    BeadsIssue,
    BeadsIssueType,
    BeadsStatus,
    DependencyTreeNode,
    EpicStatus,
    IssueSummary,
    percent_complete,
)

__all__ = [
    "BeadsClient",
    "BeadsCommandError",
    "BeadsDependency",
    "BeadsIssue",
    "BeadsIssueType",
    "BeadsNotAvailableError",
    "BeadsStatus",
    "DependencyTreeNode",
    "EpicStatus",
    "IssueSummary",
    "percent_complete",
]
