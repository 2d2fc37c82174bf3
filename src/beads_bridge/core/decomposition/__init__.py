"""
Decomposition of external issues into beads epics and tasks.
"""

from .decomposer import EpicDecomposer, render_confirmation_comment
from .models import (
    DecompositionResult,
    EpicCreationResult,
    ParsedIssue,
    ParsedTask,
    RepositoryReference,
)
from .parser import IssueParser, has_tasks

__all__ = [
    "DecompositionResult",
    "EpicCreationResult",
    "EpicDecomposer",
    "IssueParser",
    "ParsedIssue",
    "ParsedTask",
    "RepositoryReference",
    "has_tasks",
    "render_confirmation_comment",
]
