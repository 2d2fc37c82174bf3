"""
Project-management backends.

This module provides the ProjectBackend protocol, the backend registry and
the shared issue models. Importing it registers the GitHub and Shortcut
backends; the read-only "liveweb" backend registers with the dashboard.
"""

from .backend import (
    ProjectBackend,
    get_backend,
    is_backend_available,
    list_backends,
    register_backend,
)
from .models import (
    Comment,
    CreateIssueParams,
    Issue,
    IssueStatus,
    IssueUpdate,
    LinkedIssue,
    LinkType,
    SearchQuery,
    User,
)

# Import backend implementations to trigger registration
from . import github, shortcut  # noqa: F401, E402

__all__ = [
    # Models
    "Comment",
    "CreateIssueParams",
    "Issue",
    "IssueStatus",
    "IssueUpdate",
    "LinkType",
    "LinkedIssue",
    "SearchQuery",
    "User",
    # Backend protocol and registry
    "ProjectBackend",
    "get_backend",
    "is_backend_available",
    "list_backends",
    "register_backend",
]
