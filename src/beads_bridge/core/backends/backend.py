"""
Project-management backend protocol and registry.

This module defines the ProjectBackend protocol that every external system
adapter implements (GitHub, Shortcut, the read-only dashboard), plus a
name-keyed registry so callers can resolve an adapter from an external ref
prefix without importing it directly.
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from beads_bridge.core.errors import ConfigurationError

from .models import (
    Comment,
    CreateIssueParams,
    Issue,
    IssueUpdate,
    LinkedIssue,
    LinkType,
    SearchQuery,
)


@runtime_checkable
class ProjectBackend(Protocol):
    """
    Protocol for project-management backend implementations.

    Every backend declares its capability flags. Write operations that a
    backend cannot perform must raise NotSupportedError naming the
    operation; they must never silently succeed. This lets orchestrators
    branch on flags and error types instead of on backend identity.

    Read operations raise NotFoundError for missing entities and AuthError
    for credential problems.
    """

    name: str
    supports_projects: bool
    supports_sub_issues: bool
    supports_custom_fields: bool

    def authenticate(self) -> None:
        """
        Authenticate with the external service.

        Raises:
            AuthError: If credentials are missing or rejected
        """
        ...

    def is_authenticated(self) -> bool:
        """Return True once ``authenticate`` has succeeded."""
        ...

    def get_issue(self, issue_id: str) -> Issue:
        """
        Fetch a single issue.

        Raises:
            NotFoundError: If the issue does not exist
        """
        ...

    def search_issues(self, query: SearchQuery) -> list[Issue]:
        """Return issues matching ``query`` (state and/or title text)."""
        ...

    def list_comments(self, issue_id: str) -> list[Comment]:
        """Return comments on an issue, oldest first."""
        ...

    def get_linked_issues(self, issue_id: str) -> list[LinkedIssue]:
        """Return issues related to ``issue_id``."""
        ...

    def create_issue(self, params: CreateIssueParams) -> Issue:
        """Create an issue. Raises NotSupportedError on read-only backends."""
        ...

    def update_issue(self, issue_id: str, updates: IssueUpdate) -> Issue:
        """Update an issue. Raises NotSupportedError on read-only backends."""
        ...

    def add_comment(self, issue_id: str, body: str) -> Comment:
        """Append a comment. Raises NotSupportedError on read-only backends."""
        ...

    def link_issues(self, parent_id: str, child_id: str, link_type: LinkType) -> None:
        """Link two issues. Raises NotSupportedError on read-only backends."""
        ...


# Backend registry
_backends: dict[str, Callable[..., ProjectBackend]] = {}


def register_backend(name: str) -> Callable[[type], type]:
    """
    Decorator to register a backend implementation.

    Usage:
        @register_backend("github")
        class GitHubBackend:
            ...

    Args:
        name: Backend name, matching the external ref prefix

    Returns:
        Decorator function
    """

    def decorator(backend_class: type) -> type:
        _backends[name] = backend_class
        return backend_class

    return decorator


def get_backend(name: str, **kwargs: Any) -> ProjectBackend:
    """
    Instantiate a registered backend by name.

    Args:
        name: Backend name ('github', 'shortcut', 'liveweb')
        **kwargs: Passed through to the backend constructor

    Returns:
        Backend instance

    Raises:
        ConfigurationError: If no backend is registered under ``name``
    """
    factory = _backends.get(name)
    if factory is None:
        raise ConfigurationError(
            f"Backend '{name}' not registered. Available backends: {', '.join(_backends)}"
        )
    return factory(**kwargs)


def list_backends() -> list[str]:
    """List all registered backend names."""
    return list(_backends.keys())


def is_backend_available(name: str) -> bool:
    """Check if a backend is registered."""
    return name in _backends
