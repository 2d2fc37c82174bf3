"""
Shortcut backend using the Shortcut REST API (v3) over httpx.

Issue ids are story ids as strings. The API token comes from the shared
credential cache and is sent in the ``Shortcut-Token`` header.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from beads_bridge.core.auth.credentials import CredentialCache
from beads_bridge.core.errors import (
    AuthError,
    BackendError,
    NotFoundError,
    NotSupportedError,
    ValidationError,
)

from .backend import register_backend
from .models import (
    Comment,
    CreateIssueParams,
    Issue,
    IssueUpdate,
    LinkedIssue,
    LinkType,
    SearchQuery,
    User,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.app.shortcut.com"

_LINK_VERBS = {
    LinkType.BLOCKS: "blocks",
    LinkType.RELATED: "relates to",
}


def _story_to_issue(story: dict[str, Any]) -> Issue:
    story_id = int(story.get("id", 0))
    return Issue(
        id=str(story_id),
        number=story_id,
        title=story.get("name") or "",
        body=story.get("description") or "",
        state="closed" if story.get("completed") else "open",
        url=story.get("app_url") or "",
        labels=[label.get("name", "") for label in story.get("labels", [])],
        created_at=story.get("created_at"),
        updated_at=story.get("updated_at"),
        metadata={
            "workflow_state_id": story.get("workflow_state_id"),
            "story_type": story.get("story_type"),
        },
    )


def _comment_from_api(data: dict[str, Any]) -> Comment:
    return Comment(
        id=str(data.get("id", "")),
        body=data.get("text") or "",
        author=User(id=str(data.get("author_id") or "")),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
        url=data.get("app_url"),
    )


def _story_id(issue_id: str) -> int:
    try:
        return int(issue_id)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid Shortcut story id: {issue_id!r}") from None


@register_backend("shortcut")
class ShortcutBackend:
    """
    Backend for Shortcut stories.

    Example:
        >>> backend = ShortcutBackend(credentials=cache)
        >>> backend.authenticate()
        >>> story = backend.get_issue("12345")
    """

    name = "shortcut"
    supports_projects = False
    supports_sub_issues = False
    supports_custom_fields = False

    def __init__(
        self,
        credentials: CredentialCache | None = None,
        client: httpx.Client | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        self.credentials = credentials
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._authenticated = False

    def _headers(self) -> dict[str, str]:
        if self.credentials is None:
            raise AuthError("No credential cache configured for Shortcut")
        token = self.credentials.require("shortcut").token.get_secret_value()
        return {"Shortcut-Token": token, "Content-Type": "application/json"}

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        try:
            response = self._client.request(
                method, f"/api/v3{path}", json=payload, headers=self._headers()
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code == 404:
                raise NotFoundError(f"Shortcut resource not found: {path}") from e
            if status_code in (401, 403):
                raise AuthError(f"Shortcut rejected credentials (HTTP {status_code})") from e
            raise BackendError(f"HTTP {status_code}: {e}", status_code=status_code) from e
        except httpx.RequestError as e:
            raise BackendError(f"Network error: {e}") from e

        if not response.content:
            return None
        return response.json()

    def authenticate(self) -> None:
        self._request("GET", "/member")
        self._authenticated = True

    def is_authenticated(self) -> bool:
        return self._authenticated

    def _get_story(self, issue_id: str) -> dict[str, Any]:
        story_id = _story_id(issue_id)
        try:
            return self._request("GET", f"/stories/{story_id}")
        except NotFoundError as e:
            raise NotFoundError(f"Story not found: {issue_id}") from e

    def get_issue(self, issue_id: str) -> Issue:
        return _story_to_issue(self._get_story(issue_id))

    def search_issues(self, query: SearchQuery) -> list[Issue]:
        terms = []
        if query.text:
            terms.append(query.text)
        if query.state == "open":
            terms.append("!is:done")
        elif query.state == "closed":
            terms.append("is:done")
        for label in query.labels:
            terms.append(f'label:"{label}"')
        path = "/search/stories?" + str(httpx.QueryParams({"query": " ".join(terms) or "*"}))
        data = self._request("GET", path) or {}
        return [_story_to_issue(story) for story in data.get("data", [])]

    def list_comments(self, issue_id: str) -> list[Comment]:
        story = self._get_story(issue_id)
        return [_comment_from_api(c) for c in story.get("comments", []) if not c.get("deleted")]

    def get_linked_issues(self, issue_id: str) -> list[LinkedIssue]:
        story = self._get_story(issue_id)
        linked: list[LinkedIssue] = []
        for link in story.get("story_links", []):
            is_subject = link.get("type") == "subject"
            other_id = link.get("object_id") if is_subject else link.get("subject_id")
            if link.get("verb") == "blocks":
                relation = "blocks" if is_subject else "blocked-by"
            else:
                relation = "relates-to"
            linked.append(LinkedIssue(issue=self.get_issue(str(other_id)), link_type=relation))
        return linked

    def create_issue(self, params: CreateIssueParams) -> Issue:
        data = self._request(
            "POST", "/stories", {"name": params.title, "description": params.body}
        )
        return _story_to_issue(data)

    def update_issue(self, issue_id: str, updates: IssueUpdate) -> Issue:
        if updates.state is not None:
            # Story state is a workflow state id, not open/closed.
            raise NotSupportedError("update_issue(state)")
        payload: dict[str, Any] = {}
        if updates.title is not None:
            payload["name"] = updates.title
        if updates.body is not None:
            payload["description"] = updates.body
        if updates.labels is not None:
            payload["labels"] = [{"name": name} for name in updates.labels]
        data = self._request("PUT", f"/stories/{_story_id(issue_id)}", payload)
        return _story_to_issue(data)

    def add_comment(self, issue_id: str, body: str) -> Comment:
        data = self._request("POST", f"/stories/{_story_id(issue_id)}/comments", {"text": body})
        return _comment_from_api(data)

    def update_comment(self, issue_id: str, comment_id: str, body: str) -> Comment:
        """Edit an existing story comment in place."""
        data = self._request(
            "PUT", f"/stories/{_story_id(issue_id)}/comments/{comment_id}", {"text": body}
        )
        return _comment_from_api(data)

    def link_issues(self, parent_id: str, child_id: str, link_type: LinkType) -> None:
        verb = _LINK_VERBS.get(link_type)
        if verb is None:
            raise NotSupportedError(f"link_issues({link_type.value})")
        self._request(
            "POST",
            "/story-links",
            {"subject_id": _story_id(parent_id), "object_id": _story_id(child_id), "verb": verb},
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()
