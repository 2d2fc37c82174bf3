"""
GitHub backend implemented on top of the GitHub CLI.

All calls go through ``gh api`` so authentication, enterprise hosts and
proxies are whatever the user's ``gh`` is configured for. When the
credential cache holds a GitHub token it is passed to ``gh`` as GH_TOKEN.

Issue ids have the form ``owner/repo#123``.
"""

from __future__ import annotations

import json
import logging
import os
import re
import subprocess
from typing import Any

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

_ISSUE_ID_RE = re.compile(r"^([^/#\s]+)/([^/#\s]+)#(\d+)$")


def parse_issue_id(issue_id: str) -> tuple[str, str, int]:
    """
    Split ``owner/repo#123`` into its parts.

    Raises:
        ValidationError: If the id is not in that form
    """
    match = _ISSUE_ID_RE.match(issue_id or "")
    if not match:
        raise ValidationError(
            f"Invalid GitHub issue id: {issue_id!r} (expected owner/repo#123)"
        )
    return match.group(1), match.group(2), int(match.group(3))


def _issue_from_api(owner: str, repo: str, data: dict[str, Any]) -> Issue:
    labels = [
        label["name"] if isinstance(label, dict) else str(label)
        for label in data.get("labels", [])
        if isinstance(label, (dict, str))
    ]
    assignees = [
        a["login"] for a in data.get("assignees", []) if isinstance(a, dict) and "login" in a
    ]
    number = int(data.get("number", 0))
    return Issue(
        id=f"{owner}/{repo}#{number}",
        number=number,
        title=data.get("title") or "",
        body=data.get("body") or "",
        state=data.get("state") or "open",
        url=data.get("html_url") or "",
        labels=labels,
        assignees=assignees,
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
        metadata={"database_id": data.get("id"), "repository": f"{owner}/{repo}"},
    )


def _comment_from_api(data: dict[str, Any]) -> Comment:
    user = data.get("user") or {}
    return Comment(
        id=str(data.get("id", "")),
        body=data.get("body") or "",
        author=User(id=str(user.get("id", "")), login=user.get("login", "")),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
        url=data.get("html_url"),
    )


@register_backend("github")
class GitHubBackend:
    """
    Backend for GitHub issues via ``gh api``.

    Example:
        >>> backend = GitHubBackend(credentials=cache)
        >>> backend.authenticate()
        >>> issue = backend.get_issue("org/repo#123")
    """

    name = "github"
    supports_projects = True
    supports_sub_issues = True
    supports_custom_fields = False

    def __init__(self, credentials: CredentialCache | None = None, timeout: float = 60) -> None:
        self.credentials = credentials
        self.timeout = timeout
        self._authenticated = False

    def _env(self) -> dict[str, str] | None:
        if self.credentials is None:
            return None
        record = self.credentials.get("github")
        if record is None:
            return None
        env = dict(os.environ)
        env["GH_TOKEN"] = record.token.get_secret_value()
        return env

    def _run_gh(self, args: list[str], input_data: str | None = None) -> str:
        cmd = ["gh"] + args
        logger.debug("Running gh command: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
                input=input_data,
                env=self._env(),
            )
        except subprocess.TimeoutExpired as e:
            raise BackendError(f"gh command timed out: {' '.join(cmd)}") from e
        except (OSError, FileNotFoundError) as e:
            raise BackendError(f"Failed to run gh command: {e}") from e

        if result.returncode != 0:
            error_msg = (result.stderr or "").strip() or "Unknown error"
            if "404" in error_msg or "Not Found" in error_msg:
                raise NotFoundError(error_msg)
            if "401" in error_msg or "Bad credentials" in error_msg or "auth login" in error_msg:
                raise AuthError(error_msg)
            raise BackendError(f"gh api failed: {error_msg}")
        return result.stdout or ""

    def _api(
        self,
        path: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
    ) -> Any:
        args = ["api", path, "-X", method]
        input_data = None
        if body is not None:
            args.extend(["--input", "-"])
            input_data = json.dumps(body)
        return self._parse_json(self._run_gh(args, input_data=input_data))

    @staticmethod
    def _parse_json(output: str) -> Any:
        if not output.strip():
            return None
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise BackendError(f"Failed to parse GitHub API response: {e}") from e

    def authenticate(self) -> None:
        try:
            self._run_gh(["auth", "status"])
        except BackendError as e:
            raise AuthError(
                "GitHub CLI (gh) is not authenticated. Run: gh auth login"
            ) from e
        self._authenticated = True

    def is_authenticated(self) -> bool:
        return self._authenticated

    def get_issue(self, issue_id: str) -> Issue:
        owner, repo, number = parse_issue_id(issue_id)
        try:
            data = self._api(f"repos/{owner}/{repo}/issues/{number}")
        except NotFoundError as e:
            raise NotFoundError(f"Issue not found: {issue_id}") from e
        return _issue_from_api(owner, repo, data)

    def search_issues(self, query: SearchQuery) -> list[Issue]:
        terms = ["is:issue"]
        if query.repository:
            terms.append(f"repo:{query.repository}")
        if query.state and query.state != "all":
            terms.append(f"state:{query.state}")
        for label in query.labels:
            terms.append(f'label:"{label}"')
        if query.text:
            terms.append(f"{query.text} in:title")
        output = self._run_gh(
            ["api", "-X", "GET", "search/issues", "-f", f"q={' '.join(terms)}"]
        )
        data = self._parse_json(output) or {}
        issues = []
        for item in data.get("items", []):
            match = re.search(r"repos/([^/]+)/([^/]+)$", item.get("repository_url", ""))
            owner, repo = (match.group(1), match.group(2)) if match else ("", "")
            issues.append(_issue_from_api(owner, repo, item))
        return issues

    def list_comments(self, issue_id: str) -> list[Comment]:
        owner, repo, number = parse_issue_id(issue_id)
        data = self._api(f"repos/{owner}/{repo}/issues/{number}/comments") or []
        return [_comment_from_api(item) for item in data]

    def get_linked_issues(self, issue_id: str) -> list[LinkedIssue]:
        owner, repo, number = parse_issue_id(issue_id)
        data = self._api(f"repos/{owner}/{repo}/issues/{number}/sub_issues") or []
        return [
            LinkedIssue(issue=_issue_from_api(owner, repo, item), link_type="child")
            for item in data
        ]

    def create_issue(self, params: CreateIssueParams) -> Issue:
        if not params.repository or "/" not in params.repository:
            raise ValidationError("repository (owner/repo) is required to create a GitHub issue")
        owner, repo = params.repository.split("/", 1)
        body: dict[str, Any] = {"title": params.title, "body": params.body}
        if params.labels:
            body["labels"] = params.labels
        if params.assignees:
            body["assignees"] = params.assignees
        data = self._api(f"repos/{owner}/{repo}/issues", method="POST", body=body)
        return _issue_from_api(owner, repo, data)

    def update_issue(self, issue_id: str, updates: IssueUpdate) -> Issue:
        owner, repo, number = parse_issue_id(issue_id)
        data = self._api(
            f"repos/{owner}/{repo}/issues/{number}", method="PATCH", body=updates.as_payload()
        )
        return _issue_from_api(owner, repo, data)

    def add_comment(self, issue_id: str, body: str) -> Comment:
        owner, repo, number = parse_issue_id(issue_id)
        data = self._api(
            f"repos/{owner}/{repo}/issues/{number}/comments", method="POST", body={"body": body}
        )
        return _comment_from_api(data)

    def update_comment(self, issue_id: str, comment_id: str, body: str) -> Comment:
        """Edit an existing comment in place."""
        owner, repo, _ = parse_issue_id(issue_id)
        data = self._api(
            f"repos/{owner}/{repo}/issues/comments/{comment_id}",
            method="PATCH",
            body={"body": body},
        )
        return _comment_from_api(data)

    def link_issues(self, parent_id: str, child_id: str, link_type: LinkType) -> None:
        if link_type != LinkType.PARENT_CHILD:
            # GitHub has no native blocks/related links.
            raise NotSupportedError(f"link_issues({link_type.value})")
        owner, repo, number = parse_issue_id(parent_id)
        child = self.get_issue(child_id)
        self._api(
            f"repos/{owner}/{repo}/issues/{number}/sub_issues",
            method="POST",
            body={"sub_issue_id": child.metadata.get("database_id")},
        )
