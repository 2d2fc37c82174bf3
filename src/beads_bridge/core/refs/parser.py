"""
Parsing of external references stored in a bead's ``external_ref`` field.

Supported formats:
    - https://github.com/owner/repo/issues/123
    - https://github.com/owner/repo/pull/123
    - github:owner/repo#123
    - https://app.shortcut.com/workspace/story/12345[/slug]
    - shortcut:12345
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field

from beads_bridge.core.errors import SUPPORTED_REF_FORMATS, ValidationError

BackendName = Literal["github", "shortcut"]

_GITHUB_URL_RE = re.compile(
    r"^https?://github\.com/([^/]+)/([^/]+)/(issues|pull)/(\d+)", re.IGNORECASE
)
_GITHUB_SHORTHAND_RE = re.compile(r"^github:([^#]+)#(\d+)$", re.IGNORECASE)
_SHORTCUT_URL_RE = re.compile(
    r"^https?://app\.shortcut\.com/[^/]+/story/(\d+)(?:/[^/]+)?$", re.IGNORECASE
)
_SHORTCUT_SHORTHAND_RE = re.compile(r"^shortcut:(\d+)$", re.IGNORECASE)


class ParsedExternalRef(BaseModel):
    """An external reference split into its backend-specific parts."""

    backend: BackendName
    owner: str | None = None
    repo: str | None = None
    repository: str | None = Field(default=None, description="owner/repo for GitHub")
    issue_number: int | None = None
    story_id: int | None = None
    external_ref: str = Field(..., description="Normalized reference (URL or shorthand)")

    @property
    def issue_id(self) -> str:
        """Identifier understood by the owning backend's ``get_issue``."""
        if self.backend == "github":
            return f"{self.repository}#{self.issue_number}"
        return str(self.story_id)

    @property
    def canonical(self) -> str:
        """The ``github:owner/repo#N`` or ``shortcut:N`` form of this ref."""
        if self.backend == "github":
            return f"github:{self.repository}#{self.issue_number}"
        return f"shortcut:{self.story_id}"


def parse_external_ref(ref: str) -> ParsedExternalRef:
    """
    Parse an external reference and determine its backend.

    Args:
        ref: URL or shorthand reference

    Returns:
        ParsedExternalRef with backend and ids filled in

    Raises:
        ValidationError: If the reference matches none of the supported formats
    """
    if not ref or not isinstance(ref, str):
        raise ValidationError("External reference must be a non-empty string")

    if match := _GITHUB_URL_RE.match(ref):
        owner, repo, kind, number = match.groups()
        issue_number = int(number)
        return ParsedExternalRef(
            backend="github",
            owner=owner,
            repo=repo,
            repository=f"{owner}/{repo}",
            issue_number=issue_number,
            external_ref=f"https://github.com/{owner}/{repo}/{kind.lower()}/{issue_number}",
        )

    if match := _GITHUB_SHORTHAND_RE.match(ref):
        repository, number = match.groups()
        if repository.count("/") != 1:
            raise ValidationError(
                f"Invalid GitHub repository in external reference: {ref} (expected owner/repo)"
            )
        owner, repo = repository.split("/")
        issue_number = int(number)
        return ParsedExternalRef(
            backend="github",
            owner=owner,
            repo=repo,
            repository=repository,
            issue_number=issue_number,
            external_ref=f"https://github.com/{owner}/{repo}/issues/{issue_number}",
        )

    if match := _SHORTCUT_URL_RE.match(ref):
        return ParsedExternalRef(
            backend="shortcut", story_id=int(match.group(1)), external_ref=ref
        )

    if match := _SHORTCUT_SHORTHAND_RE.match(ref):
        return ParsedExternalRef(
            backend="shortcut", story_id=int(match.group(1)), external_ref=ref
        )

    raise ValidationError(
        f"Invalid external reference format: {ref}. "
        f"Supported formats: {', '.join(SUPPORTED_REF_FORMATS)}"
    )


def detect_backend_from_ref(ref: str | None) -> BackendName | None:
    """
    Guess the backend of a reference without fully parsing it.

    Returns:
        "github", "shortcut", or None when neither pattern applies
    """
    if not ref:
        return None
    lower = ref.lower()
    if "github.com" in lower or lower.startswith("github:"):
        return "github"
    if "shortcut.com" in lower or lower.startswith("shortcut:"):
        return "shortcut"
    return None


def is_valid_external_ref_format(ref: str) -> bool:
    """Return True if ``ref`` parses successfully."""
    try:
        parse_external_ref(ref)
    except ValidationError:
        return False
    return True
