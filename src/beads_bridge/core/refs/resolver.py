"""
Resolve an external reference to the beads epics that track it.

An external issue may be broken down into epics living in several local
repositories (for example a frontend and a backend epic that both carry
``external_ref = "github:org/repo#123"``). The resolver finds all of them
and aggregates their progress.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pydantic import BaseModel, Field

from beads_bridge.core.beads.models import BeadsIssue, BeadsIssueType, EpicStatus
from beads_bridge.core.errors import ValidationError

logger = logging.getLogger(__name__)


class LocalTracker(Protocol):
    """The subset of BeadsClient the resolver needs."""

    def get_all_issues(self) -> dict[str, list[BeadsIssue]]: ...

    def get_epic_status(self, repository: str | None, epic_id: str) -> EpicStatus: ...


class EpicLink(BaseModel):
    """An epic in a specific local repository."""

    repository: str
    epic_id: str


class ResolutionResult(BaseModel):
    """Outcome of resolving one external reference."""

    external_ref: str
    epics: list[EpicLink] = Field(default_factory=list)
    metrics: EpicStatus = Field(default_factory=EpicStatus)

    @property
    def primary_epic(self) -> EpicLink | None:
        return self.epics[0] if self.epics else None


def build_external_ref(
    repository: str | None = None,
    issue_number: int | None = None,
    external_ref: str | None = None,
) -> str:
    """
    Compute the canonical external ref.

    An explicit ``external_ref`` wins and is returned verbatim. Otherwise the
    ref is inferred: a repository named "shortcut" (any case) or prefixed
    with "shortcut:" maps to ``shortcut:{n}``, anything else to
    ``github:{repository}#{n}``.

    Raises:
        ValidationError: If neither an explicit ref nor a repository and
            integer issue number are given
    """
    if external_ref:
        return external_ref

    if not repository or not isinstance(issue_number, int) or isinstance(issue_number, bool):
        raise ValidationError(
            "repository and issue_number are required to resolve external references"
        )

    if repository.lower() == "shortcut" or repository.startswith("shortcut:"):
        return f"shortcut:{issue_number}"
    return f"github:{repository}#{issue_number}"


class ExternalRefResolver:
    """
    Find epics whose ``external_ref`` matches and aggregate their status.

    Example:
        >>> resolver = ExternalRefResolver(beads_client)
        >>> result = resolver.resolve(repository="org/repo", issue_number=123)
        >>> result.metrics.percent_complete
        40
    """

    def __init__(self, beads: LocalTracker) -> None:
        self.beads = beads

    def resolve(
        self,
        repository: str | None = None,
        issue_number: int | None = None,
        external_ref: str | None = None,
    ) -> ResolutionResult:
        """
        Resolve a reference to its epics and aggregated metrics.

        Finding no epic is not an error: the result carries an empty epic
        list and all-zero metrics.
        """
        target = build_external_ref(repository, issue_number, external_ref)
        epics = self.find_epics(target)
        if not epics:
            logger.info("No epics reference %s", target)
            return ResolutionResult(external_ref=target)

        statuses = [self.beads.get_epic_status(e.repository, e.epic_id) for e in epics]
        return ResolutionResult(
            external_ref=target, epics=epics, metrics=EpicStatus.aggregate(statuses)
        )

    def find_epics(self, external_ref: str) -> list[EpicLink]:
        """Scan every repository for epics whose ref equals ``external_ref`` exactly."""
        matches: list[EpicLink] = []
        for repository, issues in self.beads.get_all_issues().items():
            for issue in issues:
                if (
                    issue.issue_type == BeadsIssueType.EPIC.value
                    and issue.external_ref == external_ref
                ):
                    matches.append(EpicLink(repository=repository, epic_id=issue.id))
        logger.debug("Resolved %s to %d epic(s)", external_ref, len(matches))
        return matches
