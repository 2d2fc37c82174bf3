"""
Epic decomposer.

Turns an external issue into one beads epic per affected repository, each
with a child task per open checkbox item, and reports back on the issue.
"""

from __future__ import annotations

import logging
from typing import Protocol

from beads_bridge.core.backends.backend import ProjectBackend
from beads_bridge.core.beads.models import BeadsIssue
from beads_bridge.core.errors import BridgeError, ConfigurationError, ValidationError
from beads_bridge.core.refs.resolver import build_external_ref

from .models import DecompositionResult, EpicCreationResult, ParsedIssue
from .parser import IssueParser

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 500


class WritableTracker(Protocol):
    """The slice of BeadsClient the decomposer needs."""

    def get_all_issues(self) -> dict[str, list[BeadsIssue]]: ...

    def create_issue(
        self,
        repository: str | None,
        title: str,
        *,
        description: str = "",
        issue_type: str = "task",
        priority: int = 2,
        external_ref: str | None = None,
        labels: list[str] | None = None,
    ) -> BeadsIssue: ...

    def add_dependency(
        self,
        repository: str | None,
        issue_id: str,
        depends_on_id: str,
        dep_type: str = "blocks",
    ) -> None: ...


def build_epic_description(parsed: ParsedIssue) -> str:
    """Link back to the issue, followed by its (possibly truncated) body."""
    link = parsed.url or parsed.external_ref
    if len(parsed.body) < MAX_DESCRIPTION_LENGTH:
        return f"Tracked in: {link}\n\n{parsed.body}"
    truncated = parsed.body[: MAX_DESCRIPTION_LENGTH - 3]
    return f"Tracked in: {link}\n\n{truncated}...\n\n_See full description in the linked issue_"


def render_confirmation_comment(results: list[EpicCreationResult]) -> str:
    lines = [
        "## Beads Epics",
        "",
        "This issue has been decomposed into beads epics for implementation tracking:",
        "",
    ]
    for result in results:
        if not result.success:
            lines += [f"### ⚠️ {result.repository}", f"- **Error:** {result.error}", ""]
            continue
        lines.append(f"### {result.repository}")
        lines.append(f"- **Epic:** `{result.epic_id}`")
        if result.existing:
            lines.append("- **Tasks:** already decomposed, nothing created")
        else:
            lines.append(f"- **Tasks:** {len(result.child_issue_ids)} child issues created")
        if result.child_issue_ids:
            lines.append("- **Child Issues:**")
            lines += [f"  - `{child}`" for child in result.child_issue_ids]
        lines.append("")

    succeeded = [r for r in results if r.success]
    total = sum(len(r.child_issue_ids) for r in succeeded)
    lines += [
        f"**Total:** {len(succeeded)} epics, {total} tasks",
        "",
        "---",
        "_Automated by beads-bridge_",
    ]
    return "\n".join(lines)


class EpicDecomposer:
    """
    Create beads epics and tasks from an external issue's task list.

    Repositories that already hold an epic referencing the issue are left
    alone, so running the decomposer twice creates nothing new.

    Example:
        >>> decomposer = EpicDecomposer(github, beads)
        >>> result = decomposer.decompose("org/repo", 123)
        >>> result.total_tasks
        4
    """

    def __init__(self, backend: ProjectBackend, beads: WritableTracker) -> None:
        self.backend = backend
        self.beads = beads

    def _issue_id(self, repository: str, issue_number: int) -> str:
        if self.backend.name == "github":
            return f"{repository}#{issue_number}"
        return str(issue_number)

    def decompose(
        self,
        repository: str | None,
        issue_number: int | None,
        *,
        post_comment: bool = True,
        priority: int = 2,
        labels: list[str] | None = None,
    ) -> DecompositionResult:
        """
        Decompose ``repository`` / ``issue_number`` into beads epics.

        Bridge and backend failures are returned as an unsuccessful result.
        Configuration errors propagate.
        """
        issue_id = (
            self._issue_id(repository, issue_number)
            if repository and issue_number is not None
            else str(issue_number)
        )
        try:
            if not 0 <= priority <= 4:
                raise ValidationError(f"priority must be between 0 and 4, got {priority}")
            external_ref = build_external_ref(repository, issue_number)
            issue = self.backend.get_issue(issue_id)

            all_issues = self.beads.get_all_issues()
            parsed = IssueParser(all_issues).parse(issue, external_ref)
            logger.info(
                "Decomposing %s: %d tasks across %d repositories",
                external_ref,
                len(parsed.tasks),
                len(parsed.repositories),
            )

            results = []
            for ref in parsed.repositories:
                existing = next(
                    (
                        i
                        for i in all_issues.get(ref.name, [])
                        if i.is_epic and i.external_ref == external_ref
                    ),
                    None,
                )
                if existing is not None:
                    logger.info(
                        "%s already has epic %s for %s", ref.name, existing.id, external_ref
                    )
                    results.append(
                        EpicCreationResult(
                            repository=ref.name, success=True, epic_id=existing.id, existing=True
                        )
                    )
                    continue
                results.append(self._create_epic(parsed, ref.name, ref.tasks, priority, labels))

            comment = render_confirmation_comment(results)
            if post_comment and any(r.success and not r.existing for r in results):
                self.backend.add_comment(issue_id, comment)
        except ConfigurationError:
            raise
        except BridgeError as e:
            logger.warning("Decomposition of %s failed: %s", issue_id, e)
            return DecompositionResult(
                success=False, issue_id=issue_id, error=e.message, error_code=e.code
            )

        failed = [r for r in results if not r.success]
        return DecompositionResult(
            success=not failed,
            issue_id=issue_id,
            external_ref=external_ref,
            epics=results,
            confirmation_comment=comment,
            error=failed[0].error if failed else None,
            error_code="SYNC_ERROR" if failed else None,
        )

    def _create_epic(
        self,
        parsed: ParsedIssue,
        repository: str,
        tasks: list[str],
        priority: int,
        labels: list[str] | None,
    ) -> EpicCreationResult:
        # One repository failing must not stop the others
        try:
            epic = self.beads.create_issue(
                repository,
                parsed.title,
                description=build_epic_description(parsed),
                issue_type="epic",
                priority=priority,
                external_ref=parsed.external_ref,
                labels=labels,
            )
            child_ids = []
            for task in tasks:
                child = self.beads.create_issue(
                    repository,
                    task,
                    description=f"Part of epic: {epic.id}",
                    priority=priority,
                )
                self.beads.add_dependency(repository, child.id, epic.id, "parent-child")
                child_ids.append(child.id)
        except ConfigurationError:
            raise
        except BridgeError as e:
            logger.error("Failed to create epic in %s: %s", repository, e)
            return EpicCreationResult(repository=repository, success=False, error=e.message)

        return EpicCreationResult(
            repository=repository, success=True, epic_id=epic.id, child_issue_ids=child_ids
        )
