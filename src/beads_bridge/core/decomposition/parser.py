"""
Parsing of markdown task lists in external issue bodies.

Tasks are checkbox items (``- [ ] ...`` / ``- [x] ...``). A task may be
pinned to a configured repository with a ``[repo]`` or ``(repo)`` prefix.
Affected repositories come from, in order:

1. a ``## Repositories`` / ``## Affected Repositories`` bullet list
2. task prefixes
3. ``@repo`` or backtick mentions, when nothing above matched
4. every configured repository, as a last resort
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from beads_bridge.core.backends.models import Issue

from .models import ParsedIssue, ParsedTask, RepositoryReference

_TASK_RE = re.compile(r"^[\s-]*\[([xX\s])\]\s+(.+)$")
_REPO_PREFIX_RE = re.compile(r"^[\[(]([A-Za-z0-9_-]+)[)\]]\s+(.+)$")
_REPO_SECTION_RE = re.compile(
    r"##\s*(?:Repositories|Affected\s+Repositories)[:\s]*\n((?:[-*]\s+.+\n?)+)",
    re.IGNORECASE,
)
_REPO_BULLET_RE = re.compile(r"[-*]\s+([A-Za-z0-9_-]+)")
_MENTION_RE = re.compile(r"[@`]([A-Za-z0-9_-]+)`?")
_HAS_TASKS_RE = re.compile(r"[\s-]*\[[xX\s]\]")


def has_tasks(body: str) -> bool:
    """True when the body contains at least one checkbox."""
    return bool(_HAS_TASKS_RE.search(body or ""))


class IssueParser:
    """
    Split an external issue into tasks and affected repositories.

    Example:
        >>> parser = IssueParser(["frontend", "backend"])
        >>> parsed = parser.parse(issue, "github:org/repo#123")
        >>> [r.name for r in parsed.repositories]
        ['frontend']
    """

    def __init__(self, repositories: Iterable[str]) -> None:
        self.repositories = list(dict.fromkeys(repositories))

    def parse(self, issue: Issue, external_ref: str) -> ParsedIssue:
        tasks = self.parse_tasks(issue.body)
        return ParsedIssue(
            issue_id=issue.id,
            external_ref=external_ref,
            title=issue.title,
            body=issue.body,
            url=issue.url,
            tasks=tasks,
            repositories=self.parse_repositories(issue.body, tasks),
        )

    def parse_tasks(self, body: str) -> list[ParsedTask]:
        tasks = []
        for line in (body or "").splitlines():
            stripped = line.strip()
            match = _TASK_RE.match(stripped)
            if not match:
                continue
            checkbox, description = match.groups()
            repository = None
            prefix = _REPO_PREFIX_RE.match(description)
            if prefix and prefix.group(1) in self.repositories:
                repository, description = prefix.groups()
            tasks.append(
                ParsedTask(
                    description=description,
                    completed=checkbox.lower() == "x",
                    repository=repository,
                    original_line=stripped,
                )
            )
        return tasks

    def parse_repositories(
        self, body: str, tasks: list[ParsedTask]
    ) -> list[RepositoryReference]:
        body = body or ""
        refs: dict[str, RepositoryReference] = {}

        section = _REPO_SECTION_RE.search(body)
        if section:
            for line in section.group(1).splitlines():
                bullet = _REPO_BULLET_RE.search(line)
                if bullet and bullet.group(1) in self.repositories:
                    name = bullet.group(1)
                    refs.setdefault(name, RepositoryReference(name=name, explicit=True))

        for task in tasks:
            if task.repository is None:
                continue
            ref = refs.setdefault(task.repository, RepositoryReference(name=task.repository))
            if not task.completed:
                ref.tasks.append(task.description)

        if not refs:
            for match in _MENTION_RE.finditer(body):
                name = match.group(1)
                if name in self.repositories:
                    refs.setdefault(name, RepositoryReference(name=name))

        if not refs:
            refs = {name: RepositoryReference(name=name) for name in self.repositories}

        # Unprefixed open tasks can only be placed when there is one target
        if len(refs) == 1:
            [only] = refs.values()
            only.tasks.extend(
                t.description for t in tasks if t.repository is None and not t.completed
            )

        return list(refs.values())
