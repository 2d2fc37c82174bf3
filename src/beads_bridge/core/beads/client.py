"""
Beads client backed by the ``bd`` CLI.

One client covers every configured local repository. Each repository is a
directory containing a ``.beads/`` database; commands run with that
directory as their working directory and always request ``--json`` output.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from beads_bridge.core.errors import BackendError, ConfigurationError, NotFoundError

from .models import BeadsIssue, BeadsStatus, DependencyTreeNode, EpicStatus, IssueSummary

logger = logging.getLogger(__name__)


class BeadsNotAvailableError(ConfigurationError):
    """Raised when beads CLI is not installed or not available."""


class BeadsCommandError(BackendError):
    """Raised when a beads CLI command fails."""

    def __init__(self, message: str, command: list[str] | None = None) -> None:
        super().__init__(message)
        self.command = command


class BeadsClient:
    """
    Read access to beads across one or more repositories.

    Example:
        >>> client = BeadsClient({"frontend": Path("../frontend")})
        >>> issues = client.get_all_issues()
        >>> status = client.get_epic_status("frontend", "front-e1")
    """

    def __init__(
        self,
        repositories: Mapping[str, Path] | None = None,
        check_available: bool = True,
        timeout: float = 60,
    ) -> None:
        """
        Initialize the client.

        Args:
            repositories: Repository name to directory. Defaults to the
                current directory under the name "default".
            check_available: Fail fast when ``bd`` is not on PATH
            timeout: Per-command timeout in seconds

        Raises:
            BeadsNotAvailableError: If bd CLI is not installed
        """
        self.repositories: dict[str, Path] = dict(repositories or {"default": Path.cwd()})
        self.timeout = timeout

        if check_available and shutil.which("bd") is None:
            raise BeadsNotAvailableError(
                "beads CLI (bd) is not installed. "
                "Install with: npm install -g @beads/bd OR brew install steveyegge/beads/bd"
            )

    @property
    def primary_repository(self) -> str:
        """Name of the first configured repository."""
        return next(iter(self.repositories))

    def _repo_dir(self, repository: str | None) -> Path:
        name = repository or self.primary_repository
        try:
            return self.repositories[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown repository '{name}'. Configured: {', '.join(self.repositories)}"
            ) from None

    def run_bd(self, args: list[str], repository: str | None = None) -> str:
        """
        Run a bd command and return raw stdout.

        Raises:
            BeadsCommandError: If the command fails or times out
        """
        cmd = ["bd"] + args
        logger.debug("Running bd command: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=self._repo_dir(repository),
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr.strip() if e.stderr else str(e)
            raise BeadsCommandError(
                f"bd command failed: {' '.join(cmd)}\nError: {error_msg}", command=cmd
            )
        except subprocess.TimeoutExpired as e:
            raise BeadsCommandError(f"bd command timed out: {' '.join(cmd)}", command=cmd) from e
        return result.stdout or ""

    def _run_bd_json(self, args: list[str], repository: str | None = None) -> Any:
        output = self.run_bd(args, repository)
        if not output.strip():
            return []
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise BeadsCommandError(
                f"Failed to parse bd output as JSON: {e}\n"
                f"Command: bd {' '.join(args)}\n"
                f"Output: {output[:200]}"
            )

    def list_issues(self, repository: str | None = None) -> list[BeadsIssue]:
        """List every bead in a repository."""
        result = self._run_bd_json(["list", "--json"], repository)
        raw_issues = result if isinstance(result, list) else [result]
        return [BeadsIssue.model_validate(raw) for raw in raw_issues if raw]

    def get_all_issues(self) -> dict[str, list[BeadsIssue]]:
        """
        List beads for every configured repository.

        A repository whose listing fails contributes an empty list so that
        one broken checkout does not hide the others.
        """
        results: dict[str, list[BeadsIssue]] = {}
        for name in self.repositories:
            try:
                results[name] = self.list_issues(name)
            except BeadsCommandError as e:
                logger.warning("Skipping repository %s: %s", name, e)
                results[name] = []
        return results

    def get_issue(self, issue_id: str, repository: str | None = None) -> BeadsIssue:
        """
        Fetch one bead with its dependencies.

        Raises:
            NotFoundError: If bd reports no such bead
        """
        try:
            result = self._run_bd_json(["show", issue_id, "--json"], repository)
        except BeadsCommandError as e:
            if "not found" in str(e).lower():
                raise NotFoundError(f"Bead {issue_id} not found") from e
            raise
        raw = result[0] if isinstance(result, list) and result else result
        if not raw:
            raise NotFoundError(f"Bead {issue_id} not found")
        return BeadsIssue.model_validate(raw)

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
    ) -> BeadsIssue:
        """
        Create a bead with ``bd create``.

        Raises:
            BeadsCommandError: If bd fails or does not return the new bead
        """
        args = ["create", title, "--json", "--type", issue_type, "-p", str(priority)]
        if description:
            args.extend(["-d", description])
        if external_ref:
            args.extend(["--external-ref", external_ref])
        for label in labels or []:
            args.extend(["--label", label])

        result = self._run_bd_json(args, repository)
        raw = result[0] if isinstance(result, list) and result else result
        if not isinstance(raw, dict) or not raw.get("id"):
            raise BeadsCommandError(f"bd create did not return an issue: {result!r}", command=args)
        issue = BeadsIssue.model_validate(raw)
        logger.info(
            "Created %s %s in %s", issue_type, issue.id, repository or self.primary_repository
        )
        return issue

    def add_dependency(
        self,
        repository: str | None,
        issue_id: str,
        depends_on_id: str,
        dep_type: str = "blocks",
    ) -> None:
        """Record that ``issue_id`` depends on ``depends_on_id``."""
        # bd dep add doesn't return JSON
        self.run_bd(["dep", "add", issue_id, depends_on_id, "--type", dep_type], repository)

    def get_dependency_tree(self, repository: str | None, epic_id: str) -> DependencyTreeNode:
        """
        Build the descendant tree of an epic from ``bd dep tree --reverse``.

        Children are ordered closed-first, then by id, for stable output.
        """
        nodes = self._run_bd_json(["dep", "tree", epic_id, "--reverse", "--json"], repository)
        issues: dict[str, BeadsIssue] = {}
        children: dict[str, list[BeadsIssue]] = {}
        for node in nodes or []:
            issue = BeadsIssue.model_validate(node)
            issues[issue.id] = issue
        for node in nodes or []:
            parent_id = node.get("parent_id")
            if parent_id and node["id"] != epic_id:
                children.setdefault(parent_id, []).append(issues[node["id"]])

        root = issues.get(epic_id)
        if root is None:
            return DependencyTreeNode(issue=self.get_issue(epic_id, repository))

        def build(issue: BeadsIssue, depth: int, seen: frozenset[str]) -> DependencyTreeNode:
            kids = sorted(
                (c for c in children.get(issue.id, []) if c.id not in seen),
                key=lambda c: (c.status != BeadsStatus.CLOSED.value, c.id),
            )
            return DependencyTreeNode(
                issue=issue,
                depth=depth,
                children=[build(k, depth + 1, seen | {k.id}) for k in kids],
            )

        return build(root, 0, frozenset({epic_id}))

    def get_epic_status(self, repository: str | None, epic_id: str) -> EpicStatus:
        """
        Compute the recursive progress rollup for an epic.

        Blockers are descendants with open ``blocks`` dependencies;
        discovered issues are descendants with a ``discovered-from`` link.
        """
        descendants = self.get_dependency_tree(repository, epic_id).flatten()

        total = len(descendants)
        completed = sum(1 for d in descendants if d.status == BeadsStatus.CLOSED.value)
        in_progress = sum(1 for d in descendants if d.status == BeadsStatus.IN_PROGRESS.value)
        blocked = sum(1 for d in descendants if d.status == BeadsStatus.BLOCKED.value)

        blockers: list[IssueSummary] = []
        discovered: list[IssueSummary] = []
        for descendant in descendants:
            # dep tree output omits dependency edges, so fetch the full bead
            try:
                full = self.get_issue(descendant.id, repository)
            except (BeadsCommandError, NotFoundError) as e:
                logger.debug("Skipping %s in rollup: %s", descendant.id, e)
                continue
            if full.open_blockers():
                blockers.append(IssueSummary.from_issue(full))
            if full.is_discovered():
                discovered.append(IssueSummary.from_issue(full))

        return EpicStatus(
            total=total,
            completed=completed,
            in_progress=in_progress,
            blocked=blocked,
            not_started=total - completed - in_progress - blocked,
            blockers=blockers,
            discovered=discovered,
        )
