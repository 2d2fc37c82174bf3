"""
Sync service: push a bead's dependency diagram into its external issue.

The local beads hierarchy is authoritative. Each sync renders the bead's
dependency tree with ``bd dep tree --format mermaid`` and replaces the
marker-delimited diagram section of the external issue description. Text
outside the markers is never touched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from beads_bridge.core.auth.credentials import CredentialCache
from beads_bridge.core.backends.backend import ProjectBackend, get_backend
from beads_bridge.core.backends.models import IssueUpdate
from beads_bridge.core.beads.models import BeadsIssue
from beads_bridge.core.diagrams.mermaid import BdMermaidGenerator, DiagramGenerator
from beads_bridge.core.errors import BridgeError, ConfigurationError, MissingExternalRefError
from beads_bridge.core.progress.renderer import render_diagram_section
from beads_bridge.core.progress.sections import upsert_section
from beads_bridge.core.refs.parser import parse_external_ref

from .models import SyncReport, SyncStatus

logger = logging.getLogger(__name__)

DIAGRAM_START = "<!-- beads-diagram-start -->"
DIAGRAM_END = "<!-- beads-diagram-end -->"

BackendResolver = Callable[[str], ProjectBackend]


class SyncTracker(Protocol):
    """The subset of BeadsClient the sync service needs."""

    def get_issue(self, issue_id: str, repository: str | None = None) -> BeadsIssue: ...

    def get_all_issues(self) -> dict[str, list[BeadsIssue]]: ...

    def run_bd(self, args: list[str], repository: str | None = None) -> str: ...


def registry_backend_resolver(credentials: CredentialCache | None = None) -> BackendResolver:
    """Resolve backends from the registry, sharing one credential cache."""

    def resolve(backend_name: str) -> ProjectBackend:
        return get_backend(backend_name, credentials=credentials)

    return resolve


class SyncService:
    """
    One-directional sync from beads to external issues.

    Backends are resolved by external ref prefix and authenticated lazily,
    once per backend type for the lifetime of the service.

    Example:
        >>> service = SyncService(beads, registry_backend_resolver(cache))
        >>> report = service.sync("front-e1")
        >>> report.errors
        0
    """

    def __init__(
        self,
        beads: SyncTracker,
        backend_resolver: BackendResolver,
        diagrams: DiagramGenerator | None = None,
    ) -> None:
        self.beads = beads
        self.backend_resolver = backend_resolver
        self.diagrams = diagrams or BdMermaidGenerator(beads)
        self._backends: dict[str, ProjectBackend] = {}

    def get_backend(self, backend_name: str) -> ProjectBackend:
        """Return the backend for ``backend_name``, authenticating on first use."""
        backend = self._backends.get(backend_name)
        if backend is None:
            backend = self.backend_resolver(backend_name)
            if not backend.is_authenticated():
                logger.debug("Authenticating %s backend", backend_name)
                backend.authenticate()
            self._backends[backend_name] = backend
        return backend

    def sync(
        self, bead_id: str, *, dry_run: bool = False, repository: str | None = None
    ) -> SyncReport:
        """
        Sync one bead to the issue named by its ``external_ref``.

        A bead without an external ref is skipped with remediation text in
        the detail message.
        """
        report = SyncReport(total=1)

        try:
            bead = self.beads.get_issue(bead_id, repository)
        except ConfigurationError:
            raise
        except BridgeError as e:
            logger.error("Failed to fetch bead %s: %s", bead_id, e)
            report.record(bead_id, SyncStatus.ERROR, str(e))
            return report

        if not bead.external_ref:
            missing = MissingExternalRefError(bead.id)
            logger.warning("%s", missing.message)
            report.record(bead.id, SyncStatus.SKIPPED, f"{missing.message}\n\n{missing.help_text}")
            return report

        try:
            ref = parse_external_ref(bead.external_ref)
            if dry_run:
                message = (
                    f"[dry run] Would sync {bead.id} to {ref.backend} issue {ref.issue_id} "
                    f"({bead.external_ref})"
                )
                logger.info("%s", message)
                report.record(bead.id, SyncStatus.SYNCED, message)
                return report

            logger.info("Syncing %s to %s", bead.id, ref.backend)
            backend = self.get_backend(ref.backend)
            diagram = self.diagrams.generate(repository, bead.id)
            changed = self._update_diagram_section(backend, ref.issue_id, diagram)
        except ConfigurationError:
            raise
        except BridgeError as e:
            logger.error("Error syncing %s: %s", bead.id, e)
            report.record(bead.id, SyncStatus.ERROR, str(e))
            return report

        report.record(
            bead.id,
            SyncStatus.SYNCED,
            f"Updated {ref.issue_id}" if changed else f"{ref.issue_id} already up to date",
        )
        return report

    def sync_all(self, *, dry_run: bool = False) -> SyncReport:
        """Sync every bead, in every repository, that carries an external ref."""
        report = SyncReport()
        for repository, issues in self.beads.get_all_issues().items():
            for issue in issues:
                if issue.external_ref:
                    report.merge(self.sync(issue.id, dry_run=dry_run, repository=repository))
        return report

    def _update_diagram_section(
        self, backend: ProjectBackend, issue_id: str, diagram: str
    ) -> bool:
        issue = backend.get_issue(issue_id)
        body = upsert_section(
            issue.body, DIAGRAM_START, DIAGRAM_END, render_diagram_section(diagram)
        )
        if body == issue.body:
            logger.info("Description up to date for %s", issue_id)
            return False
        backend.update_issue(issue.id, IssueUpdate(body=body))
        logger.info("Updated description for %s", issue_id)
        return True
