"""
Unit tests for external reference resolution across repositories.
"""

import pytest

from beads_bridge.core.beads.models import EpicStatus, IssueSummary
from beads_bridge.core.errors import ValidationError
from beads_bridge.core.refs.resolver import (
    EpicLink,
    ExternalRefResolver,
    build_external_ref,
)

from .conftest import FakeTracker, make_bead


# ==============================================================================
# build_external_ref
# ==============================================================================


class TestBuildExternalRef:
    """Ref inference from repository and issue number."""

    def test_github_inference(self):
        assert build_external_ref("org/repo", 123) == "github:org/repo#123"

    @pytest.mark.parametrize("repository", ["shortcut", "Shortcut", "shortcut:acme"])
    def test_shortcut_inference(self, repository):
        assert build_external_ref(repository, 42) == "shortcut:42"

    def test_explicit_ref_wins_verbatim(self):
        ref = "https://github.com/org/repo/issues/123"
        assert build_external_ref("ignored/repo", 1, ref) == ref
        assert build_external_ref(external_ref=ref) == ref

    @pytest.mark.parametrize(
        "repository,issue_number",
        [(None, 1), ("", 1), ("org/repo", None), ("org/repo", "123"), ("org/repo", True)],
    )
    def test_missing_input(self, repository, issue_number):
        with pytest.raises(ValidationError) as exc_info:
            build_external_ref(repository, issue_number)
        assert "required" in exc_info.value.message


# ==============================================================================
# ExternalRefResolver
# ==============================================================================


class TestResolve:
    """Finding epics and aggregating metrics."""

    def test_single_repository_match(self, two_repo_tracker, frontend_status):
        result = ExternalRefResolver(two_repo_tracker).resolve("org/repo", 123)

        assert result.external_ref == "github:org/repo#123"
        assert result.epics == [EpicLink(repository="frontend", epic_id="front-e1")]
        assert result.metrics == frontend_status
        assert result.metrics.percent_complete == 40
        assert result.primary_epic.epic_id == "front-e1"

    def test_only_epics_match(self, two_repo_tracker):
        # front-1 is a task with the same ref and must not be listed
        epics = ExternalRefResolver(two_repo_tracker).find_epics("github:org/repo#123")
        assert [e.epic_id for e in epics] == ["front-e1"]

    def test_no_match_is_not_an_error(self, two_repo_tracker):
        result = ExternalRefResolver(two_repo_tracker).resolve("org/repo", 999)
        assert result.epics == []
        assert result.primary_epic is None
        assert result.metrics.total == 0
        assert result.metrics.percent_complete == 0

    def test_exact_match_only(self, two_repo_tracker):
        result = ExternalRefResolver(two_repo_tracker).resolve(
            external_ref="https://github.com/org/repo/issues/123"
        )
        assert result.epics == []

    def test_aggregates_across_repositories(self):
        tracker = FakeTracker(
            repositories={
                "frontend": [
                    make_bead("front-e1", issue_type="epic", external_ref="github:org/repo#123")
                ],
                "backend": [
                    make_bead("back-e1", issue_type="epic", external_ref="github:org/repo#123")
                ],
            },
            statuses={
                ("frontend", "front-e1"): EpicStatus(
                    total=5,
                    completed=2,
                    not_started=3,
                    blockers=[IssueSummary(id="front-4")],
                ),
                ("backend", "back-e1"): EpicStatus(
                    total=3,
                    completed=3,
                    blockers=[IssueSummary(id="back-9")],
                ),
            },
        )
        result = ExternalRefResolver(tracker).resolve("org/repo", 123)

        assert [e.repository for e in result.epics] == ["frontend", "backend"]
        assert result.metrics.total == 8
        assert result.metrics.completed == 5
        assert result.metrics.percent_complete == 63
        assert [b.id for b in result.metrics.blockers] == ["front-4", "back-9"]

    def test_several_epics_in_one_repository(self):
        tracker = FakeTracker(
            repositories={
                "frontend": [
                    make_bead("front-e1", issue_type="epic", external_ref="shortcut:42"),
                    make_bead("front-e2", issue_type="epic", external_ref="shortcut:42"),
                ]
            }
        )
        result = ExternalRefResolver(tracker).resolve("shortcut", 42)
        assert [e.epic_id for e in result.epics] == ["front-e1", "front-e2"]

    def test_validation_error_propagates(self, two_repo_tracker):
        with pytest.raises(ValidationError):
            ExternalRefResolver(two_repo_tracker).resolve()
