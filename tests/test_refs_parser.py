"""
Unit tests for external reference parsing.
"""

import pytest

from beads_bridge.core.errors import ValidationError
from beads_bridge.core.refs.parser import (
    detect_backend_from_ref,
    is_valid_external_ref_format,
    parse_external_ref,
)


# ==============================================================================
# GitHub references
# ==============================================================================


class TestGitHubRefs:
    """URL and shorthand GitHub references."""

    def test_issue_url(self):
        parsed = parse_external_ref("https://github.com/org/repo/issues/123")
        assert parsed.backend == "github"
        assert parsed.owner == "org"
        assert parsed.repo == "repo"
        assert parsed.repository == "org/repo"
        assert parsed.issue_number == 123
        assert parsed.external_ref == "https://github.com/org/repo/issues/123"

    def test_pull_url(self):
        parsed = parse_external_ref("https://github.com/org/repo/pull/7")
        assert parsed.issue_number == 7
        assert parsed.external_ref == "https://github.com/org/repo/pull/7"

    def test_url_is_normalized(self):
        parsed = parse_external_ref("http://GitHub.com/org/repo/Issues/123#issuecomment-1")
        assert parsed.external_ref == "https://github.com/org/repo/issues/123"

    def test_shorthand(self):
        parsed = parse_external_ref("github:org/repo#123")
        assert parsed.backend == "github"
        assert parsed.repository == "org/repo"
        assert parsed.issue_number == 123
        assert parsed.external_ref == "https://github.com/org/repo/issues/123"

    def test_shorthand_requires_owner_and_repo(self):
        with pytest.raises(ValidationError):
            parse_external_ref("github:repo#123")
        with pytest.raises(ValidationError):
            parse_external_ref("github:a/b/c#123")

    def test_issue_id_and_canonical(self):
        parsed = parse_external_ref("https://github.com/org/repo/issues/123")
        assert parsed.issue_id == "org/repo#123"
        assert parsed.canonical == "github:org/repo#123"


# ==============================================================================
# Shortcut references
# ==============================================================================


class TestShortcutRefs:
    """URL and shorthand Shortcut references."""

    def test_story_url(self):
        ref = "https://app.shortcut.com/acme/story/12345"
        parsed = parse_external_ref(ref)
        assert parsed.backend == "shortcut"
        assert parsed.story_id == 12345
        assert parsed.external_ref == ref

    def test_story_url_with_slug(self):
        parsed = parse_external_ref("https://app.shortcut.com/acme/story/12345/add-login")
        assert parsed.story_id == 12345

    def test_shorthand(self):
        parsed = parse_external_ref("shortcut:12345")
        assert parsed.backend == "shortcut"
        assert parsed.issue_id == "12345"
        assert parsed.canonical == "shortcut:12345"


# ==============================================================================
# Invalid input and detection
# ==============================================================================


class TestInvalidRefs:
    """Rejected references."""

    @pytest.mark.parametrize(
        "ref",
        ["jira:ABC-1", "github:org/repo", "shortcut:abc", "https://gitlab.com/o/r/issues/1"],
    )
    def test_unknown_formats(self, ref):
        with pytest.raises(ValidationError) as exc_info:
            parse_external_ref(ref)
        assert "Invalid external reference format" in exc_info.value.message
        assert "shortcut:12345" in exc_info.value.message

    @pytest.mark.parametrize("ref", ["", None, 123])
    def test_empty_or_not_a_string(self, ref):
        with pytest.raises(ValidationError) as exc_info:
            parse_external_ref(ref)
        assert "non-empty string" in exc_info.value.message

    def test_is_valid_external_ref_format(self):
        assert is_valid_external_ref_format("github:org/repo#1")
        assert not is_valid_external_ref_format("nope")


class TestDetectBackend:
    """Cheap backend detection."""

    @pytest.mark.parametrize(
        "ref,expected",
        [
            ("https://github.com/o/r/issues/1", "github"),
            ("github:o/r#1", "github"),
            ("https://app.shortcut.com/w/story/1", "shortcut"),
            ("shortcut:1", "shortcut"),
            ("jira:ABC-1", None),
            (None, None),
            ("", None),
        ],
    )
    def test_detect(self, ref, expected):
        assert detect_backend_from_ref(ref) == expected
