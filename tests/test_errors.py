"""
Unit tests for the bridge error taxonomy.
"""

import pytest

from beads_bridge.core.errors import (
    SUPPORTED_REF_FORMATS,
    AuthError,
    BackendError,
    BridgeError,
    ConfigurationError,
    MissingExternalRefError,
    NotFoundError,
    NotSupportedError,
    SyncError,
    ValidationError,
)


class TestErrorCodes:
    """Each error class carries a stable code."""

    @pytest.mark.parametrize(
        "error_cls,code",
        [
            (ValidationError, "VALIDATION_ERROR"),
            (NotFoundError, "NOT_FOUND"),
            (AuthError, "AUTH_ERROR"),
            (SyncError, "SYNC_ERROR"),
            (ConfigurationError, "CONFIGURATION_ERROR"),
        ],
    )
    def test_code(self, error_cls, code):
        error = error_cls("boom")
        assert isinstance(error, BridgeError)
        assert error.code == code
        assert error.to_dict() == {"code": code, "message": "boom"}

    def test_not_supported_keeps_operation(self):
        error = NotSupportedError("update_comment")
        assert error.operation == "update_comment"
        assert error.code == "NOT_SUPPORTED"
        assert "update_comment" in error.message

    def test_backend_error_status_code(self):
        error = BackendError("rate limited", status_code=429)
        assert error.status_code == 429
        assert str(error) == "rate limited"


class TestMissingExternalRefError:
    """Remediation text for beads without an external_ref."""

    def test_message_and_bead_id(self):
        error = MissingExternalRefError("front-e1")
        assert error.bead_id == "front-e1"
        assert error.message == "Bead 'front-e1' has no external_ref set"

    def test_help_text_lists_formats_and_commands(self):
        error = MissingExternalRefError("front-e1")
        assert 'bd update front-e1 --external-ref "github:owner/repo#123"' in error.help_text
        for fmt in SUPPORTED_REF_FORMATS:
            assert fmt in error.help_text
