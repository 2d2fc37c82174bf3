"""
Error taxonomy for beads-bridge.

Every error raised by the bridge engine derives from BridgeError and carries
a stable ``code`` so orchestration boundaries can convert it into a
structured result (``success=False, error={code, message}``) without
inspecting the concrete class.

Only ConfigurationError (and genuine programmer errors such as TypeError)
is expected to reach the process boundary as a raised exception.
"""

from __future__ import annotations

SUPPORTED_REF_FORMATS: tuple[str, ...] = (
    "github:owner/repo#123",
    "https://github.com/owner/repo/issues/123",
    "shortcut:12345",
    "https://app.shortcut.com/workspace/story/12345",
)


class BridgeError(Exception):
    """Base class for all bridge errors."""

    code = "BRIDGE_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Serialize as the ``{code, message}`` pair used in results."""
        return {"code": self.code, "message": self.message}


class ValidationError(BridgeError):
    """Bad or missing input. Surfaced immediately, never retried."""

    code = "VALIDATION_ERROR"


class NotFoundError(BridgeError):
    """The requested entity does not exist."""

    code = "NOT_FOUND"


class NotSupportedError(BridgeError):
    """
    The backend lacks the capability for an operation.

    This is an expected outcome that callers branch on, so the operation
    name is kept on the instance.
    """

    code = "NOT_SUPPORTED"

    def __init__(self, operation: str) -> None:
        super().__init__(f"Operation not supported: {operation}")
        self.operation = operation


class AuthError(BridgeError):
    """Invalid, missing, or expired credentials."""

    code = "AUTH_ERROR"


class BackendError(BridgeError):
    """A backend adapter failed to talk to its external system."""

    code = "BACKEND_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SyncError(BridgeError):
    """Opaque wrapper around a downstream failure. Message only."""

    code = "SYNC_ERROR"


class ConfigurationError(BridgeError):
    """Programmer or configuration mistake. Propagates to the CLI."""

    code = "CONFIGURATION_ERROR"


class MissingExternalRefError(BridgeError):
    """
    A bead has no external_ref and therefore cannot be synced.

    Attributes:
        bead_id: The bead that is not mapped to an external issue
        help_text: Remediation steps listing the supported ref formats
    """

    code = "MISSING_EXTERNAL_REF"

    def __init__(self, bead_id: str) -> None:
        super().__init__(f"Bead '{bead_id}' has no external_ref set")
        self.bead_id = bead_id
        formats = "\n".join(f"  - {fmt}" for fmt in SUPPORTED_REF_FORMATS)
        self.help_text = (
            "To set an external_ref:\n"
            f'  bd update {bead_id} --external-ref "github:owner/repo#123"\n'
            f'  bd update {bead_id} --external-ref "shortcut:12345"\n'
            "\n"
            f"Supported formats:\n{formats}"
        )
