"""
Standardized error handling and exit codes for the beads-bridge CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum

from rich.console import Console

from beads_bridge.core.errors import BridgeError, MissingExternalRefError

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, including any sync report with errors."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


# Error codes that the user can fix by changing input or configuration
_USER_ERROR_CODES = {"VALIDATION_ERROR", "AUTH_ERROR", "CONFIGURATION_ERROR", "NOT_FOUND"}


def exit_code_for(code: str) -> ExitCode:
    """Map a bridge error code to a process exit code."""
    return ExitCode.USER_ERROR if code in _USER_ERROR_CODES else ExitCode.GENERAL_ERROR


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {problem}", highlight=False)

    if reason:
        console.print(f"[dim]{reason}[/dim]", highlight=False)

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}", highlight=False)


def print_bridge_error(error: BridgeError) -> None:
    """Print a bridge error with guidance chosen by its code."""
    if isinstance(error, MissingExternalRefError):
        print_missing_external_ref_error(error.bead_id)
        return
    solutions = {
        "AUTH_ERROR": "gh auth login  # or export GH_TOKEN / SHORTCUT_API_TOKEN",
        "CONFIGURATION_ERROR": "check .beads-bridge.json and ~/.config/beads-bridge/config.json",
    }
    print_error(error.message, reason=f"[{error.code}]", solution=solutions.get(error.code))


def print_missing_external_ref_error(bead_id: str) -> None:
    """Print remediation steps for a bead without an external_ref."""
    error = MissingExternalRefError(bead_id)
    print_error(error.message, reason=error.help_text)


def print_beads_not_available_error() -> None:
    """Print error when the bd CLI cannot be found."""
    print_error(
        "beads CLI (bd) is not installed",
        reason="beads-bridge reads epics and dependencies through bd",
        solution="npm install -g @beads/bd  # or brew install steveyegge/beads/bd",
    )
