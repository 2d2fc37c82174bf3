"""
beads-bridge CLI - progress command.

Posts (or refreshes) the aggregated progress comment on an external issue.
"""

import json

import typer
from rich.console import Console

from beads_bridge.cli.errors import (
    ExitCode,
    exit_code_for,
    print_beads_not_available_error,
    print_bridge_error,
    print_error,
)
from beads_bridge.cli.services import (
    backend_name_for_repository,
    create_beads_client,
    create_credentials,
    get_config,
)
from beads_bridge.core.backends import get_backend
from beads_bridge.core.beads.client import BeadsNotAvailableError
from beads_bridge.core.diagrams import BdMermaidGenerator
from beads_bridge.core.errors import BridgeError
from beads_bridge.core.progress import ProgressOrchestrator, ShortcutStorySync
from beads_bridge.core.refs import ExternalRefResolver

console = Console()


def progress(
    repository: str = typer.Argument(
        ...,
        help="GitHub repository (owner/repo) or 'shortcut'",
    ),
    issue_number: int = typer.Argument(..., help="Issue number or Shortcut story id"),
    narrative: str | None = typer.Option(
        None,
        "--narrative",
        "-n",
        help="Free-form note appended to the progress update",
    ),
    no_blockers: bool = typer.Option(
        False,
        "--no-blockers",
        help="Leave the blockers section out of the comment",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output the result as JSON",
    ),
) -> None:
    """
    Sync aggregated epic progress to an external issue.

    Every beads epic (in any configured repository) whose external_ref
    points at the issue contributes to the progress comment. The comment
    is edited in place on later runs.

    Examples:
        beads-bridge progress org/repo 123
        beads-bridge progress shortcut 4567 --narrative "Auth landed"
    """
    config = get_config()
    try:
        beads = create_beads_client(config)
    except BeadsNotAvailableError:
        print_beads_not_available_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    backend_name = backend_name_for_repository(repository, default=config.backend)
    try:
        backend = get_backend(backend_name, credentials=create_credentials())
        backend.authenticate()
    except BridgeError as e:
        print_bridge_error(e)
        raise typer.Exit(exit_code_for(e.code))

    resolver = ExternalRefResolver(beads)
    diagrams = BdMermaidGenerator(beads)
    story_sync = (
        ShortcutStorySync(backend, resolver, diagrams) if backend_name == "shortcut" else None
    )
    orchestrator = ProgressOrchestrator(backend, resolver, diagrams, story_sync=story_sync)

    result = orchestrator.sync_progress(
        repository, issue_number, narrative=narrative, include_blockers=not no_blockers
    )

    if json_output:
        typer.echo(json.dumps(result.model_dump(mode="json", exclude_none=True), indent=2))
    elif result.success:
        data = result.data or {}
        comment = data.get("comment") or {}
        metrics = data.get("metrics") or {}
        console.print(
            f"[green]✓[/green] Progress synced to {repository}#{issue_number} "
            f"({comment.get('action', 'synced')})",
            highlight=False,
        )
        if metrics:
            console.print(
                f"[dim]{metrics.get('completed', 0)}/{metrics.get('total', 0)} tasks completed "
                f"({metrics.get('percent_complete', 0)}%)[/dim]",
                highlight=False,
            )

    if not result.success:
        error = result.error
        if not json_output and error is not None:
            print_error(error.message, reason=f"[{error.code}]")
        raise typer.Exit(exit_code_for(error.code if error else "SYNC_ERROR"))
