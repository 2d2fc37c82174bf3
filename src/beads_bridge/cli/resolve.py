"""
beads-bridge CLI - resolve command.

Shows which beads epics implement an external issue and their combined
progress, without touching the external system.
"""

import typer
from rich.console import Console
from rich.table import Table

from beads_bridge.cli.errors import (
    ExitCode,
    print_beads_not_available_error,
    print_bridge_error,
    print_error,
)
from beads_bridge.cli.services import create_beads_client
from beads_bridge.core.beads.client import BeadsNotAvailableError
from beads_bridge.core.errors import BridgeError
from beads_bridge.core.refs import ExternalRefResolver

console = Console()


def resolve(
    repository: str | None = typer.Argument(None, help="owner/repo or 'shortcut'"),
    issue_number: int | None = typer.Argument(None, help="Issue number or story id"),
    ref: str | None = typer.Option(
        None,
        "--ref",
        "-r",
        help="Explicit external ref, e.g. github:org/repo#123",
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """
    Resolve an external issue to its beads epics.

    Examples:
        beads-bridge resolve org/repo 123
        beads-bridge resolve --ref shortcut:4567
    """
    if ref is None and (repository is None or issue_number is None):
        print_error(
            "Nothing to resolve",
            solution="beads-bridge resolve owner/repo 123  # or --ref github:owner/repo#123",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    try:
        beads = create_beads_client()
    except BeadsNotAvailableError:
        print_beads_not_available_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    try:
        result = ExternalRefResolver(beads).resolve(
            repository=repository, issue_number=issue_number, external_ref=ref
        )
    except BridgeError as e:
        print_bridge_error(e)
        raise typer.Exit(ExitCode.USER_ERROR)

    if json_output:
        typer.echo(result.model_dump_json(indent=2))
        return

    console.print(f"[bold]{result.external_ref}[/bold]", highlight=False)
    if not result.epics:
        console.print("[yellow]No beads epics reference this issue[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Repository")
    table.add_column("Epic")
    for epic in result.epics:
        table.add_row(epic.repository, epic.epic_id)
    console.print(table)

    metrics = result.metrics
    console.print(
        f"{metrics.completed}/{metrics.total} completed ({metrics.percent_complete}%), "
        f"{metrics.in_progress} in progress, {metrics.blocked} blocked, "
        f"{metrics.not_started} not started",
        highlight=False,
    )
    for blocker in metrics.blockers:
        console.print(f"  [red]blocked[/red] {blocker.id}: {blocker.title}", highlight=False)
