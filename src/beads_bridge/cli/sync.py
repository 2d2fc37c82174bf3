"""
beads-bridge CLI - sync command.

Pushes each bead's dependency diagram into the external issue named by its
external_ref.
"""

import logging

import typer
from rich.console import Console
from rich.table import Table

from beads_bridge.cli.errors import ExitCode, print_beads_not_available_error, print_bridge_error
from beads_bridge.cli.services import create_beads_client, create_credentials
from beads_bridge.core.beads.client import BeadsNotAvailableError
from beads_bridge.core.errors import BridgeError
from beads_bridge.core.sync import SyncReport, SyncService, SyncStatus, registry_backend_resolver

console = Console()
logger = logging.getLogger(__name__)

_STATUS_STYLE = {
    SyncStatus.SYNCED: "[green]synced[/green]",
    SyncStatus.SKIPPED: "[yellow]skipped[/yellow]",
    SyncStatus.ERROR: "[red]error[/red]",
}


def _print_report(report: SyncReport) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Bead")
    table.add_column("Status")
    table.add_column("Message", overflow="fold")
    for detail in report.details:
        table.add_row(detail.id, _STATUS_STYLE[detail.status], detail.message or "")
    if report.details:
        console.print(table)
    console.print(
        f"Synced: {report.synced}  Skipped: {report.skipped}  Errors: {report.errors}",
        highlight=False,
    )


def sync(
    bead_id: str | None = typer.Argument(
        None,
        help="Bead to sync. Omit to sync every bead with an external_ref.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be synced without authenticating or writing",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output the sync report as JSON",
    ),
) -> None:
    """
    Sync beads dependency diagrams to GitHub issues or Shortcut stories.

    Each bead's external_ref decides where it is synced. Beads without an
    external_ref are skipped and reported. Exits with status 1 if any bead
    failed to sync.

    Examples:
        beads-bridge sync front-e1             # Sync one bead
        beads-bridge sync                      # Sync all mapped beads
        beads-bridge sync front-e1 --dry-run   # Preview only
        beads-bridge sync --json               # Machine-readable report
    """
    try:
        beads = create_beads_client()
    except BeadsNotAvailableError:
        print_beads_not_available_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    service = SyncService(beads, registry_backend_resolver(create_credentials()))

    try:
        report = service.sync(bead_id, dry_run=dry_run) if bead_id else service.sync_all(
            dry_run=dry_run
        )
    except BridgeError as e:
        print_bridge_error(e)
        raise typer.Exit(ExitCode.USER_ERROR)

    if json_output:
        typer.echo(report.model_dump_json(indent=2, exclude_none=True))
    else:
        if dry_run:
            console.print("[dim]Dry run: no changes were made[/dim]")
        _print_report(report)

    if report.failed:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
