"""
beads-bridge CLI - decompose command.

Turns an external issue's checkbox task list into beads epics and tasks.
"""

import json

import typer
from rich.console import Console
from rich.table import Table

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
from beads_bridge.core.decomposition import EpicDecomposer
from beads_bridge.core.errors import BridgeError

console = Console()


def decompose(
    repository: str = typer.Argument(
        ...,
        help="GitHub repository (owner/repo) or 'shortcut'",
    ),
    issue_number: int = typer.Argument(..., help="Issue number or Shortcut story id"),
    priority: int = typer.Option(
        2,
        "--priority",
        "-p",
        min=0,
        max=4,
        help="Priority for created epics and tasks (0 is highest)",
    ),
    label: list[str] = typer.Option(
        [],
        "--label",
        "-l",
        help="Label for created epics (repeatable)",
    ),
    no_comment: bool = typer.Option(
        False,
        "--no-comment",
        help="Don't post a confirmation comment on the issue",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output the result as JSON",
    ),
) -> None:
    """
    Create beads epics and tasks from an issue's task list.

    One epic is created per affected repository, with a child task for each
    open checkbox. Prefix a task with [repo-name] to target a repository.
    Repositories that already have an epic for the issue are skipped.

    Examples:
        beads-bridge decompose org/repo 123
        beads-bridge decompose org/repo 123 --priority 1 --label q3
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

    result = EpicDecomposer(backend, beads).decompose(
        repository,
        issue_number,
        post_comment=not no_comment,
        priority=priority,
        labels=label or None,
    )

    if json_output:
        payload = result.model_dump(mode="json", exclude_none=True)
        payload["total_tasks"] = result.total_tasks
        typer.echo(json.dumps(payload, indent=2))
    elif result.epics:
        table = Table(title=f"Decomposed {result.external_ref}")
        table.add_column("Repository", style="cyan")
        table.add_column("Epic")
        table.add_column("Tasks", justify="right")
        table.add_column("Status")
        for epic in result.epics:
            if not epic.success:
                status = f"[red]{epic.error}[/red]"
            elif epic.existing:
                status = "[dim]already decomposed[/dim]"
            else:
                status = "[green]created[/green]"
            table.add_row(
                epic.repository, epic.epic_id or "-", str(len(epic.child_issue_ids)), status
            )
        console.print(table)
        console.print(f"[dim]{result.total_tasks} tasks created[/dim]", highlight=False)

    if not result.success:
        if not json_output:
            print_error(
                result.error or "Decomposition failed",
                reason=f"[{result.error_code or 'SYNC_ERROR'}]",
            )
        raise typer.Exit(exit_code_for(result.error_code or "SYNC_ERROR"))
