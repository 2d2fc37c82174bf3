"""
beads-bridge CLI - serve command.

Launch the live dashboard for one bead: a FastAPI server whose state is
refreshed by a PollingService and pushed to browsers over server-sent events.
"""

import asyncio
import logging
import threading
import time
import webbrowser
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import typer
from fastapi import FastAPI
from rich.console import Console

from beads_bridge.cli.errors import (
    ExitCode,
    print_beads_not_available_error,
    print_bridge_error,
)
from beads_bridge.cli.services import create_beads_client, get_config
from beads_bridge.core.beads.client import BeadsClient, BeadsCommandError, BeadsNotAvailableError
from beads_bridge.core.dashboard import (
    Broadcaster,
    IssueState,
    LiveStateBackend,
    PollingService,
    build_issue_state,
)
from beads_bridge.core.dashboard.api import create_app
from beads_bridge.core.diagrams import BdMermaidGenerator
from beads_bridge.core.errors import BridgeError

console = Console()
logger = logging.getLogger(__name__)


def make_refresher(
    beads: BeadsClient,
    backend: LiveStateBackend,
    issue_id: str,
    base_url: str,
) -> Callable[[], Awaitable[None]]:
    """
    Build the poll-cycle callback for ``issue_id``.

    bd runs in a worker thread; the snapshot is published back on the event
    loop so subscribers' queues are only touched from the loop.
    """
    diagrams = BdMermaidGenerator(beads, include_init=False)

    def build() -> IssueState:
        tree = beads.get_dependency_tree(None, issue_id)
        diagram = diagrams.generate(None, issue_id)
        return build_issue_state(tree, diagram, base_url=base_url)

    async def refresh() -> None:
        state = await asyncio.to_thread(build)
        backend.update_state(issue_id, state)

    return refresh


def serve(
    ctx: typer.Context,
    issue_id: str = typer.Argument(..., help="Bead to visualize (usually an epic)"),
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to run the server on (default from config: 3000)",
    ),
    poll_interval: int | None = typer.Option(
        None,
        "--poll-interval",
        min=1,
        help="Seconds between refreshes (default from config: 5)",
    ),
    no_browser: bool = typer.Option(
        False,
        "--no-browser",
        help="Don't open browser automatically",
    ),
) -> None:
    """
    Start the live dashboard for a bead.

    Examples:
        beads-bridge serve front-e1
        beads-bridge serve front-e1 --port 8080 --poll-interval 10
        beads-bridge serve front-e1 --no-browser
    """
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    config = get_config()
    host = config.dashboard.host
    port = port or config.dashboard.port
    interval = poll_interval or config.polling.interval_seconds

    try:
        beads = create_beads_client(config)
        beads.get_issue(issue_id)
    except BeadsNotAvailableError:
        print_beads_not_available_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    except BeadsCommandError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except BridgeError as e:
        print_bridge_error(e)
        raise typer.Exit(ExitCode.USER_ERROR)

    import uvicorn

    url = f"http://localhost:{port}"
    broadcaster = Broadcaster()
    backend = LiveStateBackend(broadcaster=broadcaster)
    refresh = make_refresher(beads, backend, issue_id, url)

    def on_error(error: Exception) -> None:
        console.print(f"[yellow]Polling error:[/yellow] {error}")
        broadcaster.broadcast({"type": "error", "message": str(error)})

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        # start() runs the first cycle immediately; its failures go to on_error.
        polling = PollingService(refresh, interval, on_error=on_error)
        polling.start()
        try:
            yield
        finally:
            polling.stop()
            broadcaster.close_all()
            backend.clear()

    app = create_app(backend, broadcaster, lifespan=lifespan)

    console.print(f"\n[bold cyan]Dashboard for {issue_id}[/bold cyan]")
    console.print(f"[dim]State: {url}/api/state/{issue_id}[/dim]")
    console.print(f"[dim]Events: {url}/api/events[/dim]")

    if not no_browser:

        def open_browser() -> None:
            time.sleep(1.5)  # Wait for server to start
            webbrowser.open(f"{url}/api/state/{issue_id}")

        threading.Thread(target=open_browser, daemon=True).start()

    console.print("\n[dim]Press Ctrl+C to stop[/dim]\n")

    try:
        uvicorn.run(app, host=host, port=port, log_level="info" if debug else "warning")
    except KeyboardInterrupt:
        console.print("\n[yellow]Dashboard stopped[/yellow]")
        raise typer.Exit(ExitCode.SUCCESS)
