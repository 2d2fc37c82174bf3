"""
beads-bridge CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging

import typer
from rich.console import Console

from beads_bridge import __version__
from beads_bridge.cli import decompose, progress, resolve, serve, sync
from beads_bridge.core.config.env import load_layered_env
from beads_bridge.core.config.loader import load_config
from beads_bridge.core.errors import ConfigurationError

app = typer.Typer(
    name="beads-bridge",
    help="Sync beads epics with GitHub issues and Shortcut stories",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"beads-bridge {__version__}")
        raise typer.Exit()


def configure_logging(debug: bool) -> None:
    """Debug flag wins; otherwise use the configured level."""
    if debug:
        level = "DEBUG"
    else:
        try:
            level = load_config().logging.level
        except ConfigurationError:
            # The failing command reports the config error itself.
            level = "WARNING"
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    beads-bridge - keep external issues in step with beads epics.

    Quick Start:
        beads-bridge resolve org/repo 123     # Which epics implement #123?
        beads-bridge progress org/repo 123    # Post progress to #123
        beads-bridge sync                     # Push dependency diagrams
        beads-bridge serve front-e1           # Live dashboard
        beads-bridge decompose org/repo 123   # Task list -> epics

    Credentials come from GH_TOKEN/GITHUB_TOKEN (or gh auth) and
    SHORTCUT_API_TOKEN, optionally set in .env files.
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    configure_logging(debug)
    ctx.obj = {"debug": debug}


app.command(name="sync")(sync.sync)
app.command(name="progress")(progress.progress)
app.command(name="resolve")(resolve.resolve)
app.command(name="serve")(serve.serve)
app.command(name="decompose")(decompose.decompose)


def cli_main() -> None:
    """Console script entry point."""
    app()


__all__ = ["app", "cli_main"]
