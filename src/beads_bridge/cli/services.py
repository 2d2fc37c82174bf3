"""
Construction of the services used by CLI commands.

Commands call these factories instead of building services inline so tests
can patch a single seam.
"""

from pathlib import Path

from beads_bridge.core.auth.credentials import CredentialCache, EnvCredentialStore
from beads_bridge.core.beads.client import BeadsClient
from beads_bridge.core.config.loader import load_config
from beads_bridge.core.config.models import BridgeConfig


def get_config() -> BridgeConfig:
    return load_config()


def create_beads_client(config: BridgeConfig | None = None) -> BeadsClient:
    """BeadsClient over the configured repositories (or the cwd)."""
    config = config or get_config()
    return BeadsClient(config.repository_paths(Path.cwd()))


def create_credentials() -> CredentialCache:
    """Process-wide credential cache backed by environment variables."""
    return CredentialCache(EnvCredentialStore())


def backend_name_for_repository(repository: str, default: str = "github") -> str:
    """Pick the backend for a ``progress``/``resolve`` repository argument."""
    if repository.lower() == "shortcut" or repository.startswith("shortcut:"):
        return "shortcut"
    if "/" in repository:
        return "github"
    return default
