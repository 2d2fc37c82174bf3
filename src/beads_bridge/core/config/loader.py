"""
Configuration loading with multi-layer merging.

Precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from beads_bridge.core.errors import ConfigurationError

from .models import BridgeConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAME = ".beads-bridge.json"

# Global cache to avoid reloading config multiple times per session
_config_cache: BridgeConfig | None = None


def get_xdg_config_home() -> Path:
    """Get XDG config home directory (defaults to ~/.config)."""
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/beads-bridge/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "beads-bridge" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Path to .beads-bridge.json in ``cwd`` (defaults to current directory)."""
    if cwd is None:
        cwd = Path.cwd()
    return cwd / PROJECT_CONFIG_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence. Nested dicts are merged, other
    values (including lists) are replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 2}})
        {'a': 1, 'b': {'x': 10, 'y': 2}}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """Load a JSON object from ``path``; None if missing or unreadable."""
    if not path.exists():
        return None
    try:
        with path.open() as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None
    if isinstance(data, dict):
        return data
    logger.warning("Ignoring config at %s: top level is not an object", path)
    return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides.

    Supported env vars:
        BEADS_BRIDGE_BACKEND - overrides backend
        BEADS_BRIDGE_POLL_INTERVAL - overrides polling.interval_seconds
        BEADS_BRIDGE_LOG_LEVEL - overrides logging.level
    """
    result = config_dict.copy()

    if backend := os.environ.get("BEADS_BRIDGE_BACKEND"):
        result["backend"] = backend.lower()

    if interval_str := os.environ.get("BEADS_BRIDGE_POLL_INTERVAL"):
        try:
            interval = int(interval_str)
        except ValueError:
            logger.warning("Invalid BEADS_BRIDGE_POLL_INTERVAL value '%s', ignoring", interval_str)
        else:
            if interval < 1:
                logger.warning(
                    "BEADS_BRIDGE_POLL_INTERVAL must be >= 1, got %d, ignoring", interval
                )
            else:
                result["polling"] = {**result.get("polling", {}), "interval_seconds": interval}

    if level := os.environ.get("BEADS_BRIDGE_LOG_LEVEL"):
        result["logging"] = {**result.get("logging", {}), "level": level.upper()}

    return result


def get_default_config() -> dict[str, Any]:
    """Hardcoded defaults."""
    return {
        "repositories": [],
        "backend": "github",
        "polling": {"interval_seconds": 5},
        "dashboard": {"host": "127.0.0.1", "port": 3000},
        "logging": {"level": "WARNING"},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> BridgeConfig:
    """
    Load configuration with multi-layer merging.

    Args:
        project_dir: Directory holding .beads-bridge.json (defaults to cwd)
        use_cache: If True, return cached config from a previous load

    Raises:
        ConfigurationError: If the merged config fails validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    try:
        config = BridgeConfig(**merged)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    _config_cache = config
    return config


def clear_cache() -> None:
    """Clear the cached configuration."""
    global _config_cache
    _config_cache = None
