"""
Configuration models and loading.
"""

from .env import load_layered_env
from .loader import clear_cache, deep_merge, load_config
from .models import BridgeConfig, DashboardConfig, LoggingConfig, PollingConfig, RepositoryConfig

__all__ = [
    "BridgeConfig",
    "DashboardConfig",
    "LoggingConfig",
    "PollingConfig",
    "RepositoryConfig",
    "clear_cache",
    "deep_merge",
    "load_config",
    "load_layered_env",
]
