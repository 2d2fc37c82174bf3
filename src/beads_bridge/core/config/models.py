"""
Pydantic models for beads-bridge configuration.

Configuration is merged from defaults, the user config, the project config
and environment variables (see loader.py), then validated here.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RepositoryConfig(BaseModel):
    """A local repository holding a beads database."""

    name: str = Field(..., min_length=1, description="Name used in resolution results")
    path: Path = Field(..., description="Directory containing .beads/")


class PollingConfig(BaseModel):
    """Dashboard polling settings."""

    interval_seconds: int = Field(default=5, ge=1, description="Seconds between poll cycles")


class DashboardConfig(BaseModel):
    """Dashboard server settings."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3000, ge=1, le=65535)


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="WARNING")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


class BridgeConfig(BaseModel):
    """
    Top-level configuration.

    Example:
        >>> config = BridgeConfig(repositories=[{"name": "frontend", "path": "../fe"}])
        >>> config.repository_paths()
        {'frontend': PosixPath('../fe')}
    """

    model_config = ConfigDict(extra="ignore")

    repositories: list[RepositoryConfig] = Field(default_factory=list)
    backend: Literal["github", "shortcut"] = Field(default="github")
    polling: PollingConfig = Field(default_factory=PollingConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("repositories")
    @classmethod
    def unique_names(cls, v: list[RepositoryConfig]) -> list[RepositoryConfig]:
        names = [r.name for r in v]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"duplicate repository names: {', '.join(sorted(duplicates))}")
        return v

    def repository_paths(self, base_dir: Path | None = None) -> dict[str, Path]:
        """
        Map repository names to directories.

        Relative paths are resolved against ``base_dir`` when given. With no
        repositories configured, the current directory is used as "default".
        """
        if not self.repositories:
            return {"default": base_dir or Path.cwd()}
        return {
            r.name: (base_dir / r.path if base_dir and not r.path.is_absolute() else r.path)
            for r in self.repositories
        }
