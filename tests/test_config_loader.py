"""
Tests for configuration models, layered loading and .env handling.
"""

import json
import os
from pathlib import Path

import pytest

from beads_bridge.core.config.env import load_layered_env
from beads_bridge.core.config.loader import (
    apply_env_overrides,
    clear_cache,
    deep_merge,
    get_project_config_path,
    get_user_config_path,
    load_config,
    load_json_file,
)
from beads_bridge.core.config.models import BridgeConfig
from beads_bridge.core.errors import ConfigurationError


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


# ==============================================================================
# Models
# ==============================================================================


class TestBridgeConfig:
    """Validation and derived values."""

    def test_defaults(self):
        config = BridgeConfig()
        assert config.backend == "github"
        assert config.polling.interval_seconds == 5
        assert config.dashboard.port == 3000
        assert config.logging.level == "WARNING"

    def test_default_repository_is_cwd(self):
        assert BridgeConfig().repository_paths() == {"default": Path.cwd()}

    def test_relative_paths_resolved_against_base(self, tmp_path):
        config = BridgeConfig(
            repositories=[
                {"name": "frontend", "path": "../frontend"},
                {"name": "backend", "path": "/srv/backend"},
            ]
        )
        paths = config.repository_paths(tmp_path)
        assert paths["frontend"] == tmp_path / "../frontend"
        assert paths["backend"] == Path("/srv/backend")

    def test_duplicate_repository_names(self):
        with pytest.raises(ValueError):
            BridgeConfig(repositories=[{"name": "a", "path": "x"}, {"name": "a", "path": "y"}])

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            BridgeConfig(polling={"interval_seconds": 0})

    def test_log_level_normalized(self):
        assert BridgeConfig(logging={"level": "debug"}).logging.level == "DEBUG"

    def test_unknown_keys_ignored(self):
        assert BridgeConfig(future_option=True).backend == "github"


# ==============================================================================
# Loader helpers
# ==============================================================================


class TestHelpers:
    def test_deep_merge(self):
        merged = deep_merge({"a": 1, "b": {"x": 1, "y": 2}, "l": [1]}, {"b": {"y": 3}, "l": [2]})
        assert merged == {"a": 1, "b": {"x": 1, "y": 3}, "l": [2]}

    def test_user_config_path_uses_xdg(self, tmp_path):
        assert get_user_config_path() == tmp_path / "xdg" / "beads-bridge" / "config.json"

    def test_project_config_path(self, tmp_path):
        assert get_project_config_path(tmp_path) == tmp_path / ".beads-bridge.json"

    def test_load_json_file_missing(self, tmp_path):
        assert load_json_file(tmp_path / "nope.json") is None

    def test_load_json_file_invalid(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{ nope")
        assert load_json_file(path) is None

    def test_load_json_file_not_an_object(self, tmp_path):
        assert load_json_file(write_json(tmp_path / "list.json", [1, 2])) is None

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("BEADS_BRIDGE_BACKEND", "SHORTCUT")
        monkeypatch.setenv("BEADS_BRIDGE_POLL_INTERVAL", "10")
        monkeypatch.setenv("BEADS_BRIDGE_LOG_LEVEL", "info")
        result = apply_env_overrides({"polling": {"interval_seconds": 5}})
        assert result["backend"] == "shortcut"
        assert result["polling"] == {"interval_seconds": 10}
        assert result["logging"] == {"level": "INFO"}

    @pytest.mark.parametrize("value", ["abc", "0", "-3"])
    def test_bad_interval_ignored(self, monkeypatch, value):
        monkeypatch.setenv("BEADS_BRIDGE_POLL_INTERVAL", value)
        assert apply_env_overrides({"polling": {"interval_seconds": 5}}) == {
            "polling": {"interval_seconds": 5}
        }


# ==============================================================================
# load_config
# ==============================================================================


class TestLoadConfig:
    """Layer precedence and caching."""

    def test_defaults_only(self):
        assert load_config() == BridgeConfig()

    def test_precedence(self, tmp_path, monkeypatch):
        write_json(get_user_config_path(), {"backend": "shortcut", "dashboard": {"port": 4000}})
        write_json(
            tmp_path / "work" / ".beads-bridge.json",
            {"dashboard": {"host": "0.0.0.0"}, "polling": {"interval_seconds": 9}},
        )
        monkeypatch.setenv("BEADS_BRIDGE_POLL_INTERVAL", "12")

        config = load_config()

        assert config.backend == "shortcut"
        assert config.dashboard.port == 4000
        assert config.dashboard.host == "0.0.0.0"
        assert config.polling.interval_seconds == 12

    def test_explicit_project_dir(self, tmp_path):
        project = tmp_path / "elsewhere"
        write_json(project / ".beads-bridge.json", {"repositories": [{"name": "api", "path": "."}]})
        config = load_config(project_dir=project)
        assert [r.name for r in config.repositories] == ["api"]

    def test_cached(self, tmp_path):
        first = load_config()
        write_json(tmp_path / "work" / ".beads-bridge.json", {"backend": "shortcut"})
        assert load_config() is first
        assert load_config(use_cache=False).backend == "shortcut"

    def test_clear_cache(self, tmp_path):
        load_config()
        write_json(tmp_path / "work" / ".beads-bridge.json", {"backend": "shortcut"})
        clear_cache()
        assert load_config().backend == "shortcut"

    def test_invalid_config(self, tmp_path):
        write_json(tmp_path / "work" / ".beads-bridge.json", {"backend": "jira"})
        with pytest.raises(ConfigurationError) as exc_info:
            load_config()
        assert "Invalid configuration" in exc_info.value.message


# ==============================================================================
# Layered .env
# ==============================================================================


@pytest.fixture
def env_keys():
    keys = ["BB_TEST_USER_ONLY", "BB_TEST_SHARED", "BB_TEST_SHELL"]
    for key in keys:
        os.environ.pop(key, None)
    yield keys
    for key in keys:
        os.environ.pop(key, None)


class TestLoadLayeredEnv:
    """Precedence: shell > project .env > user .env."""

    def test_precedence(self, tmp_path, env_keys):
        user_env = tmp_path / "user.env"
        user_env.write_text("BB_TEST_USER_ONLY=user\nBB_TEST_SHARED=user\nBB_TEST_SHELL=user\n")
        project_env = tmp_path / "project.env"
        project_env.write_text("BB_TEST_SHARED=project\nBB_TEST_SHELL=project\n")
        os.environ["BB_TEST_SHELL"] = "shell"

        set_keys = load_layered_env(user_env_paths=[user_env], project_env_paths=[project_env])

        assert os.environ["BB_TEST_USER_ONLY"] == "user"
        assert os.environ["BB_TEST_SHARED"] == "project"
        assert os.environ["BB_TEST_SHELL"] == "shell"
        assert set_keys == {"BB_TEST_USER_ONLY", "BB_TEST_SHARED"}

    def test_default_locations(self, tmp_path, env_keys):
        user_env = tmp_path / "xdg" / "beads-bridge" / ".env"
        user_env.parent.mkdir(parents=True)
        user_env.write_text("BB_TEST_USER_ONLY=from-xdg\n")
        (tmp_path / "work" / ".env").write_text("BB_TEST_SHARED=from-project\n")

        load_layered_env()

        assert os.environ["BB_TEST_USER_ONLY"] == "from-xdg"
        assert os.environ["BB_TEST_SHARED"] == "from-project"

    def test_missing_files(self, tmp_path, env_keys):
        assert load_layered_env(user_env_paths=[tmp_path / "none"], project_env_paths=[]) == set()
