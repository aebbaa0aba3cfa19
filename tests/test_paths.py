"""Tests for centralized path resolution."""
from pathlib import Path

from dealve.paths import PathResolver


class TestPathResolver:
    """Tests for PathResolver."""

    def test_config_file_default(self, monkeypatch):
        monkeypatch.delenv("DEALVE_CONFIG", raising=False)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)

        result = PathResolver.config_file()
        assert result == Path.home() / ".config" / "dealve" / "config.json"

    def test_config_file_respects_env_var(self, monkeypatch, tmp_path):
        custom = tmp_path / "settings.json"
        monkeypatch.setenv("DEALVE_CONFIG", str(custom))

        assert PathResolver.config_file() == custom

    def test_config_file_respects_xdg_config_home(self, monkeypatch, tmp_path):
        monkeypatch.delenv("DEALVE_CONFIG", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

        assert PathResolver.config_file() == tmp_path / "xdg" / "dealve" / "config.json"

    def test_state_dir_default(self, monkeypatch):
        monkeypatch.delenv("DEALVE_STATE", raising=False)
        monkeypatch.delenv("XDG_STATE_HOME", raising=False)

        result = PathResolver.state_dir()
        assert isinstance(result, Path)
        assert result == Path.home() / ".local" / "state" / "dealve"

    def test_state_dir_respects_env_var(self, monkeypatch, tmp_path):
        custom_state = tmp_path / "custom-state"
        monkeypatch.setenv("DEALVE_STATE", str(custom_state))

        assert PathResolver.state_dir() == custom_state

    def test_state_dir_respects_xdg_state_home(self, monkeypatch, tmp_path):
        """XDG_STATE_HOME is used when DEALVE_STATE is not set."""
        monkeypatch.delenv("DEALVE_STATE", raising=False)
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "xdg-state"))

        assert PathResolver.state_dir() == tmp_path / "xdg-state" / "dealve"
