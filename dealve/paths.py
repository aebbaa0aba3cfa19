# SPDX-License-Identifier: MIT
"""Centralized path resolution for dealve.

All path resolution should go through this module to ensure consistency.
"""
import os
from pathlib import Path


class PathResolver:
    """Resolves paths for dealve components."""

    @staticmethod
    def config_file() -> Path:
        """Get the settings file path.

        Resolution order:
        1. DEALVE_CONFIG env var (full file path)
        2. XDG_CONFIG_HOME/dealve/config.json
        3. ~/.config/dealve/config.json
        """
        custom = os.environ.get("DEALVE_CONFIG")
        if custom:
            return Path(custom)
        xdg_config = os.environ.get("XDG_CONFIG_HOME")
        if xdg_config:
            return Path(xdg_config) / "dealve" / "config.json"
        return Path.home() / ".config" / "dealve" / "config.json"

    @staticmethod
    def state_dir() -> Path:
        """Get the state directory for mutable data (debug log).

        Resolution order:
        1. DEALVE_STATE env var
        2. XDG_STATE_HOME/dealve
        3. ~/.local/state/dealve
        """
        state = os.environ.get("DEALVE_STATE")
        if state:
            return Path(state)
        xdg_state = os.environ.get("XDG_STATE_HOME")
        if xdg_state:
            return Path(xdg_state) / "dealve"
        return Path.home() / ".local" / "state" / "dealve"
