# SPDX-License-Identifier: MIT
"""Persistent settings for dealve.

Settings live in a single JSON file (see PathResolver.config_file). Reading is
forgiving: a missing, unreadable or malformed file yields defaults, and any
field with the wrong type falls back to its default. A corrupt settings file
must never stop the app from starting.
"""
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from dealve.models import (
    Platform,
    Region,
    SortCriteria,
    SortDirection,
    SortState,
)
from dealve.paths import PathResolver

API_KEY_ENV_VAR = "ITAD_API_KEY"
DEFAULT_PAGE_SIZE = 50
DEFAULT_GAME_INFO_DELAY_MS = 200


def get_config_path() -> Path:
    """Get path to the settings file, respecting DEALVE_CONFIG."""
    return PathResolver.config_file()


def _all_platform_names() -> List[str]:
    return [p.display_name for p in Platform]


@dataclass
class Config:
    """Settings record as stored on disk."""

    default_platform: str = "All"
    enabled_platforms: List[str] = field(default_factory=_all_platform_names)
    region: str = Region.default().code
    # Number of deals requested per page
    deals_page_size: int = DEFAULT_PAGE_SIZE
    # Debounce before loading game info after a selection change
    game_info_delay_ms: int = DEFAULT_GAME_INFO_DELAY_MS
    api_key: Optional[str] = None
    default_sort_criteria: str = SortCriteria.PRICE.value
    default_sort_direction: str = SortDirection.ASCENDING.value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Build a Config from parsed JSON, keeping defaults for bad fields."""
        config = cls()
        if isinstance(data.get("default_platform"), str):
            config.default_platform = data["default_platform"]
        enabled = data.get("enabled_platforms")
        if isinstance(enabled, list):
            config.enabled_platforms = [name for name in enabled if isinstance(name, str)]
        if isinstance(data.get("region"), str):
            config.region = data["region"]
        for key in ("deals_page_size", "game_info_delay_ms"):
            value = data.get(key)
            # bool is an int subclass; reject it explicitly
            if isinstance(value, int) and not isinstance(value, bool) and value > 0:
                setattr(config, key, value)
        api_key = data.get("api_key")
        if isinstance(api_key, str):
            config.api_key = api_key
        if isinstance(data.get("default_sort_criteria"), str):
            config.default_sort_criteria = data["default_sort_criteria"]
        if isinstance(data.get("default_sort_direction"), str):
            config.default_sort_direction = data["default_sort_direction"]
        return config

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "default_platform": self.default_platform,
            "enabled_platforms": list(self.enabled_platforms),
            "region": self.region,
            "deals_page_size": self.deals_page_size,
            "game_info_delay_ms": self.game_info_delay_ms,
            "default_sort_criteria": self.default_sort_criteria,
            "default_sort_direction": self.default_sort_direction,
        }
        if self.api_key is not None:
            data["api_key"] = self.api_key
        return data

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """Load settings from disk, or return defaults if absent or malformed."""
        settings_path = path or get_config_path()

        if not settings_path.exists():
            return cls()

        try:
            with open(settings_path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError):
            return cls()

        if not isinstance(data, dict):
            return cls()
        return cls.from_dict(data)

    def save(self, path: Optional[Path] = None) -> Path:
        """Write settings to disk.

        Raises:
            OSError: if the directory or file cannot be written.
        """
        settings_path = path or get_config_path()
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        settings_path.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")
        return settings_path

    # -- Typed views ----------------------------------------------------------

    def get_default_platform(self) -> Platform:
        """Configured default platform. "All" and unknown names map to ALL."""
        return Platform.from_name(self.default_platform) or Platform.ALL

    def get_enabled_platforms(self) -> Set[Platform]:
        """Enabled platforms; unknown names are ignored."""
        enabled = set()
        for name in self.enabled_platforms:
            platform = Platform.from_name(name)
            if platform is not None:
                enabled.add(platform)
        return enabled

    def get_region(self) -> Region:
        return Region.from_code(self.region) or Region.default()

    def get_default_sort(self) -> SortState:
        criteria = SortCriteria.from_name(self.default_sort_criteria) or SortCriteria.PRICE
        if self.default_sort_direction == SortDirection.DESCENDING.value:
            direction = SortDirection.DESCENDING
        else:
            direction = SortDirection.ASCENDING
        return SortState(criteria=criteria, direction=direction)

    def update_from_options(
        self,
        default_platform: Platform,
        enabled_platforms: Iterable[Platform],
        region: Region,
        default_sort: SortState,
    ) -> None:
        self.default_platform = default_platform.display_name
        # Keep declaration order so the file diff stays stable between saves
        enabled = set(enabled_platforms)
        self.enabled_platforms = [p.display_name for p in Platform if p in enabled]
        self.region = region.code
        self.default_sort_criteria = default_sort.criteria.value
        self.default_sort_direction = default_sort.direction.value

    def set_api_key(self, key: str, path: Optional[Path] = None) -> Path:
        """Store the API key and save."""
        self.api_key = key
        return self.save(path)


def load_api_key(path: Optional[Path] = None) -> Optional[str]:
    """Resolve the API key.

    Priority:
    1. ITAD_API_KEY env var (when non-empty)
    2. api_key in the settings file (when non-empty)
    """
    env_key = os.environ.get(API_KEY_ENV_VAR)
    if env_key:
        return env_key

    config = Config.load(path)
    if config.api_key:
        return config.api_key
    return None
