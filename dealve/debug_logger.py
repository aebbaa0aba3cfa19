# SPDX-License-Identifier: MIT
"""
Structured debug logger for dealve.

Writes one JSON object per line to <state_dir>/debug.log. The level comes
from DEALVE_DEBUG:

- 0: disabled
- 1: load lifecycle, failures, settings writes (default)
- 2: everything, including per-task debug events

Logging must never break the UI, so every write swallows OSError.
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from dealve.paths import PathResolver

DEFAULT_LEVEL = 1
LOG_FILENAME = "debug.log"


class DebugLogger:
    """Append-only JSON-lines logger."""

    def __init__(self, log_path: Optional[Path] = None, level: Optional[int] = None) -> None:
        self.log_path = log_path or (PathResolver.state_dir() / LOG_FILENAME)
        self.level = _level_from_env() if level is None else level

    def _write(self, event: Dict[str, Any]) -> None:
        """Write an event with common fields filled in."""
        if self.level < 1:
            return
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "pid": os.getpid(),
        }
        record.update(event)
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, default=str) + "\n")
        except OSError:
            pass

    def debug(self, event: str, **fields: Any) -> None:
        if self.level >= 2:
            self._write({"event": event, "level": "debug", **fields})

    def info(self, event: str, **fields: Any) -> None:
        self._write({"event": event, "level": "info", **fields})

    def error(self, event: str, **fields: Any) -> None:
        self._write({"event": event, "level": "error", **fields})

    # -- Domain events -------------------------------------------------------

    def load_started(self, kind: str, region: str, offset: int, page_size: int, **extra: Any) -> None:
        self.info("load_started", kind=kind, region=region, offset=offset, page_size=page_size, **extra)

    def load_finished(self, kind: str, count: int, has_more: bool) -> None:
        self.info("load_finished", kind=kind, count=count, has_more=has_more)

    def load_failed(self, kind: str, err: str) -> None:
        self.error("load_failed", kind=kind, err=err)

    def task_cancelled(self, kind: str) -> None:
        self.debug("task_cancelled", kind=kind)

    def settings_saved(self, path: Path) -> None:
        self.info("settings_saved", path=str(path))

    def settings_error(self, op: str, err: str) -> None:
        self.error("settings_error", op=op, err=err)


def _level_from_env() -> int:
    raw = os.environ.get("DEALVE_DEBUG")
    if raw is None or raw == "":
        return DEFAULT_LEVEL
    try:
        return int(raw)
    except ValueError:
        return DEFAULT_LEVEL


_logger: Optional[DebugLogger] = None


def get_logger() -> DebugLogger:
    """Get the process-wide logger, creating it on first use."""
    global _logger
    if _logger is None:
        _logger = DebugLogger()
    return _logger


def reset_logger() -> None:
    """Drop the cached logger so env changes (tests) take effect."""
    global _logger
    _logger = None
