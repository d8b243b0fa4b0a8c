"""Runtime defaults for stategraph.

Values can be overridden through STATEGRAPH_* environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


def _env_int(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Soft cap on accumulated paths/loops for CLI and MCP searches
DEFAULT_MAX_RESULTS: int = _env_int("STATEGRAPH_MAX_RESULTS", 100)

DEFAULT_TARGET_PARTITIONS: int = _env_int("STATEGRAPH_TARGET_PARTITIONS", 3)

# Minimum seconds between progress callbacks
PROGRESS_INTERVAL_S: float = _env_float("STATEGRAPH_PROGRESS_INTERVAL_S", 0.1)

# Path search progress estimate: expanded / (state_count * multiplier)
SEARCH_SIZE_MULTIPLIER: int = 2


def debug_logs_enabled() -> bool:
    return os.environ.get("STATEGRAPH_DEBUG_LOGS") == "1"


def get_log_dir() -> Optional[Path]:
    override = (os.environ.get("STATEGRAPH_LOG_DIR") or "").strip()
    if override:
        return Path(override)
    return None
