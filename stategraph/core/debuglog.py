from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict

from .. import config

LOG_FILE_NAME = "search_debug.jsonl"


def debug_log(payload: Dict[str, Any]) -> None:
    """Best-effort, append-only debug log under STATEGRAPH_LOG_DIR (or ~/.stategraph)."""

    if not config.debug_logs_enabled():
        return
    try:
        d = config.get_log_dir() or (Path.home() / ".stategraph")
        d.mkdir(parents=True, exist_ok=True)
        p = d / LOG_FILE_NAME

        payload = dict(payload)
        payload.setdefault("ts", time.time())
        line = json.dumps(payload, ensure_ascii=False, default=str)
        with open(p, "a", encoding="utf-8") as f:
            f.write(line + "\n")
    except Exception:
        return
