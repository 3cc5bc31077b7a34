"""Structured run log for refresh pipelines.

Every entry written by one :class:`RunLogger` carries the same ``run_id`` and
the milliseconds elapsed since the logger was created, so a single run can be
picked out of ``logs/refresh.jsonl``. Entries are forwarded to the
``esrefresh.run`` logger with the run id attached.
"""
from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from core.paths import get_logs_dir

LOGGER = logging.getLogger("esrefresh.run")
RUN_LOG_NAME = "refresh.jsonl"


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


class RunLogger:
    def __init__(self, working_dir: Path, *, run_id: Optional[str] = None) -> None:
        self._log_path = get_logs_dir(Path(working_dir)) / RUN_LOG_NAME
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._run_id = run_id or new_run_id()
        self._started = time.monotonic()
        self._lock = Lock()

    @property
    def path(self) -> Path:
        return self._log_path

    @property
    def run_id(self) -> str:
        return self._run_id

    # ------------------------------------------------------------------
    def _write(self, level: int, event: str, ok: bool, fields: Dict[str, Any]) -> None:
        entry = {
            **fields,
            "event": event,
            "ok": bool(ok),
            "run_id": self._run_id,
            "ts": datetime.now(timezone.utc).isoformat(),
            "elapsed_ms": int((time.monotonic() - self._started) * 1000),
        }
        line = json.dumps(entry, sort_keys=True, default=str)
        with self._lock:
            with self._log_path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        LOGGER.log(level, "%s %s", event, line, extra={"run_id": self._run_id})

    def event(self, *, event: str, phase: str, ok: bool, **extra: Any) -> None:
        self._write(logging.INFO if ok else logging.ERROR, event, ok, {"phase": phase, **extra})

    def info(self, event: str, **extra: Any) -> None:
        self._write(logging.INFO, event, True, extra)

    def warning(self, event: str, **extra: Any) -> None:
        self._write(logging.WARNING, event, False, extra)

    def error(self, event: str, **extra: Any) -> None:
        self._write(logging.ERROR, event, False, extra)

    def entries(self) -> List[Dict[str, Any]]:
        """Return the entries this logger wrote, oldest first."""

        if not self._log_path.exists():
            return []
        found: List[Dict[str, Any]] = []
        with self._log_path.open("r", encoding="utf-8") as handle:
            for line in handle:
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if entry.get("run_id") == self._run_id:
                    found.append(entry)
        return found


__all__ = ["RunLogger", "new_run_id"]
