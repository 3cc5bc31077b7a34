"""Immutable run configuration assembled once at startup."""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .paths import get_default_backup_root
from .settings import DEFAULT_SETTINGS

__all__ = ["RefreshConfig", "read_artifacts"]

_EXPORT_LINE = re.compile(r"^export\s+([A-Za-z_][A-Za-z0-9_]*)\s*:?=\s*(.*)$")


def _section(settings: Mapping[str, Any], name: str) -> Dict[str, Any]:
    value = settings.get(name)
    return dict(value) if isinstance(value, Mapping) else {}


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: Optional[float]) -> Optional[float]:
    if value in (None, ""):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def read_artifacts(path: Path) -> Dict[str, str]:
    """Parse the ``export KEY=VALUE`` lines written by ``make config``."""

    values: Dict[str, str] = {}
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return values
    for line in lines:
        match = _EXPORT_LINE.match(line.strip())
        if not match:
            continue
        key, raw = match.group(1), match.group(2).strip()
        if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "'\"":
            raw = raw[1:-1]
        values[key] = raw
    return values


@dataclass(frozen=True)
class RefreshConfig:
    working_dir: Path
    backup_root: Path
    make_executable: str = "make"
    make_timeout_s: Optional[float] = None
    targets: Mapping[str, str] = field(default_factory=dict)
    index_container: str = "matchid-elasticsearch"
    index_url: str = "http://localhost:9200"
    index_name: str = "deces"
    index_status_timeout_s: float = 30.0
    stop_index_for_backup: bool = False
    archive_pattern: str = "esdata_*.tar"
    sidecar_suffix: str = ".snar"
    keep_last: int = 2
    log_pattern: str = "*deces_dataprep*"
    min_digits: int = 8
    completion_marker: str = "successfully fininshed"
    end_marker: str = "end of all"
    query_doc_count: bool = True
    webhook_url: Optional[str] = None
    notify_timeout_s: float = 10.0
    notify_enabled: bool = True

    @classmethod
    def from_settings(
        cls,
        settings: Mapping[str, Any],
        env: Optional[Mapping[str, str]] = None,
    ) -> "RefreshConfig":
        env = os.environ if env is None else env
        working_dir = Path(str(settings.get("working_dir") or Path.cwd())).resolve()

        backup_value = env.get("ESREFRESH_BACKUP_ROOT") or settings.get("backup_root")
        if backup_value:
            backup_root = Path(str(backup_value)).expanduser()
            if not backup_root.is_absolute():
                backup_root = working_dir / backup_root
        else:
            backup_root = get_default_backup_root(working_dir)

        make = _section(settings, "make")
        index_store = _section(settings, "index_store")
        archives = _section(settings, "archives")
        stats = _section(settings, "stats")
        notify = _section(settings, "notify")
        targets = make.get("targets") if isinstance(make.get("targets"), Mapping) else {}

        return cls(
            working_dir=working_dir,
            backup_root=backup_root.resolve(),
            make_executable=str(make.get("executable") or "make"),
            make_timeout_s=_as_float(make.get("timeout_s"), None),
            targets=dict(targets),
            index_container=str(index_store.get("container") or cls.index_container),
            index_url=str(index_store.get("url") or cls.index_url).rstrip("/"),
            index_name=str(index_store.get("index") or cls.index_name),
            index_status_timeout_s=_as_float(index_store.get("status_timeout_s"), 30.0) or 30.0,
            stop_index_for_backup=bool(index_store.get("stop_for_backup", False)),
            archive_pattern=str(archives.get("pattern") or cls.archive_pattern),
            sidecar_suffix=str(archives.get("sidecar_suffix") or cls.sidecar_suffix),
            keep_last=max(_as_int(env.get("ESREFRESH_KEEP", archives.get("keep_last")), 2), 1),
            log_pattern=str(stats.get("log_pattern") or cls.log_pattern),
            min_digits=max(_as_int(env.get("ESREFRESH_MIN_DIGITS", stats.get("min_digits")), 8), 1),
            completion_marker=str(stats.get("completion_marker") or cls.completion_marker),
            end_marker=str(stats.get("end_marker") or cls.end_marker),
            query_doc_count=bool(stats.get("query_doc_count", True)),
            webhook_url=env.get("DISCORD_WEBHOOK_URL") or notify.get("webhook_url") or None,
            notify_timeout_s=_as_float(notify.get("timeout_s"), 10.0) or 10.0,
        )

    def target(self, name: str) -> str:
        defaults = DEFAULT_SETTINGS["make"]["targets"]
        return str(self.targets.get(name) or defaults.get(name) or name)
