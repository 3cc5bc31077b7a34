from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict

from .paths import get_default_settings_paths, get_logs_dir
from .settings_schema import SETTINGS_VALIDATOR

__all__ = [
    "DEFAULT_SETTINGS",
    "SETTINGS_VERSION",
    "load_settings",
    "merge_defaults",
    "save_settings",
]

SETTINGS_VERSION = 1


DEFAULT_SETTINGS: Dict[str, Any] = {
    "version": SETTINGS_VERSION,
    "backup_root": None,
    "make": {
        "executable": "make",
        "timeout_s": None,
        "targets": {
            "clean": "clean",
            "config": "config",
            "data_transfer": "datagouv-to-upload",
            "recipe": "recipe-run",
            "watch": "watch-run",
            "index_start": "elasticsearch",
            "index_stop": "elasticsearch-stop",
            "backup_dir": "backup-dir",
            "backup": "backup",
        },
    },
    "index_store": {
        "container": "matchid-elasticsearch",
        "url": "http://localhost:9200",
        "index": "deces",
        "status_timeout_s": 30,
        "stop_for_backup": False,
    },
    "archives": {
        "pattern": "esdata_*.tar",
        "sidecar_suffix": ".snar",
        "keep_last": 2,
    },
    "stats": {
        "log_pattern": "*deces_dataprep*",
        "min_digits": 8,
        "completion_marker": "successfully fininshed",
        "end_marker": "end of all",
        "query_doc_count": True,
    },
    "notify": {
        "webhook_url": None,
        "timeout_s": 10,
    },
}


def merge_defaults(data: Dict[str, Any]) -> Dict[str, Any]:
    def _merge(default: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key, value in default.items():
            if isinstance(value, dict):
                current = payload.get(key)
                if isinstance(current, dict):
                    result[key] = _merge(value, current)
                else:
                    result[key] = _merge(value, {})
            elif isinstance(value, list):
                current = payload.get(key)
                result[key] = list(current) if isinstance(current, list) else list(value)
            else:
                result[key] = payload.get(key, value)
        for key, value in payload.items():
            if key not in result:
                result[key] = value
        return result

    return _merge(DEFAULT_SETTINGS, data or {})


def _apply_migrations(settings: Dict[str, Any]) -> Dict[str, Any]:
    version = settings.get("version")
    try:
        version_int = int(version)
    except (TypeError, ValueError):
        version_int = 0
    if version_int < SETTINGS_VERSION:
        settings["version"] = SETTINGS_VERSION
    return settings


def _log_unknown_keys(settings: Dict[str, Any], working_dir: Path) -> None:
    unknown = list(SETTINGS_VALIDATOR.unknown_keys(settings))
    if not unknown:
        return
    logs_dir = get_logs_dir(working_dir)
    payload = {
        "ts": time.time(),
        "unknown": unknown,
    }
    target = logs_dir / "settings_unknown.json"
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
    except OSError:
        return


def _read_first_settings(working_dir: Path) -> Dict[str, Any]:
    for candidate in get_default_settings_paths(working_dir):
        try:
            loaded = json.loads(candidate.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            continue
        if isinstance(loaded, dict):
            return loaded
    return {}


def load_settings(working_dir: Path) -> Dict[str, Any]:
    """Return settings for *working_dir* merged over the defaults.

    ``working_dir`` is always set to the directory the settings were loaded
    for, regardless of the file contents.
    """

    merged = merge_defaults(_read_first_settings(working_dir))
    merged = _apply_migrations(merged)
    merged["working_dir"] = str(working_dir)
    _log_unknown_keys(merged, working_dir)
    return merged


def save_settings(settings: Dict[str, Any], working_dir: Path) -> Path:
    merged = merge_defaults(dict(settings))
    merged = _apply_migrations(merged)
    merged.pop("working_dir", None)
    path = get_default_settings_paths(working_dir)[0]
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(merged, handle, ensure_ascii=False, indent=2)
    return path
