from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

__all__ = [
    "get_backend_backup_dir",
    "get_backend_dir",
    "get_backend_esdata_dir",
    "get_backend_log_dir",
    "get_backend_upload_dir",
    "get_backup_root_archive_dir",
    "get_backup_root_upload_dir",
    "get_artifacts_path",
    "get_default_backup_root",
    "get_default_settings_paths",
    "get_logs_dir",
    "resolve_working_dir",
]

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _expand_path(value: str) -> Path:
    expanded = os.path.expandvars(os.path.expanduser(value))
    return Path(expanded).resolve()


def resolve_working_dir(override: Optional[Path] = None) -> Path:
    """Resolve the deployment checkout in which ``make`` targets are run."""

    if override is not None:
        return Path(override).expanduser().resolve()
    env_home = os.environ.get("ESREFRESH_HOME")
    if env_home:
        try:
            return _expand_path(env_home)
        except Exception:
            pass
    return Path.cwd().resolve()


def get_backend_dir(working_dir: Path) -> Path:
    return working_dir / "backend"


def get_backend_upload_dir(working_dir: Path) -> Path:
    return get_backend_dir(working_dir) / "upload"


def get_backend_backup_dir(working_dir: Path) -> Path:
    return get_backend_dir(working_dir) / "backup"


def get_backend_esdata_dir(working_dir: Path) -> Path:
    return get_backend_dir(working_dir) / "esdata"


def get_backend_log_dir(working_dir: Path) -> Path:
    return get_backend_dir(working_dir) / "log"


def get_default_backup_root(working_dir: Path) -> Path:
    return working_dir.parent / "backup"


def get_backup_root_upload_dir(backup_root: Path) -> Path:
    return backup_root / "upload"


def get_backup_root_archive_dir(backup_root: Path) -> Path:
    return backup_root / "backup"


def get_artifacts_path(working_dir: Path) -> Path:
    return working_dir / "artifacts"


def get_logs_dir(working_dir: Path) -> Path:
    return working_dir / "logs"


def get_default_settings_paths(working_dir: Path) -> list[Path]:
    """Return the search order for settings files."""

    return [working_dir / "esrefresh.json", _PROJECT_ROOT / "settings.json"]
