"""Locate index archives produced by the backup target."""
from __future__ import annotations

from pathlib import Path
from typing import List

from .errors import NoArchiveFound
from .types import Archive

DEFAULT_PATTERN = "esdata_*.tar"
DEFAULT_SIDECAR_SUFFIX = ".snar"


def list_archives(
    directory: Path,
    pattern: str = DEFAULT_PATTERN,
    *,
    sidecar_suffix: str = DEFAULT_SIDECAR_SUFFIX,
) -> List[Archive]:
    """Return archives in *directory*, newest first.

    Archives sharing a modification time are ordered by name, descending, so
    the result is stable across runs.
    """

    items: List[Archive] = []
    directory = Path(directory)
    if not directory.is_dir():
        return items
    for path in directory.glob(pattern):
        if not path.is_file():
            continue
        stat = path.stat()
        items.append(
            Archive(
                path=path,
                mtime=stat.st_mtime,
                size_bytes=stat.st_size,
                sidecar=path.with_suffix(sidecar_suffix),
            )
        )
    items.sort(key=lambda archive: (archive.mtime, archive.name), reverse=True)
    return items


def find_latest_archive(
    directory: Path,
    pattern: str = DEFAULT_PATTERN,
    *,
    sidecar_suffix: str = DEFAULT_SIDECAR_SUFFIX,
) -> Archive:
    archives = list_archives(directory, pattern, sidecar_suffix=sidecar_suffix)
    if not archives:
        raise NoArchiveFound(f"No archive matching {pattern!r} in {directory}")
    return archives[0]


__all__ = ["DEFAULT_PATTERN", "DEFAULT_SIDECAR_SUFFIX", "find_latest_archive", "list_archives"]
