"""Directory copies between the backend tree and the backup root."""
from __future__ import annotations

import shutil
from pathlib import Path

from .errors import MissingSourceDirectory
from .types import MirrorSummary


def _tree_stats(root: Path) -> tuple[int, int]:
    files = 0
    size = 0
    for path in root.rglob("*"):
        if path.is_file():
            files += 1
            size += path.stat().st_size
    return files, size


def mirror_directory(source: Path, destination: Path, *, replace: bool = False, logger) -> MirrorSummary:
    """Copy the *source* tree onto *destination*.

    With ``replace`` the destination is removed first; otherwise files are
    merged into it, overwriting same-named files.
    """

    source = Path(source)
    destination = Path(destination)
    if not source.is_dir():
        raise MissingSourceDirectory(f"Source directory missing: {source}")

    if replace and destination.exists():
        shutil.rmtree(destination)
        logger.info("mirror_cleared", dest=str(destination))
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source, destination, dirs_exist_ok=True)

    files, size = _tree_stats(destination)
    logger.event(
        event="mirror_done",
        phase="mirror",
        ok=True,
        source=str(source),
        dest=str(destination),
        files=files,
        bytes=size,
    )
    return MirrorSummary(source=source, destination=destination, files=files, size_bytes=size, replaced=replace)


__all__ = ["mirror_directory"]
