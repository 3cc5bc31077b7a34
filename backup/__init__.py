"""Archive selection, rotation and directory mirroring for index backups."""
from __future__ import annotations

from .errors import BackupError, MissingSourceDirectory, NoArchiveFound, OrphanCleanupFailure
from .mirror import mirror_directory
from .rotate import RotationPolicy, prune_archives, rotate_archive
from .select import find_latest_archive, list_archives
from .types import Archive, MirrorSummary, RotationSummary

__all__ = [
    "Archive",
    "BackupError",
    "MirrorSummary",
    "MissingSourceDirectory",
    "NoArchiveFound",
    "OrphanCleanupFailure",
    "RotationPolicy",
    "RotationSummary",
    "find_latest_archive",
    "list_archives",
    "mirror_directory",
    "prune_archives",
    "rotate_archive",
]
