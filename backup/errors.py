"""Error hierarchy for backup operations."""
from __future__ import annotations

from core.errors import RefreshError


class BackupError(RefreshError):
    """Base exception for backup related failures."""


class MissingSourceDirectory(BackupError):
    """Raised when a directory to be copied does not exist."""


class NoArchiveFound(BackupError):
    """Raised when no archive matches the naming pattern."""


class OrphanCleanupFailure(BackupError):
    """Raised when a sidecar without archive cannot be removed."""


__all__ = ["BackupError", "MissingSourceDirectory", "NoArchiveFound", "OrphanCleanupFailure"]
