"""Common dataclasses shared across backup modules."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass(slots=True)
class Archive:
    """Single ``.tar`` snapshot of the index data."""

    path: Path
    mtime: float
    size_bytes: int
    sidecar: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def has_sidecar(self) -> bool:
        return self.sidecar.is_file()


@dataclass(slots=True)
class RotationSummary:
    copied: List[str] = field(default_factory=list)
    kept: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    orphans_removed: List[str] = field(default_factory=list)
    freed_bytes: int = 0


@dataclass(slots=True)
class MirrorSummary:
    source: Path
    destination: Path
    files: int
    size_bytes: int
    replaced: bool


__all__ = ["Archive", "MirrorSummary", "RotationSummary"]
