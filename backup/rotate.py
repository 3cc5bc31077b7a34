"""Copy fresh archives into a backup destination and rotate old ones."""
from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .errors import OrphanCleanupFailure
from .select import DEFAULT_PATTERN, DEFAULT_SIDECAR_SUFFIX, list_archives
from .types import Archive, RotationSummary


@dataclass(slots=True)
class RotationPolicy:
    keep_last: int = 2
    pattern: str = DEFAULT_PATTERN
    sidecar_suffix: str = DEFAULT_SIDECAR_SUFFIX

    @property
    def archive_suffix(self) -> str:
        return Path(self.pattern).suffix or ".tar"

    @property
    def sidecar_pattern(self) -> str:
        return str(Path(self.pattern).with_suffix(self.sidecar_suffix))


def _copy_into(source: Path, destination: Path, *, logger) -> Path:
    target = destination / source.name
    if target.exists() and target.resolve() == source.resolve():
        return target
    shutil.copy2(source, target)
    logger.info("copy_file", source=str(source), dest=str(target), size=target.stat().st_size)
    return target


def _remove_orphan(sidecar: Path) -> int:
    try:
        size = sidecar.stat().st_size
        sidecar.unlink()
    except OSError as exc:
        raise OrphanCleanupFailure(f"Unable to remove orphan sidecar {sidecar}: {exc}") from exc
    return size


def prune_archives(destination: Path, policy: RotationPolicy, *, logger) -> RotationSummary:
    """Keep the newest archives in *destination* and drop everything else."""

    summary = RotationSummary()
    destination = Path(destination)
    archives = list_archives(destination, policy.pattern, sidecar_suffix=policy.sidecar_suffix)
    keep_count = max(policy.keep_last, 0)

    for archive in archives[keep_count:]:
        size = archive.size_bytes
        archive.path.unlink()
        summary.removed.append(archive.name)
        summary.freed_bytes += size
        logger.warning("backup_removed", id=archive.name, reason="retention")

    summary.kept = [archive.name for archive in archives[:keep_count]]

    # A sidecar goes exactly when its archive is gone.
    for sidecar in sorted(destination.glob(policy.sidecar_pattern)):
        if not sidecar.is_file() or sidecar.with_suffix(policy.archive_suffix).is_file():
            continue
        try:
            summary.freed_bytes += _remove_orphan(sidecar)
        except OrphanCleanupFailure as exc:
            logger.warning("orphan_cleanup_failed", path=str(sidecar), error=str(exc))
            continue
        summary.orphans_removed.append(sidecar.name)
        logger.info("orphan_removed", path=str(sidecar))

    logger.event(
        event="retention_applied",
        phase="rotate",
        ok=True,
        removed=len(summary.removed),
        kept=len(summary.kept),
        orphans=len(summary.orphans_removed),
    )
    return summary


def rotate_archive(
    archive: Union[Archive, Path],
    destination: Path,
    policy: RotationPolicy,
    *,
    logger,
) -> RotationSummary:
    """Copy *archive* (and its sidecar) into *destination*, then prune.

    Copy failures propagate. Running twice with the same archive leaves the
    same retained set since copies keep the source modification time.
    """

    source = archive.path if isinstance(archive, Archive) else Path(archive)
    destination = Path(destination)
    destination.mkdir(parents=True, exist_ok=True)

    copied = [_copy_into(source, destination, logger=logger).name]
    sidecar = source.with_suffix(policy.sidecar_suffix)
    if sidecar.is_file():
        copied.append(_copy_into(sidecar, destination, logger=logger).name)

    summary = prune_archives(destination, policy, logger=logger)
    summary.copied = copied
    return summary


__all__ = ["RotationPolicy", "prune_archives", "rotate_archive"]
