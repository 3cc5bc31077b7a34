"""Text bodies for run notifications (Discord markdown)."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from backup.types import RotationSummary
from stats.types import IndexationStats

_UNKNOWN = "n/a"


def _value(value: Optional[object]) -> str:
    return _UNKNOWN if value is None else str(value)


def format_stats_message(stats: IndexationStats) -> str:
    lines = [
        "✅ **Death records indexation finished!**",
        "",
        "📊 **Statistics:**",
        f"• Lines processed: **{_value(stats.lines_processed)}**",
        f"• Lines written: **{_value(stats.lines_written)}**",
    ]
    if stats.doc_count is not None:
        lines.append(f"• Documents in index: **{stats.doc_count}**")
    lines.append(f"• Start: {_value(stats.start_time)}")
    lines.append(f"• End: {_value(stats.end_time)}")
    return "\n".join(lines)


def format_missing_log_message(detail: Optional[str] = None) -> str:
    message = "❌ **Error: processing log not found**"
    if detail:
        message += f"\n{detail}"
    return message


def format_backup_message(summary: RotationSummary, backup_root: Path) -> str:
    kept = ", ".join(summary.kept) or _UNKNOWN
    lines = [
        "💾 **Backups up to date!**",
        "",
        f"Local backups were written to `{backup_root}`",
        f"• Archives kept: {kept}",
    ]
    if summary.removed:
        lines.append(f"• Archives rotated out: {', '.join(summary.removed)}")
    return "\n".join(lines)


def format_failure_message(step: str, error: BaseException) -> str:
    return f"🛑 **Refresh failed at step `{step}`**\n{type(error).__name__}: {error}"


__all__ = [
    "format_backup_message",
    "format_failure_message",
    "format_missing_log_message",
    "format_stats_message",
]
