"""Pull indexation counters and timings out of the dataprep log."""
from __future__ import annotations

import fnmatch
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional, Pattern, Tuple

from .errors import LogFileMissing
from .types import IndexationStats

LOGGER = logging.getLogger("esrefresh.stats")

DEFAULT_LOG_PATTERN = "*deces_dataprep*"
DEFAULT_MIN_DIGITS = 8
COMPLETION_MARKER = "successfully fininshed"
END_MARKER = "end of all"

# Column positions of ``_cat/indices`` output when no header row is present.
_CAT_INDEX_COLUMN = 2
_CAT_DOCS_COLUMN = 6


@lru_cache(maxsize=16)
def _counter_pattern(label: str, min_digits: int) -> Pattern[str]:
    return re.compile(rf"(?<!\d)(\d{{{min_digits},}}) {re.escape(label)}")


def _iter_lines(path: Path) -> Iterator[str]:
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        for line in handle:
            yield line.rstrip("\r\n")


def _timestamp(line: Optional[str]) -> Optional[str]:
    if not line:
        return None
    fields = line.split()
    if len(fields) < 2:
        return None
    return f"{fields[0]} {fields[1]}"


def _counter(line: Optional[str], label: str, min_digits: int) -> Optional[int]:
    if not line:
        return None
    match = _counter_pattern(label, min_digits).search(line)
    return int(match.group(1)) if match else None


def find_latest_log(log_dir: Path, pattern: str = DEFAULT_LOG_PATTERN) -> Path:
    """Return the last matching log under *log_dir* in file name order.

    Matching is case-insensitive and recursive; dataprep logs carry a
    timestamp in their names so the last one is the newest.
    """

    log_dir = Path(log_dir)
    if not log_dir.is_dir():
        raise LogFileMissing(f"Log directory missing: {log_dir}")
    lowered = pattern.lower()
    candidates = sorted(
        (path for path in log_dir.rglob("*") if fnmatch.fnmatchcase(path.name.lower(), lowered) and path.is_file()),
        key=lambda path: (path.name, str(path)),
    )
    if not candidates:
        raise LogFileMissing(f"No log matching {pattern!r} in {log_dir}")
    return candidates[-1]


def scan_log(
    log_path: Path,
    *,
    completion_marker: str = COMPLETION_MARKER,
    end_marker: str = END_MARKER,
) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Return the first line, last completion line and last end line."""

    first: Optional[str] = None
    completion: Optional[str] = None
    end: Optional[str] = None
    for index, line in enumerate(_iter_lines(log_path)):
        if index == 0:
            first = line
        if completion_marker in line:
            completion = line
        if end_marker in line:
            end = line
    return first, completion, end


def extract_stats(
    log_path: Path,
    *,
    min_digits: int = DEFAULT_MIN_DIGITS,
    completion_marker: str = COMPLETION_MARKER,
    end_marker: str = END_MARKER,
    doc_count: Optional[int] = None,
) -> IndexationStats:
    log_path = Path(log_path)
    if not log_path.is_file():
        raise LogFileMissing(f"Log file missing: {log_path}")

    first, completion, end = scan_log(log_path, completion_marker=completion_marker, end_marker=end_marker)
    stats = IndexationStats(
        lines_processed=_counter(completion, "lines processed", min_digits),
        lines_written=_counter(completion, "lines written", min_digits),
        start_time=_timestamp(first),
        end_time=_timestamp(end),
        doc_count=doc_count,
        log_path=log_path,
    )
    if completion is None:
        LOGGER.warning("completion marker not found", extra={"log_path": str(log_path)})
    LOGGER.info("indexation stats extracted", extra=stats.as_dict())
    return stats


def parse_doc_count(table: str, index: str, *, column: str = "docs.count") -> Optional[int]:
    """Read the document count of *index* from ``_cat/indices`` style output."""

    rows = [line.split() for line in (table or "").splitlines() if line.strip()]
    if not rows:
        return None
    index_col, docs_col = _CAT_INDEX_COLUMN, _CAT_DOCS_COLUMN
    header = rows[0]
    if column in header and "index" in header:
        index_col = header.index("index")
        docs_col = header.index(column)
        rows = rows[1:]
    for fields in rows:
        if len(fields) <= max(index_col, docs_col):
            continue
        if fields[index_col] != index:
            continue
        try:
            return int(fields[docs_col])
        except ValueError:
            return None
    return None


__all__ = [
    "COMPLETION_MARKER",
    "DEFAULT_LOG_PATTERN",
    "DEFAULT_MIN_DIGITS",
    "END_MARKER",
    "extract_stats",
    "find_latest_log",
    "parse_doc_count",
    "scan_log",
]
