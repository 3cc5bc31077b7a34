"""Indexation statistics read from processing logs."""
from __future__ import annotations

from .errors import LogFileMissing
from .extract import extract_stats, find_latest_log, parse_doc_count
from .types import IndexationStats

__all__ = ["IndexationStats", "LogFileMissing", "extract_stats", "find_latest_log", "parse_doc_count"]
