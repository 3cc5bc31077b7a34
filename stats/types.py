from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class IndexationStats:
    """Counters and timestamps read from one processing log."""

    lines_processed: Optional[int] = None
    lines_written: Optional[int] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    doc_count: Optional[int] = None
    log_path: Optional[Path] = None

    def as_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["log_path"] = str(self.log_path) if self.log_path else None
        return payload


__all__ = ["IndexationStats"]
