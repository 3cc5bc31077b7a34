from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

from .paths import get_logs_dir

LOG_FILENAME = "esrefresh.log.jsonl"
CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"

_RESERVED_ATTRS = set(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record; ``extra`` fields are copied when serializable."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RESERVED_ATTRS or key in payload:
                continue
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                continue
            payload[key] = value
        return json.dumps(payload, ensure_ascii=False)


def _has_handler(logger: logging.Logger, kind: type, target: Optional[str] = None) -> bool:
    for handler in logger.handlers:
        if type(handler) is not kind:
            continue
        if target is None or getattr(handler, "baseFilename", None) == target:
            return True
    return False


def configure_json_logging(working_dir: Path, name: str = "esrefresh", *, verbose: bool = False) -> logging.Logger:
    """Send ``esrefresh.*`` records to ``logs/esrefresh.log.jsonl``.

    With *verbose* the level drops to DEBUG and records are echoed on stderr
    as well. Calling this again for the same directory adds no handler.
    """

    logs_dir = get_logs_dir(working_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = str(logs_dir / LOG_FILENAME)
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not _has_handler(logger, logging.FileHandler, log_path):
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(JsonLogFormatter())
        logger.addHandler(file_handler)
    if verbose and not _has_handler(logger, logging.StreamHandler):
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console)
    logger.propagate = False
    return logger


def redact_secret(value: str | None) -> str:
    """Hide the token part of a webhook URL (or of any other secret)."""

    if not value:
        return ""
    parts = urlsplit(value)
    if parts.scheme and parts.netloc:
        return f"{parts.scheme}://{parts.netloc}/***"
    if len(value) <= 6:
        return "***"
    return f"{value[:3]}***{value[-2:]}"
