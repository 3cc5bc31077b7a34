from __future__ import annotations

from core.errors import RefreshError


class LogFileMissing(RefreshError):
    """Raised when the processing log cannot be found."""


__all__ = ["LogFileMissing"]
