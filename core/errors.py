"""Base error for refresh runs."""
from __future__ import annotations


class RefreshError(RuntimeError):
    """Base exception for refresh pipeline failures."""


__all__ = ["RefreshError"]
