"""Refresh pipeline orchestration."""
from __future__ import annotations

from .logs import RunLogger
from .refresh import RefreshPipeline, RunReport, StepResult
from .runner import MakeTaskRunner, TaskFailedError, TaskRunner

__all__ = [
    "MakeTaskRunner",
    "RefreshPipeline",
    "RunLogger",
    "RunReport",
    "StepResult",
    "TaskFailedError",
    "TaskRunner",
]
