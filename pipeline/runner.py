"""External build and container steps behind a small interface."""
from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from core.config import RefreshConfig
from core.errors import RefreshError

LOGGER = logging.getLogger("esrefresh.runner")


class TaskFailedError(RefreshError):
    """Raised when an external build or container command fails."""

    def __init__(self, step: str, message: str, *, returncode: Optional[int] = None) -> None:
        super().__init__(f"{step}: {message}")
        self.step = step
        self.returncode = returncode


class TaskRunner(ABC):
    """Operations the refresh pipeline delegates to external tooling."""

    @abstractmethod
    def clean(self) -> None: ...

    @abstractmethod
    def configure(self) -> None: ...

    @abstractmethod
    def run_data_transfer(self) -> None: ...

    @abstractmethod
    def run_recipe(self) -> None: ...

    @abstractmethod
    def watch_recipe(self) -> None: ...

    @abstractmethod
    def start_index_store(self) -> None: ...

    @abstractmethod
    def stop_index_store(self) -> None: ...

    @abstractmethod
    def prepare_backup_dir(self) -> None: ...

    @abstractmethod
    def run_backup(self) -> None: ...

    @abstractmethod
    def index_status(self) -> str:
        """Return ``_cat/indices`` style status text from the index store."""


class MakeTaskRunner(TaskRunner):
    """Run pipeline steps as ``make`` targets inside the deployment checkout."""

    def __init__(self, config: RefreshConfig) -> None:
        self._config = config

    def _run(self, step: str, cmd: Sequence[str], *, capture: bool = False, timeout: Optional[float] = None) -> str:
        LOGGER.info("running %s", " ".join(cmd), extra={"step": step})
        try:
            proc = subprocess.run(
                list(cmd),
                cwd=str(self._config.working_dir),
                check=False,
                stdout=subprocess.PIPE if capture else None,
                stderr=subprocess.PIPE if capture else None,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise TaskFailedError(step, f"timed out after {exc.timeout}s") from exc
        except FileNotFoundError as exc:
            raise TaskFailedError(step, f"executable not found: {cmd[0]}") from exc
        if proc.returncode != 0:
            detail = ""
            if capture:
                detail = (proc.stderr or "").strip() or (proc.stdout or "").strip()
            message = f"exit status {proc.returncode}" + (f" ({detail})" if detail else "")
            raise TaskFailedError(step, message, returncode=proc.returncode)
        return (proc.stdout or "") if capture else ""

    def _make(self, name: str) -> None:
        target = self._config.target(name)
        self._run(target, [self._config.make_executable, target], timeout=self._config.make_timeout_s)

    def clean(self) -> None:
        self._make("clean")

    def configure(self) -> None:
        self._make("config")

    def run_data_transfer(self) -> None:
        self._make("data_transfer")

    def run_recipe(self) -> None:
        self._make("recipe")

    def watch_recipe(self) -> None:
        self._make("watch")

    def start_index_store(self) -> None:
        self._make("index_start")

    def stop_index_store(self) -> None:
        self._make("index_stop")

    def prepare_backup_dir(self) -> None:
        self._make("backup_dir")

    def run_backup(self) -> None:
        self._make("backup")

    def index_status_command(self) -> List[str]:
        return [
            "docker",
            "exec",
            self._config.index_container,
            "curl",
            "-s",
            f"{self._config.index_url}/_cat/indices?v",
        ]

    def index_status(self) -> str:
        return self._run(
            "index-status",
            self.index_status_command(),
            capture=True,
            timeout=self._config.index_status_timeout_s,
        )


__all__ = ["MakeTaskRunner", "TaskFailedError", "TaskRunner"]
