"""Sequential refresh of the local index deployment."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from backup import (
    MissingSourceDirectory,
    RotationPolicy,
    RotationSummary,
    find_latest_archive,
    mirror_directory,
    rotate_archive,
)
from core.config import RefreshConfig, read_artifacts
from core.paths import (
    get_artifacts_path,
    get_backend_backup_dir,
    get_backend_log_dir,
    get_backend_upload_dir,
    get_backup_root_archive_dir,
    get_backup_root_upload_dir,
)
from notify import (
    WebhookNotifier,
    format_backup_message,
    format_failure_message,
    format_missing_log_message,
    format_stats_message,
)
from stats import IndexationStats, LogFileMissing, extract_stats, find_latest_log, parse_doc_count

from .logs import RunLogger
from .runner import TaskFailedError, TaskRunner

WEBHOOK_ENV = "DISCORD_WEBHOOK_URL"


@dataclass(slots=True)
class StepResult:
    name: str
    ok: bool
    duration_s: float
    skipped: bool = False
    detail: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class RunReport:
    steps: List[StepResult] = field(default_factory=list)
    stats: Optional[IndexationStats] = None
    rotation: Optional[RotationSummary] = None
    failed_step: Optional[str] = None
    run_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failed_step is None


class RefreshPipeline:
    """Run every refresh step in order, stopping at the first failure.

    Only a missing processing log is tolerated: it is reported through the
    notifier and the statistics step is skipped. Nothing is rolled back when a
    later step fails.
    """

    def __init__(
        self,
        config: RefreshConfig,
        runner: TaskRunner,
        notifier: Optional[WebhookNotifier] = None,
        *,
        logger: RunLogger,
        echo: Callable[[str], None] = print,
        skip_processing: bool = False,
    ) -> None:
        self._config = config
        self._runner = runner
        self._notifier = notifier
        self._logger = logger
        self._echo = echo
        self._skip_processing = skip_processing
        self._report = RunReport()

    @property
    def notifier(self) -> Optional[WebhookNotifier]:
        return self._notifier

    @property
    def report(self) -> RunReport:
        return self._report

    # ------------------------------------------------------------------
    def run(self) -> RunReport:
        self._report = RunReport(run_id=getattr(self._logger, "run_id", None))
        steps: List[tuple[str, Callable[[], Optional[Dict[str, Any]]]]] = [
            ("preflight", self._preflight),
            ("prepare", self._prepare),
        ]
        if not self._skip_processing:
            steps.extend(
                [
                    ("restore-upload", self._restore_upload),
                    ("process", self._process),
                    ("report-stats", self._report_stats),
                ]
            )
        steps.extend(
            [
                ("backup", self._backup),
                ("archive", self._archive),
                ("notify-backups", self._notify_backups),
            ]
        )
        self._logger.event(event="run_started", phase="run", ok=True, steps=[name for name, _ in steps])
        for name, action in steps:
            self._step(name, action)
        self._logger.event(event="run_finished", phase="run", ok=True)
        self._echo("Refresh completed.")
        return self._report

    def _step(self, name: str, action: Callable[[], Optional[Dict[str, Any]]]) -> None:
        self._echo(f"==> {name}")
        start = time.monotonic()
        try:
            detail = action() or {}
        except Exception as exc:
            duration = time.monotonic() - start
            self._report.failed_step = name
            self._report.steps.append(StepResult(name=name, ok=False, duration_s=duration, detail={"error": str(exc)}))
            self._echo(f"FAIL {name}: {exc}")
            self._logger.event(
                event="step_failed",
                phase=name,
                ok=False,
                error=str(exc),
                error_type=type(exc).__name__,
                duration_ms=int(duration * 1000),
            )
            self._send(format_failure_message(name, exc))
            raise
        duration = time.monotonic() - start
        skipped = bool(detail.pop("skipped", False))
        self._report.steps.append(StepResult(name=name, ok=True, duration_s=duration, skipped=skipped, detail=detail))
        self._logger.event(
            event="step_done",
            phase=name,
            ok=True,
            skipped=skipped,
            duration_ms=int(duration * 1000),
            **detail,
        )
        self._echo(f"{'SKIP' if skipped else 'OK'} {name} ({duration:.1f}s)")

    def _send(self, message: str) -> bool:
        if self._notifier is None:
            return False
        return self._notifier.send(message)

    # ------------------------------------------------------------------
    def _preflight(self) -> Dict[str, Any]:
        if self._skip_processing:
            source = get_backend_upload_dir(self._config.working_dir)
        else:
            source = get_backup_root_upload_dir(self._config.backup_root)
        if not source.is_dir():
            raise MissingSourceDirectory(f"Source upload directory missing: {source}")
        if not self._config.working_dir.is_dir():
            raise MissingSourceDirectory(f"Working directory missing: {self._config.working_dir}")
        return {"backup_root": str(self._config.backup_root)}

    def _prepare(self) -> Dict[str, Any]:
        self._runner.clean()
        self._runner.configure()
        if self._notifier is None:
            self._notifier = self._build_notifier()
        if not self._config.notify_enabled:
            self._echo("Notifications disabled.")
        elif not self._notifier.enabled:
            self._echo(f"WARNING {WEBHOOK_ENV} is not set; notifications will be skipped.")
        return {"webhook": self._notifier.describe()}

    def _build_notifier(self) -> WebhookNotifier:
        if not self._config.notify_enabled:
            return WebhookNotifier(None)
        url = self._config.webhook_url
        if not url:
            url = read_artifacts(get_artifacts_path(self._config.working_dir)).get(WEBHOOK_ENV)
        return WebhookNotifier(url, timeout=self._config.notify_timeout_s)

    def _restore_upload(self) -> Dict[str, Any]:
        summary = mirror_directory(
            get_backup_root_upload_dir(self._config.backup_root),
            get_backend_upload_dir(self._config.working_dir),
            logger=self._logger,
        )
        return {"files": summary.files, "bytes": summary.size_bytes}

    def _process(self) -> None:
        self._runner.run_data_transfer()
        self._runner.run_recipe()
        self._runner.watch_recipe()

    def _doc_count(self) -> Optional[int]:
        if not self._config.query_doc_count:
            return None
        try:
            table = self._runner.index_status()
        except TaskFailedError as exc:
            self._logger.warning("doc_count_unavailable", error=str(exc))
            return None
        return parse_doc_count(table, self._config.index_name)

    def _report_stats(self) -> Dict[str, Any]:
        try:
            log_path = find_latest_log(get_backend_log_dir(self._config.working_dir), self._config.log_pattern)
            stats = extract_stats(
                log_path,
                min_digits=self._config.min_digits,
                completion_marker=self._config.completion_marker,
                end_marker=self._config.end_marker,
                doc_count=self._doc_count(),
            )
        except LogFileMissing as exc:
            self._logger.warning("log_file_missing", error=str(exc))
            self._send(format_missing_log_message(str(exc)))
            return {"skipped": True, "reason": "log_file_missing"}
        self._report.stats = stats
        delivered = self._send(format_stats_message(stats))
        return {**stats.as_dict(), "notified": delivered}

    def _backup(self) -> None:
        if not self._config.stop_index_for_backup:
            self._runner.prepare_backup_dir()
            self._runner.run_backup()
            return
        self._runner.stop_index_store()
        try:
            self._runner.prepare_backup_dir()
            self._runner.run_backup()
        finally:
            # The index store comes back up even when the backup target fails.
            self._runner.start_index_store()

    def _archive(self) -> Dict[str, Any]:
        config = self._config
        mirror_directory(
            get_backend_upload_dir(config.working_dir),
            get_backup_root_upload_dir(config.backup_root),
            logger=self._logger,
        )
        policy = RotationPolicy(
            keep_last=config.keep_last,
            pattern=config.archive_pattern,
            sidecar_suffix=config.sidecar_suffix,
        )
        archive = find_latest_archive(
            get_backend_backup_dir(config.working_dir),
            policy.pattern,
            sidecar_suffix=policy.sidecar_suffix,
        )
        summary = rotate_archive(
            archive,
            get_backup_root_archive_dir(config.backup_root),
            policy,
            logger=self._logger,
        )
        self._report.rotation = summary
        return {"archive": archive.name, "kept": summary.kept, "removed": summary.removed}

    def _notify_backups(self) -> Dict[str, Any]:
        summary = self._report.rotation or RotationSummary()
        return {"notified": self._send(format_backup_message(summary, self._config.backup_root))}


__all__ = ["RefreshPipeline", "RunReport", "StepResult"]
