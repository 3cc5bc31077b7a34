from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from core.config import RefreshConfig
from core.errors import RefreshError
from core.logging_utils import configure_json_logging
from core.paths import resolve_working_dir
from core.settings import load_settings

from .logs import RunLogger
from .refresh import RefreshPipeline, RunReport
from .runner import MakeTaskRunner


def build_config(args: argparse.Namespace, working_dir: Path) -> RefreshConfig:
    config = RefreshConfig.from_settings(load_settings(working_dir))
    overrides: Dict[str, Any] = {}
    if args.backup_root is not None:
        overrides["backup_root"] = args.backup_root.expanduser().resolve()
    if args.keep is not None:
        overrides["keep_last"] = max(args.keep, 1)
    if args.min_digits is not None:
        overrides["min_digits"] = max(args.min_digits, 1)
    if args.no_notify:
        overrides["notify_enabled"] = False
    if args.no_doc_count:
        overrides["query_doc_count"] = False
    return dataclasses.replace(config, **overrides) if overrides else config


def report_payload(report: RunReport) -> Dict[str, Any]:
    return {
        "ok": report.ok,
        "run_id": report.run_id,
        "failed_step": report.failed_step,
        "steps": [
            {
                "name": step.name,
                "ok": step.ok,
                "skipped": step.skipped,
                "duration_s": round(step.duration_s, 3),
            }
            for step in report.steps
        ],
        "stats": report.stats.as_dict() if report.stats else None,
        "rotation": dataclasses.asdict(report.rotation) if report.rotation else None,
    }


def cli(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Refresh the local death records index and back it up")
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=None,
        help="Deployment checkout holding the Makefile (default: $ESREFRESH_HOME or cwd)",
    )
    parser.add_argument("--backup-root", type=Path, default=None, help="Backup root (default: ../backup)")
    parser.add_argument("--keep", type=int, default=None, help="Number of index archives to retain")
    parser.add_argument("--min-digits", type=int, default=None, help="Minimum digits of log line counters")
    parser.add_argument("--no-notify", action="store_true", help="Do not post webhook notifications")
    parser.add_argument("--no-doc-count", action="store_true", help="Do not query the index document count")
    parser.add_argument(
        "--skip-processing",
        action="store_true",
        help="Only run the backup and archive steps",
    )
    parser.add_argument("--json", action="store_true", help="Print the run report as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug level logging")
    args = parser.parse_args(argv)

    working_dir = resolve_working_dir(args.project_dir)
    configure_json_logging(working_dir, verbose=args.verbose)
    config = build_config(args, working_dir)
    pipeline = RefreshPipeline(
        config,
        MakeTaskRunner(config),
        logger=RunLogger(working_dir),
        skip_processing=args.skip_processing,
    )
    try:
        report = pipeline.run()
    except (RefreshError, OSError) as exc:
        print(f"Refresh aborted: {exc}", file=sys.stderr)
        return 1
    if args.json:
        print(json.dumps(report_payload(report), indent=2, default=str))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(cli())
