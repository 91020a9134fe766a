"""Sync entrypoint: download, merge, prune, clean up.

Run with ``python main.py`` (or the ``activity-sync`` console script). Exit
codes: 0 success, 1 bulk export failed (details, prune still ran), 2 sign-in
failed.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Callable, List, Optional

from activity_sync.garmin import config
from activity_sync.garmin.browser_session import BrowserSession
from activity_sync.garmin.config_validation import validate_runtime_config
from activity_sync.garmin.errors import AuthenticationFailed, ErrorCode, ExportControlNotFound, SyncError
from activity_sync.garmin.extraction import ExtractionSession
from activity_sync.garmin.logging_utils import _sync_event
from activity_sync.garmin.record_store import RecordStore
from activity_sync.garmin.telemetry import RunTelemetry
from activity_sync.garmin.utils import ensure_dirs, log_line, remove_temp_download, setup_run_logger

EXIT_OK = 0
EXIT_BULK_FAILED = 1
EXIT_AUTH_FAILED = 2


def _record_details(extraction: ExtractionSession, count: int, telemetry: RunTelemetry) -> None:
    log_line("Downloading recent splits...")
    try:
        outcomes = extraction.download_recent_details(count, config.DATA_DIR)
    except SyncError as exc:
        log_line(f"Listing recent activities failed: {exc}")
        telemetry.add("failed", "list_recent_ids", {"error": str(exc)})
        return

    for outcome in outcomes:
        meta: dict[str, Any] = {"activity_id": outcome.activity_id}
        if outcome.path is not None:
            meta["path"] = str(outcome.path)
        if outcome.phase:
            meta["phase"] = outcome.phase
        if outcome.debug is not None:
            meta["debug_screenshot"] = outcome.debug.screenshot_path
            meta["debug_html"] = outcome.debug.html_path
        telemetry.add(outcome.status, outcome.error_code or "splits_export", meta)


def run_sync(
    *,
    headless: Optional[bool] = None,
    retention_days: Optional[int] = None,
    splits_count: Optional[int] = None,
    skip_details: bool = False,
    session_factory: Callable[..., Any] = BrowserSession,
) -> int:
    """Run one full sync and return the process exit code."""

    ensure_dirs()
    setup_run_logger()
    validate_runtime_config("cli", retention_days=retention_days)

    retention = config.ACTIVITY_RETENTION_DAYS if retention_days is None else retention_days
    splits = config.GARMIN_RECENT_SPLITS_COUNT if splits_count is None else splits_count

    telemetry = RunTelemetry()
    store = RecordStore()
    temp_dir = config.TEMP_DIR
    temp_dir.mkdir(parents=True, exist_ok=True)

    exit_code = EXIT_OK
    bulk_path: Optional[Path] = None
    session = session_factory(headless=headless)
    _sync_event("run", step="start", run_id=telemetry.run_id, retention_days=retention, splits=splits)
    try:
        session.start()
        extraction = ExtractionSession(session, output_dir=config.DATA_DIR)
        extraction.authenticate(config.credentials())

        log_line("Downloading activities...")
        try:
            bulk_path = extraction.download_bulk_export(temp_dir)
            telemetry.add("downloaded", "bulk_export", {"path": str(bulk_path)})
        except ExportControlNotFound as exc:
            log_line(f"Export CSV button not found: {exc}")
            telemetry.add("failed", ErrorCode.EXPORT_CONTROL_MISSING, {})
            exit_code = EXIT_BULK_FAILED
        except SyncError as exc:
            log_line(f"Error during download flow: {exc}")
            telemetry.add("failed", ErrorCode.DOWNLOAD_FAILED, {"error": str(exc)})
            exit_code = EXIT_BULK_FAILED

        if not skip_details and splits > 0:
            _record_details(extraction, splits, telemetry)

        if bulk_path is not None:
            log_line("Merging activities...")
            result = store.merge(bulk_path)
            telemetry.summary["total_records"] = result.total

        log_line("Pruning old activities...")
        telemetry.summary["pruned"] = store.prune(retention)

        if bulk_path is not None:
            remove_temp_download(bulk_path)

        log_line("Sync complete." if exit_code == EXIT_OK else "Sync finished with errors.")
    except AuthenticationFailed as exc:
        log_line(f"Sync failed: {exc}")
        telemetry.add("failed", ErrorCode.AUTH_FAILED, {"error": str(exc)})
        exit_code = EXIT_AUTH_FAILED
    finally:
        session.close()
        summary_path = telemetry.finalize({"exit_code": exit_code})
        _sync_event("run", step="finish", exit_code=exit_code, summary=str(summary_path))

    return exit_code


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be zero or more, got {number}")
    return number


def _cli_entrypoint(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Sync Garmin Connect activities to CSV")
    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Run the browser without a visible window (default from HEADLESS)",
    )
    parser.add_argument("--retention-days", type=_non_negative_int, default=None)
    parser.add_argument(
        "--splits-count",
        type=int,
        default=None,
        help="Number of recent activities whose splits CSV is exported",
    )
    parser.add_argument("--skip-details", action="store_true")
    parser.add_argument("--data-dir", type=Path, default=None)

    args = parser.parse_args(argv)

    if args.data_dir is not None:
        config.use_data_dir(args.data_dir)

    raise SystemExit(
        run_sync(
            headless=args.headless,
            retention_days=args.retention_days,
            splits_count=args.splits_count,
            skip_details=args.skip_details,
        )
    )


if __name__ == "__main__":  # pragma: no cover
    _cli_entrypoint()

__all__ = ["run_sync", "_cli_entrypoint"]
