"""Garmin Connect extraction flow.

Workflow:

- Sign in through https://connect.garmin.com/signin and wait for the
  ``/modern/`` area.
- Open the activity list, scroll until ~90 activities have rendered, then
  click the "Export CSV" link and save the bulk export.
- Collect the most recent activity ids from the rendered list.
- For each id open the activity page, open the gear menu and click
  "Export Splits to CSV". A missing menu entry is retried once; after that a
  debug bundle is written and the loop moves on.

Only sign-in failures abort the run. Bulk export failures surface to the
caller; detail failures are reported as ``DetailOutcome`` values.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from . import config, debug_capture
from .config import Credentials
from .errors import AuthenticationFailed, ErrorCode, ExportControlNotFound, SessionTimeout, SyncError
from .incremental_loader import load_until
from .logging_utils import _sync_event
from .selector_resolver import resolve
from .selectors import GARMIN_SELECTORS, GarminSelectors
from .utils import log_line, sanitize_filename_component

# The first click plus exactly one immediate re-click of the gear control.
MENU_ATTEMPTS = 2

_COLLECT_IDS_SCRIPT = """
({ pattern, count }) => {
    const re = new RegExp(pattern);
    const ids = [];
    const seen = new Set();
    for (const anchor of document.querySelectorAll('a[href]')) {
        const match = (anchor.getAttribute('href') || '').match(re);
        if (!match || seen.has(match[1])) {
            continue;
        }
        seen.add(match[1]);
        ids.push(match[1]);
        if (ids.length >= count) {
            break;
        }
    }
    return ids;
}
"""


class ExtractionState(str, enum.Enum):
    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    LIST_EXTRACTION = "list_extraction"
    DETAIL_EXTRACTION = "detail_extraction"
    DONE = "done"
    FAILED = "failed"


@dataclass
class DetailOutcome:
    """Result of one activity's splits export."""

    activity_id: str
    status: str
    path: Optional[Path] = None
    error_code: Optional[str] = None
    phase: Optional[str] = None
    debug: Optional[debug_capture.DebugBundle] = None

    @property
    def ok(self) -> bool:
        return self.status == "downloaded"


def splits_filename(activity_id: str) -> str:
    return f"activity_{sanitize_filename_component(activity_id)}_splits.csv"


class ExtractionSession:
    """Drives one authenticated Garmin Connect page through a sync run."""

    def __init__(
        self,
        session,
        *,
        output_dir: Path,
        selectors: GarminSelectors = GARMIN_SELECTORS,
    ) -> None:
        self.session = session
        self.output_dir = Path(output_dir)
        self.selectors = selectors
        self.state = ExtractionState.IDLE

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self, credentials: Credentials) -> None:
        self.state = ExtractionState.AUTHENTICATING
        log_line("Navigating to Garmin Connect login...")
        try:
            self.session.navigate(config.SIGNIN_URL)
            self.session.wait_for_element(
                self.selectors.email_input,
                config.GARMIN_LOGIN_FORM_TIMEOUT_SECONDS * 1000,
            )
            self.session.fill(self.selectors.email_input, credentials.identity)
            self.session.fill(self.selectors.password_input, credentials.secret)
            self.session.click(self.selectors.submit_button)
            self.session.wait_for_url(
                config.AUTHENTICATED_URL_PATTERN,
                config.GARMIN_LOGIN_REDIRECT_TIMEOUT_SECONDS * 1000,
            )
        except SyncError as exc:
            self.state = ExtractionState.FAILED
            log_line(
                "Login failed or timed out. Please check credentials or try non-headless mode."
            )
            _sync_event("error", phase="auth", error_code=ErrorCode.AUTH_FAILED, error=str(exc))
            self._login_error_screenshot()
            raise AuthenticationFailed(str(exc)) from exc

        self.state = ExtractionState.AUTHENTICATED
        log_line("Login successful.")

    def _login_error_screenshot(self) -> None:
        path = self.output_dir / config.LOGIN_ERROR_SCREENSHOT
        try:
            self.session.screenshot(path)
            log_line(f"Screenshot saved to {path}")
        except (SyncError, OSError) as exc:
            log_line(f"Failed to save login screenshot: {exc}")

    # ------------------------------------------------------------------
    # Activity list
    # ------------------------------------------------------------------

    def _open_activity_list(self) -> None:
        log_line("Navigating to Activities page...")
        self.session.navigate(config.ACTIVITIES_URL)
        try:
            self.session.wait_for_element(
                self.selectors.list_item, config.GARMIN_LIST_TIMEOUT_SECONDS * 1000
            )
        except SessionTimeout:
            log_line("Activity list might be empty or different selector")

    def _on_activity_list(self) -> bool:
        try:
            return self.session.current_url.startswith(config.ACTIVITIES_URL)
        except SyncError:
            return False

    def download_bulk_export(
        self, destination_dir: Path, *, target_count: Optional[int] = None
    ) -> Path:
        """Load the activity list and save its "Export CSV" download."""

        self.state = ExtractionState.LIST_EXTRACTION
        self._open_activity_list()

        rendered = load_until(
            self.session,
            self.selectors.list_item,
            target_count or config.GARMIN_LIST_TARGET_COUNT,
            config.GARMIN_MAX_STALL_ROUNDS,
        )
        log_line(f"Rendered {rendered} activities before export.")

        export_text = self.selectors.export_csv_text
        if not self.session.is_text_visible(export_text):
            _sync_event(
                "error",
                phase="bulk_export",
                error_code=ErrorCode.EXPORT_CONTROL_MISSING,
                rendered=rendered,
            )
            raise ExportControlNotFound(f"{export_text!r} control not visible")

        download = self.session.await_download(lambda: self.session.click_text(export_text))
        path = self.session.save_download(
            download, Path(destination_dir) / config.BULK_EXPORT_FILENAME
        )
        log_line(f"Downloaded to {path}")
        return path

    def list_recent_item_ids(self, count: int) -> List[str]:
        """Return up to ``count`` unique activity ids in page order (newest first)."""

        if count <= 0:
            return []
        self.state = ExtractionState.LIST_EXTRACTION
        if not self._on_activity_list():
            self._open_activity_list()

        raw = self.session.evaluate(
            _COLLECT_IDS_SCRIPT,
            {"pattern": self.selectors.detail_href_pattern, "count": count},
        )

        ids: List[str] = []
        for value in raw or []:
            activity_id = str(value)
            if activity_id in ids:
                continue
            ids.append(activity_id)
            if len(ids) >= count:
                break
        _sync_event("list", step="recent_ids", requested=count, found=len(ids))
        return ids

    # ------------------------------------------------------------------
    # Activity detail
    # ------------------------------------------------------------------

    def _failed(
        self, activity_id: str, output_dir: Path, *, phase: str, error_code: str
    ) -> DetailOutcome:
        bundle = debug_capture.capture(
            self.session,
            output_dir,
            activity_id,
            phase,
            container_selector=self.selectors.debug_container,
        )
        _sync_event(
            "error",
            phase="detail",
            activity_id=activity_id,
            failure_phase=phase,
            error_code=error_code,
        )
        return DetailOutcome(
            activity_id=activity_id,
            status="failed",
            error_code=error_code,
            phase=phase,
            debug=bundle,
        )

    def _menu_entry_visible(self) -> bool:
        try:
            self.session.wait_for_text(
                self.selectors.export_splits_text,
                config.GARMIN_MENU_TIMEOUT_SECONDS * 1000,
            )
        except SyncError:
            return False
        return True

    def download_detail_export(self, activity_id: str, output_dir: Path) -> DetailOutcome:
        """Save one activity's splits CSV; failures come back as outcomes."""

        self.state = ExtractionState.DETAIL_EXTRACTION
        output_dir = Path(output_dir)
        url = config.ACTIVITY_DETAIL_URL.format(activity_id=activity_id)
        log_line(f"Opening activity {activity_id}...")

        try:
            self.session.navigate(url)
            self.session.wait(config.GARMIN_DETAIL_SETTLE_SECONDS)
        except SyncError as exc:
            log_line(f"Failed to open activity {activity_id}: {exc}")
            return self._failed(
                activity_id, output_dir, phase="settings", error_code=ErrorCode.NAVIGATION_FAILED
            )

        options = resolve(self.session, self.selectors.options_menu)
        if options is None:
            log_line(f"Settings menu not found for activity {activity_id}.")
            return self._failed(
                activity_id,
                output_dir,
                phase="settings",
                error_code=ErrorCode.SETTINGS_CONTROL_MISSING,
            )

        menu_open = False
        for attempt in range(1, MENU_ATTEMPTS + 1):
            try:
                self.session.click(options.selector)
            except SyncError as exc:
                log_line(f"Clicking {options} failed (attempt {attempt}): {exc}")
            else:
                menu_open = self._menu_entry_visible()
            if menu_open:
                break
            _sync_event(
                "state",
                phase="menu_retry",
                activity_id=activity_id,
                attempt=attempt,
                max_attempts=MENU_ATTEMPTS,
                will_retry=attempt < MENU_ATTEMPTS,
            )

        if not menu_open:
            log_line(f"Export splits option not visible for activity {activity_id}.")
            return self._failed(
                activity_id, output_dir, phase="menu", error_code=ErrorCode.MENU_ENTRY_MISSING
            )

        export_text = self.selectors.export_splits_text
        try:
            download = self.session.await_download(
                lambda: self.session.click_text(export_text)
            )
            path = self.session.save_download(download, output_dir / splits_filename(activity_id))
        except SyncError as exc:
            log_line(f"Splits download failed for activity {activity_id}: {exc}")
            return self._failed(
                activity_id, output_dir, phase="menu", error_code=ErrorCode.DOWNLOAD_FAILED
            )

        log_line(f"Saved splits for activity {activity_id} -> {path}")
        return DetailOutcome(activity_id=activity_id, status="downloaded", path=path)

    def download_recent_details(self, count: int, output_dir: Path) -> List[DetailOutcome]:
        """Export splits for the ``count`` most recent activities, in page order."""

        ids = self.list_recent_item_ids(count)
        if not ids:
            log_line("No activity links found on the list page.")
        outcomes = [self.download_detail_export(activity_id, output_dir) for activity_id in ids]
        self.state = ExtractionState.DONE
        failed = sum(1 for outcome in outcomes if not outcome.ok)
        _sync_event("detail", step="summary", requested=count, attempted=len(ids), failed=failed)
        return outcomes


__all__ = [
    "DetailOutcome",
    "ExtractionSession",
    "ExtractionState",
    "MENU_ATTEMPTS",
    "splits_filename",
]
