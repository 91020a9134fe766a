"""Configuration constants for the Garmin Connect activity sync."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path.cwd() / ".env")

DATA_DIR: Path = Path(os.getenv("ACTIVITY_SYNC_DATA_DIR", str(Path.cwd() / "data")))
TEMP_DIR: Path = Path(
    os.getenv("ACTIVITY_SYNC_TEMP_DIR", str(Path.cwd() / "temp_downloads"))
)
ACTIVITIES_FILE: Path = DATA_DIR / "activities.csv"
LOG_DIR: Path = DATA_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "latest.log"
RUNS_DIR: Path = DATA_DIR / "runs"


def use_data_dir(path: Path) -> None:
    """Point the store, logs and run summaries at ``path``."""

    global DATA_DIR, ACTIVITIES_FILE, LOG_DIR, LOG_FILE, RUNS_DIR

    DATA_DIR = Path(path)
    ACTIVITIES_FILE = DATA_DIR / "activities.csv"
    LOG_DIR = DATA_DIR / "logs"
    LOG_FILE = LOG_DIR / "latest.log"
    RUNS_DIR = DATA_DIR / "runs"


BULK_EXPORT_FILENAME: str = "new_activities.csv"
LOGIN_ERROR_SCREENSHOT: str = "login-error.png"

SIGNIN_URL: str = "https://connect.garmin.com/signin"
ACTIVITIES_URL: str = "https://connect.garmin.com/modern/activities"
ACTIVITY_DETAIL_URL: str = "https://connect.garmin.com/modern/activity/{activity_id}"
AUTHENTICATED_URL_PATTERN: str = "**/modern/**"

GARMIN_EMAIL: str = os.getenv("GARMIN_EMAIL", "")
GARMIN_PASSWORD: str = os.getenv("GARMIN_PASSWORD", "")


@dataclass(frozen=True)
class Credentials:
    identity: str
    secret: str = field(repr=False)


def credentials() -> Credentials:
    """Return the Garmin Connect credentials currently configured."""

    return Credentials(identity=GARMIN_EMAIL, secret=GARMIN_PASSWORD)


HEADLESS: bool = os.getenv("HEADLESS", "true").strip().lower() != "false"
ACTIVITY_RETENTION_DAYS: int = int(os.getenv("ACTIVITY_RETENTION_DAYS", "90"))

USER_AGENT: str = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
BROWSER_ARGS: tuple[str, ...] = (
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-setuid-sandbox",
)


def _parse_timeout_seconds(env_var: str, default: int, *, minimum: int = 1) -> int:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


# Playwright timeouts (seconds)
GARMIN_NAV_TIMEOUT_SECONDS: int = _parse_timeout_seconds("GARMIN_NAV_TIMEOUT_SECONDS", 30)
# Wait for the sign-in form to render.
GARMIN_LOGIN_FORM_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "GARMIN_LOGIN_FORM_TIMEOUT_SECONDS", 10
)
# Wait for the post-login redirect into the authenticated area.
GARMIN_LOGIN_REDIRECT_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "GARMIN_LOGIN_REDIRECT_TIMEOUT_SECONDS", 30
)
# Wait for the activity list to render its first item.
GARMIN_LIST_TIMEOUT_SECONDS: int = _parse_timeout_seconds("GARMIN_LIST_TIMEOUT_SECONDS", 10)
# Wait for the "Export Splits to CSV" entry after opening the gear menu.
GARMIN_MENU_TIMEOUT_SECONDS: int = _parse_timeout_seconds("GARMIN_MENU_TIMEOUT_SECONDS", 5)
GARMIN_DOWNLOAD_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "GARMIN_DOWNLOAD_TIMEOUT_SECONDS", 60
)

# Short sleeps (seconds) for lazy-load and page settle
GARMIN_SCROLL_SETTLE_SECONDS: float = float(os.getenv("GARMIN_SCROLL_SETTLE_SECONDS", "3.0"))
GARMIN_DETAIL_SETTLE_SECONDS: float = float(os.getenv("GARMIN_DETAIL_SETTLE_SECONDS", "2.0"))

GARMIN_LIST_TARGET_COUNT: int = int(os.getenv("GARMIN_LIST_TARGET_COUNT", "90"))
GARMIN_MAX_STALL_ROUNDS: int = int(os.getenv("GARMIN_MAX_STALL_ROUNDS", "3"))
GARMIN_RECENT_SPLITS_COUNT: int = int(os.getenv("GARMIN_RECENT_SPLITS_COUNT", "1"))

DEBUG_HTML_MAX_CHARS: int = 5000
