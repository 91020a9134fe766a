"""Debug bundles for activities whose detail export could not be downloaded."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup

from . import config
from .errors import SyncError
from .utils import log_line, sanitize_filename_component


@dataclass(frozen=True)
class DebugBundle:
    screenshot_path: Optional[Path]
    html_path: Optional[Path]


def extract_container_html(html: str, container_selector: str, max_chars: int) -> str:
    """Return the first element matching ``container_selector``, truncated.

    Falls back to ``<body>`` (then the raw document) when the container is not
    present in the snapshot.
    """

    soup = BeautifulSoup(html or "", "html.parser")
    node = soup.select_one(container_selector)
    if node is None:
        node = soup.body
    snippet = str(node) if node is not None else (html or "")
    return snippet[:max_chars]


def capture(
    session,
    output_dir: Path,
    activity_id: str,
    phase: str,
    *,
    container_selector: str,
) -> DebugBundle:
    """Write ``debug_{id}_{phase}.html`` and ``.png`` under ``output_dir``.

    Each half is best effort; one failing does not prevent the other.
    """

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    stem = f"debug_{sanitize_filename_component(activity_id)}_{phase}"

    html_path: Optional[Path] = output_dir / f"{stem}.html"
    try:
        snippet = extract_container_html(
            session.content(), container_selector, config.DEBUG_HTML_MAX_CHARS
        )
        html_path.write_text(snippet, encoding="utf-8")
        log_line(f"Saved debug HTML -> {html_path}")
    except (SyncError, OSError) as exc:
        log_line(f"Failed to save debug HTML for activity {activity_id}: {exc}")
        html_path = None

    screenshot_path: Optional[Path] = output_dir / f"{stem}.png"
    try:
        session.screenshot(screenshot_path)
        log_line(f"Saved debug screenshot -> {screenshot_path}")
    except (SyncError, OSError) as exc:
        log_line(f"Failed to save debug screenshot for activity {activity_id}: {exc}")
        screenshot_path = None

    return DebugBundle(screenshot_path=screenshot_path, html_path=html_path)


__all__ = ["DebugBundle", "capture", "extract_container_html"]
