from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from activity_sync.garmin import config, utils
from activity_sync.garmin.errors import DownloadFailed, ElementNotFound, SessionTimeout


@pytest.fixture(autouse=True)
def _configure_temp_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    monkeypatch.setattr(config, "DATA_DIR", data_dir)
    monkeypatch.setattr(config, "ACTIVITIES_FILE", data_dir / "activities.csv")
    monkeypatch.setattr(config, "LOG_DIR", data_dir / "logs")
    monkeypatch.setattr(config, "LOG_FILE", data_dir / "logs" / "latest.log")
    monkeypatch.setattr(config, "RUNS_DIR", data_dir / "runs")
    monkeypatch.setattr(config, "TEMP_DIR", tmp_path / "temp_downloads")
    monkeypatch.setattr(config, "GARMIN_SCROLL_SETTLE_SECONDS", 0.0)
    monkeypatch.setattr(config, "GARMIN_DETAIL_SETTLE_SECONDS", 0.0)
    utils._configure_logger(data_dir / "logs" / "test.log")
    return data_dir


class FakeDownload:
    def __init__(self, suggested_filename: str, body: str) -> None:
        self.suggested_filename = suggested_filename
        self.body = body


class FakeSession:
    """In-memory stand-in for ``BrowserSession`` that records every call."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.url = "about:blank"
        self.visible: set[str] = set()
        self.visible_texts: set[str] = set()
        self.broken_selectors: set[str] = set()
        self.missing_elements: set[str] = set()
        self.text_checks: Dict[str, Callable[["FakeSession"], bool]] = {}
        self.count_sequence: List[int] = []
        self.eval_result: Any = []
        self.html = "<html><body><div id='pageContainer'>activity</div></body></html>"
        self.clicks: Dict[str, int] = defaultdict(int)
        self.click_errors: set[str] = set()
        self.navigate_error: Optional[Exception] = None
        self.url_wait_error: Optional[Exception] = None
        self.download_error: Optional[Exception] = None
        self.wait_error: Optional[Exception] = None
        self.download_body = "Date,Title\n2024-01-10 08:00:00,Run\n"
        self.filled: Dict[str, str] = {}
        self.waits: List[float] = []
        self.closed = False

    @property
    def current_url(self) -> str:
        return self.url

    def navigate(self, url: str, *, timeout_ms: Optional[int] = None) -> None:
        self.calls.append(("navigate", url))
        if self.navigate_error is not None:
            raise self.navigate_error
        self.url = url

    def wait_for_element(self, selector: str, timeout_ms: int) -> None:
        self.calls.append(("wait_for_element", selector))
        if selector in self.missing_elements:
            raise SessionTimeout(f"wait_for_selector({selector!r}) timed out")

    def wait_for_url(self, pattern: str, timeout_ms: int) -> None:
        self.calls.append(("wait_for_url", pattern))
        if self.url_wait_error is not None:
            raise self.url_wait_error

    def wait(self, seconds: float) -> None:
        self.waits.append(seconds)
        if self.wait_error is not None:
            raise self.wait_error

    def is_visible(self, selector: str) -> bool:
        self.calls.append(("is_visible", selector))
        if selector in self.broken_selectors:
            raise ElementNotFound(f"is_visible({selector!r}) failed")
        return selector in self.visible

    def is_text_visible(self, text: str) -> bool:
        self.calls.append(("is_text_visible", text))
        return text in self.visible_texts

    def wait_for_text(self, text: str, timeout_ms: int) -> None:
        self.calls.append(("wait_for_text", text))
        check = self.text_checks.get(text)
        if check is not None and check(self):
            return
        if text in self.visible_texts:
            return
        raise SessionTimeout(f"wait_for_text({text!r}) timed out")

    def count(self, selector: str) -> int:
        self.calls.append(("count", selector))
        if len(self.count_sequence) > 1:
            return self.count_sequence.pop(0)
        return self.count_sequence[0] if self.count_sequence else 0

    def scroll_last_into_view(self, selector: str) -> None:
        self.calls.append(("scroll_last_into_view", selector))

    def scroll_to_bottom(self) -> None:
        self.calls.append(("scroll_to_bottom",))

    def evaluate(self, script: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", arg))
        if callable(self.eval_result):
            return self.eval_result(arg)
        return self.eval_result

    def content(self) -> str:
        return self.html

    def click(self, selector: str, *, timeout_ms: Optional[int] = None) -> None:
        self.calls.append(("click", selector))
        self.clicks[selector] += 1
        if selector in self.click_errors:
            raise ElementNotFound(f"click({selector!r}): no matching element")

    def click_text(self, text: str, *, timeout_ms: Optional[int] = None) -> None:
        self.calls.append(("click_text", text))
        self.clicks[text] += 1

    def fill(self, selector: str, value: str) -> None:
        self.calls.append(("fill", selector))
        self.filled[selector] = value

    def await_download(self, trigger: Callable[[], None], *, timeout_ms: Optional[int] = None):
        self.calls.append(("await_download",))
        trigger()
        if self.download_error is not None:
            raise self.download_error
        return FakeDownload("export.csv", self.download_body)

    def save_download(self, download: FakeDownload, destination: Path) -> Path:
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(download.body, encoding="utf-8")
        return destination

    def screenshot(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\x89PNG")
        return path

    def start(self) -> "FakeSession":
        return self

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


__all__ = ["FakeSession", "FakeDownload", "DownloadFailed"]
