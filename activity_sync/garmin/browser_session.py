"""Playwright-backed browser session used by the Garmin extraction engine.

The session owns exactly one Chromium page for the duration of a sync run.
It exposes a small capability surface (navigate, wait, query, click, fill,
evaluate, download, screenshot) and translates Playwright failures into the
sync error taxonomy. It never retries; retry policy belongs to callers.
"""

from __future__ import annotations

import enum
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from playwright.sync_api import (
    Browser,
    BrowserContext,
    Download,
    Error as PWError,
    Page,
    Playwright,
    TimeoutError as PWTimeout,
    sync_playwright,
)

from . import config
from .errors import DownloadFailed, ElementNotFound, NotReady, SessionTimeout
from .logging_utils import _sync_event


class SessionState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


@contextmanager
def _translate_errors(operation: str, target: str) -> Iterator[None]:
    try:
        yield
    except PWTimeout as exc:
        raise SessionTimeout(f"{operation}({target!r}) timed out: {exc}") from exc
    except PWError as exc:
        raise ElementNotFound(f"{operation}({target!r}) failed: {exc}") from exc


class BrowserSession:
    """Exclusive owner of a single Playwright page."""

    def __init__(
        self,
        *,
        headless: Optional[bool] = None,
        user_agent: Optional[str] = None,
        playwright_factory: Callable[[], Any] = sync_playwright,
    ) -> None:
        self.headless = config.HEADLESS if headless is None else headless
        self.user_agent = user_agent or config.USER_AGENT
        self._playwright_factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self.state = SessionState.UNINITIALIZED

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> "BrowserSession":
        if self.state is not SessionState.UNINITIALIZED:
            raise NotReady(f"cannot start a session in state {self.state.value}")

        self._playwright = self._playwright_factory().start()
        self._browser = self._playwright.chromium.launch(
            headless=self.headless, args=list(config.BROWSER_ARGS)
        )
        self._context = self._browser.new_context(
            user_agent=self.user_agent, accept_downloads=True
        )
        self._page = self._context.new_page()
        self._page.set_default_timeout(config.GARMIN_NAV_TIMEOUT_SECONDS * 1000)
        self.state = SessionState.READY
        _sync_event("browser", step="start", headless=self.headless)
        return self

    def close(self) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        for closer in (self._context, self._browser):
            if closer is None:
                continue
            try:
                closer.close()
            except PWError as exc:
                _sync_event("browser", step="close_error", error=str(exc))
        if self._playwright is not None:
            self._playwright.stop()
        self._page = None
        _sync_event("browser", step="closed")

    def __enter__(self) -> "BrowserSession":
        if self.state is SessionState.UNINITIALIZED:
            self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def page(self) -> Page:
        if self.state is not SessionState.READY or self._page is None:
            raise NotReady(f"browser session is {self.state.value}")
        return self._page

    # ------------------------------------------------------------------
    # Navigation and waiting
    # ------------------------------------------------------------------

    @property
    def current_url(self) -> str:
        return self.page.url

    def navigate(self, url: str, *, timeout_ms: Optional[int] = None) -> None:
        page = self.page
        _sync_event("nav", step="goto", url=url)
        with _translate_errors("goto", url):
            page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=timeout_ms or config.GARMIN_NAV_TIMEOUT_SECONDS * 1000,
            )

    def wait_for_element(self, selector: str, timeout_ms: int) -> None:
        page = self.page
        with _translate_errors("wait_for_selector", selector):
            page.wait_for_selector(selector, timeout=timeout_ms)

    def wait_for_url(self, pattern: str, timeout_ms: int) -> None:
        page = self.page
        with _translate_errors("wait_for_url", pattern):
            page.wait_for_url(pattern, timeout=timeout_ms)

    def wait(self, seconds: float) -> None:
        """Pause for ``seconds`` while keeping the page's event loop running."""

        if seconds is None or seconds <= 0:
            return
        page = self.page
        with _translate_errors("wait_for_timeout", page.url):
            if not page.is_closed():
                page.wait_for_timeout(int(seconds * 1000))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_visible(self, selector: str) -> bool:
        page = self.page
        with _translate_errors("is_visible", selector):
            return page.locator(selector).first.is_visible()

    def is_text_visible(self, text: str) -> bool:
        page = self.page
        with _translate_errors("is_text_visible", text):
            return page.get_by_text(text).first.is_visible()

    def wait_for_text(self, text: str, timeout_ms: int) -> None:
        page = self.page
        with _translate_errors("wait_for_text", text):
            page.get_by_text(text).first.wait_for(state="visible", timeout=timeout_ms)

    def count(self, selector: str) -> int:
        page = self.page
        with _translate_errors("count", selector):
            return page.locator(selector).count()

    def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run ``script`` in the page and return its JSON-serialisable result."""

        page = self.page
        with _translate_errors("evaluate", script[:40]):
            return page.evaluate(script, arg)

    def content(self) -> str:
        page = self.page
        with _translate_errors("content", page.url):
            return page.content()

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def click(self, selector: str, *, timeout_ms: Optional[int] = None) -> None:
        page = self.page
        with _translate_errors("click", selector):
            matches = page.locator(selector)
            if matches.count() == 0:
                raise ElementNotFound(f"click({selector!r}): no matching element")
            matches.first.click(timeout=timeout_ms)

    def click_text(self, text: str, *, timeout_ms: Optional[int] = None) -> None:
        page = self.page
        with _translate_errors("click_text", text):
            page.get_by_text(text).first.click(timeout=timeout_ms)

    def fill(self, selector: str, value: str) -> None:
        page = self.page
        with _translate_errors("fill", selector):
            page.fill(selector, value)

    def scroll_last_into_view(self, selector: str) -> None:
        page = self.page
        with _translate_errors("scroll_into_view", selector):
            items = page.locator(selector)
            if items.count() == 0:
                raise ElementNotFound(f"scroll_into_view({selector!r}): no items rendered")
            items.last.scroll_into_view_if_needed()

    def scroll_to_bottom(self) -> None:
        self.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def await_download(
        self, trigger: Callable[[], None], *, timeout_ms: Optional[int] = None
    ) -> Download:
        """Arm a download listener, run ``trigger`` and return the finished download."""

        page = self.page
        timeout = timeout_ms or config.GARMIN_DOWNLOAD_TIMEOUT_SECONDS * 1000
        with _translate_errors("expect_download", page.url):
            with page.expect_download(timeout=timeout) as download_info:
                trigger()
            download = download_info.value

        failure = download.failure()
        if failure:
            raise DownloadFailed(f"download {download.suggested_filename!r} failed: {failure}")
        return download

    def save_download(self, download: Download, destination: Path) -> Path:
        """Move a finished download to ``destination``; ownership passes to the caller."""

        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        with _translate_errors("save_as", str(destination)):
            download.save_as(str(destination))
        _sync_event("download", step="saved", path=str(destination))
        return destination

    def screenshot(self, path: Path) -> Path:
        page = self.page
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with _translate_errors("screenshot", str(path)):
            page.screenshot(path=str(path), full_page=True)
        return path


__all__ = ["BrowserSession", "SessionState"]
