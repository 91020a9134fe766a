from __future__ import annotations

from . import config
from .errors import SyncError
from .logging_utils import _sync_event
from .utils import log_line


def load_until(
    session,
    item_selector: str,
    target_count: int,
    max_stall_rounds: int,
    *,
    settle_seconds: float | None = None,
) -> int:
    """Scroll an infinite list until ``target_count`` items render or loading stalls.

    A round whose item count did not grow is a stall round; after
    ``max_stall_rounds`` consecutive stalls the current count is returned even
    when it is below target. An empty list is not an error.
    """

    settle = config.GARMIN_SCROLL_SETTLE_SECONDS if settle_seconds is None else settle_seconds
    max_stall_rounds = max(1, max_stall_rounds)

    previous = 0
    stalls = 0
    scrolls = 0

    log_line(f"Scrolling to load activities (target: {target_count})...")
    while True:
        current = session.count(item_selector)

        if current > previous:
            stalls = 0
        else:
            stalls += 1

        if current >= target_count:
            break

        if stalls >= max_stall_rounds:
            log_line("No new activities loaded after scrolling. Stopping scroll.")
            break

        # High-water mark, so a list that shrinks and regrows still counts as stalled.
        previous = max(previous, current)

        if current:
            try:
                session.scroll_last_into_view(item_selector)
            except SyncError as exc:
                _sync_event("loader", step="scroll_into_view_failed", error=str(exc))
        session.scroll_to_bottom()
        scrolls += 1
        session.wait(settle)

    _sync_event(
        "loader",
        step="done",
        count=current,
        target=target_count,
        scrolls=scrolls,
        stalled=stalls >= max_stall_rounds,
    )
    return current


__all__ = ["load_until"]
