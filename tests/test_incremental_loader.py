from __future__ import annotations

from activity_sync.garmin.incremental_loader import load_until

ITEM = "[class*='ActivityListItem_listItem']"


def _rounds(fake_session) -> int:
    return sum(1 for call in fake_session.calls if call[0] == "count")


def test_plateau_below_target_returns_current_count(fake_session) -> None:
    fake_session.count_sequence = [20, 40, 40, 40, 40]

    result = load_until(fake_session, ITEM, 90, 3, settle_seconds=0)

    assert result == 40
    # Two growing rounds, then three stalls.
    assert _rounds(fake_session) == 5


def test_stops_as_soon_as_target_is_reached(fake_session) -> None:
    fake_session.count_sequence = [30, 60, 95, 120]

    result = load_until(fake_session, ITEM, 90, 3, settle_seconds=0)

    assert result == 95
    assert _rounds(fake_session) == 3


def test_empty_list_is_tolerated(fake_session) -> None:
    fake_session.count_sequence = [0]

    result = load_until(fake_session, ITEM, 90, 3, settle_seconds=0)

    assert result == 0
    assert _rounds(fake_session) == 3
    # Nothing rendered, so there is no last item to scroll into view.
    assert not any(call[0] == "scroll_last_into_view" for call in fake_session.calls)


def test_scrolls_last_item_and_window_between_rounds(fake_session) -> None:
    fake_session.count_sequence = [10, 20, 20]

    load_until(fake_session, ITEM, 90, 1, settle_seconds=1.5)

    kinds = [call[0] for call in fake_session.calls]
    assert kinds[:4] == ["count", "scroll_last_into_view", "scroll_to_bottom", "count"]
    assert fake_session.waits == [1.5, 1.5]


def test_shrinking_list_does_not_reset_stall_budget(fake_session) -> None:
    fake_session.count_sequence = [40, 39, 40, 39, 40, 39, 40]

    result = load_until(fake_session, ITEM, 90, 3, settle_seconds=0)

    assert result in (39, 40)
    assert _rounds(fake_session) == 4


def test_uses_configured_settle_by_default(fake_session, monkeypatch) -> None:
    from activity_sync.garmin import config

    monkeypatch.setattr(config, "GARMIN_SCROLL_SETTLE_SECONDS", 0.25)
    fake_session.count_sequence = [5, 5]

    load_until(fake_session, ITEM, 10, 1)

    assert fake_session.waits == [0.25]
