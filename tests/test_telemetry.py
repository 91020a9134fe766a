from __future__ import annotations

import json
from pathlib import Path

from activity_sync.garmin import config
from activity_sync.garmin.telemetry import RunTelemetry


def test_finalize_writes_summary_json() -> None:
    telemetry = RunTelemetry()
    telemetry.add("downloaded", "bulk_export", {"path": "/tmp/new_activities.csv"})
    telemetry.add("failed", "menu_entry_missing", {"activity_id": "42"})
    telemetry.add("failed", "settings_control_missing", {"activity_id": "43"})

    path = telemetry.finalize({"exit_code": 0})

    assert path.parent == config.RUNS_DIR
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["summary"] == {"count_downloaded": 1, "count_failed": 2}
    assert payload["entries"][1]["activity_id"] == "42"
    assert payload["exit_code"] == 0


def test_finalize_serialises_paths(tmp_path: Path) -> None:
    telemetry = RunTelemetry(runs_dir=tmp_path / "runs")
    telemetry.add("failed", "menu_entry_missing", {"debug_html": tmp_path / "debug.html"})

    payload = json.loads(telemetry.finalize().read_text(encoding="utf-8"))

    assert payload["entries"][0]["debug_html"] == str(tmp_path / "debug.html")
