from activity_sync.garmin import config
from activity_sync.garmin.config_validation import validate_runtime_config
import pytest


@pytest.fixture(autouse=True)
def _credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "GARMIN_EMAIL", "runner@example.com")
    monkeypatch.setattr(config, "GARMIN_PASSWORD", "secret")


def test_valid_config_passes() -> None:
    validate_runtime_config("cli")


def test_missing_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "GARMIN_PASSWORD", "")
    with pytest.raises(ValueError, match="GARMIN_EMAIL"):
        validate_runtime_config("cli")


def test_missing_credentials_allowed_when_not_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "GARMIN_EMAIL", "")
    validate_runtime_config("tests", require_credentials=False)


def test_negative_retention(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "ACTIVITY_RETENTION_DAYS", -1)
    with pytest.raises(ValueError):
        validate_runtime_config("cli")


def test_invalid_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "GARMIN_MENU_TIMEOUT_SECONDS", 0)
    with pytest.raises(ValueError):
        validate_runtime_config("cli")


def test_loader_knobs_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "GARMIN_LIST_TARGET_COUNT", 0)
    monkeypatch.setattr(config, "GARMIN_MAX_STALL_ROUNDS", -3)

    validate_runtime_config("tests")

    assert config.GARMIN_LIST_TARGET_COUNT == 1
    assert config.GARMIN_MAX_STALL_ROUNDS == 1


def test_credentials_helper_reads_current_values() -> None:
    creds = config.credentials()

    assert creds.identity == "runner@example.com"
    assert creds.secret == "secret"


def test_use_data_dir_repoints_paths(tmp_path) -> None:
    config.use_data_dir(tmp_path / "elsewhere")

    assert config.ACTIVITIES_FILE == tmp_path / "elsewhere" / "activities.csv"
    assert config.RUNS_DIR == tmp_path / "elsewhere" / "runs"


def test_negative_retention_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "ACTIVITY_RETENTION_DAYS", 90)
    with pytest.raises(ValueError, match="non-negative"):
        validate_runtime_config("cli", retention_days=-5)
