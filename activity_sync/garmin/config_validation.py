from __future__ import annotations

from typing import Literal, Optional

from . import config
from .logging_utils import _sync_event
from .utils import log_line

Entrypoint = Literal["cli", "tests"]


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _sync_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def _clamp_min_one(field_name: str, *, entrypoint: Entrypoint) -> None:
    value = getattr(config, field_name)
    if value >= 1:
        return
    _sync_event(
        "state",
        phase="config",
        context="runtime_validation",
        kind="config_adjustment",
        field=field_name,
        value=value,
        adjusted=1,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {field_name} < 1; clamping to 1.")
    setattr(config, field_name, 1)


def validate_runtime_config(
    entrypoint: Entrypoint,
    *,
    require_credentials: bool = True,
    retention_days: Optional[int] = None,
) -> None:
    """Validate runtime configuration for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    ``retention_days`` is a per-run override checked like the configured value.
    Loader knobs below one are clamped and logged instead.
    """

    if require_credentials and not (config.GARMIN_EMAIL and config.GARMIN_PASSWORD):
        _raise_config_error(
            "GARMIN_EMAIL and GARMIN_PASSWORD must be set (environment or .env).",
            entrypoint=entrypoint,
            error="missing_credentials",
        )

    retention = config.ACTIVITY_RETENTION_DAYS if retention_days is None else retention_days
    if retention < 0:
        _raise_config_error(
            "Retention days (ACTIVITY_RETENTION_DAYS or --retention-days) must be non-negative.",
            entrypoint=entrypoint,
            error="retention_days_invalid",
        )

    timeout_fields = [
        ("GARMIN_NAV_TIMEOUT_SECONDS", config.GARMIN_NAV_TIMEOUT_SECONDS),
        ("GARMIN_LOGIN_FORM_TIMEOUT_SECONDS", config.GARMIN_LOGIN_FORM_TIMEOUT_SECONDS),
        ("GARMIN_LOGIN_REDIRECT_TIMEOUT_SECONDS", config.GARMIN_LOGIN_REDIRECT_TIMEOUT_SECONDS),
        ("GARMIN_MENU_TIMEOUT_SECONDS", config.GARMIN_MENU_TIMEOUT_SECONDS),
        ("GARMIN_DOWNLOAD_TIMEOUT_SECONDS", config.GARMIN_DOWNLOAD_TIMEOUT_SECONDS),
    ]

    for field_name, value in timeout_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_timeout",
            )

    _clamp_min_one("GARMIN_LIST_TARGET_COUNT", entrypoint=entrypoint)
    _clamp_min_one("GARMIN_MAX_STALL_ROUNDS", entrypoint=entrypoint)


__all__ = ["validate_runtime_config", "Entrypoint"]
