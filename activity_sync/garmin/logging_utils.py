from __future__ import annotations

from typing import Any

from .utils import log_line


def _sync_event(label: str = "", *, phase: str | None = None, **fields: Any) -> None:
    """Log one ``[SYNC][LABEL] key=value`` line for a sync step.

    ``label`` names the component (``store``, ``loader``, ``error``...). A
    ``phase`` without a label becomes the label; with a label it is logged as
    a field. Fields are emitted sorted by key.
    """

    try:
        tag = (label or phase or "").upper()
        if phase and label:
            fields.setdefault("phase", phase)
        payload = ", ".join(f"{key}={value!r}" for key, value in sorted(fields.items()))
        log_line(f"[SYNC][{tag}] {payload}")
    except Exception:
        # A failed log write must not abort the sync step that emitted it.
        return


__all__ = ["_sync_event"]
