from __future__ import annotations

from typing import Optional

from .errors import SyncError
from .logging_utils import _sync_event
from .selectors import LocatorSpec, SelectorChain


def resolve(session, candidates: SelectorChain) -> Optional[LocatorSpec]:
    """Return the first candidate currently visible on the page, else ``None``.

    Each candidate gets a single visibility probe in declaration order; there is
    no polling here, callers decide when to try again. A probe that errors (for
    example a selector the current page cannot evaluate) is treated as a miss.
    """

    for spec in candidates:
        try:
            visible = session.is_visible(spec.selector)
        except SyncError as exc:
            _sync_event("selector", step="probe_error", candidate=str(spec), error=str(exc))
            continue
        if visible:
            _sync_event("selector", step="resolved", chain=candidates.name, candidate=str(spec))
            return spec

    _sync_event("selector", step="not_found", chain=candidates.name, tried=len(candidates))
    return None


__all__ = ["resolve"]
