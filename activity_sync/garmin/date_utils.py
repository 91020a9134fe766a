from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

_DATE_FORMATS: Iterable[str] = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%b %d, %Y %I:%M %p",
    "%a, %b %d, %Y %I:%M %p",
)


def parse_record_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an activity ``Date`` value into a naive ``datetime``.

    Garmin exports use ``YYYY-MM-DD HH:MM:SS``; a few other layouts seen in
    older exports are accepted. Returns ``None`` when the value cannot be
    parsed.
    """

    candidate = (value or "").strip()
    if not candidate:
        return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(candidate, fmt)
        except ValueError:
            continue

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


__all__ = ["parse_record_date"]
