"""CSV-backed store for Garmin activity records.

Records are plain ``dict[str, str]`` rows keyed by their ``Date`` column.
Garmin's bulk export has no id column, but ``Date`` carries the activity start
time to the second, so it serves as the natural key: merging an export
replaces any stored row with the same ``Date`` and adds the rest.

Rows whose ``Date`` cannot be parsed are never dropped. They sort after every
dated row (keeping their relative order) and are left alone by pruning.
"""
from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

from . import config
from .date_utils import parse_record_date
from .errors import ErrorCode
from .logging_utils import _sync_event
from .utils import log_line

DATE_COLUMN = "Date"

Record = Dict[str, str]


@dataclass(frozen=True)
class MergeResult:
    incoming: int
    added: int
    replaced: int
    total: int


def read_records(path: Path) -> List[Record]:
    """Parse a CSV file into records; missing cells load as empty strings.

    Only truly blank lines are skipped. A row of bare delimiters is kept as a
    record with empty cells.
    """

    with Path(path).open("r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle, restval="")
        records: List[Record] = []
        for row in reader:
            # Cells beyond the header land under the ``None`` key.
            row.pop(None, None)
            records.append({key: value or "" for key, value in row.items()})
    return records


def _fieldnames(records: List[Record]) -> List[str]:
    fieldnames: List[str] = []
    seen = set()
    for record in records:
        for key in record:
            if key not in seen:
                seen.add(key)
                fieldnames.append(key)
    if DATE_COLUMN not in seen:
        fieldnames.insert(0, DATE_COLUMN)
    return fieldnames


def sort_by_date_desc(records: List[Record]) -> List[Record]:
    """Most recent first; undated rows trail in their original order."""

    dated = []
    undated = []
    for record in records:
        parsed = parse_record_date(record.get(DATE_COLUMN))
        if parsed is None:
            undated.append(record)
        else:
            dated.append((parsed, record))

    if undated:
        _sync_event(
            "store",
            step="sort",
            error_code=ErrorCode.MALFORMED_DATE,
            undated=len(undated),
        )

    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [record for _, record in dated] + undated


class RecordStore:
    """Load/merge/prune the persisted ``activities.csv``."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else config.ACTIVITIES_FILE

    def load(self) -> List[Record]:
        if not self.path.exists():
            return []
        return read_records(self.path)

    def save(self, records: List[Record]) -> None:
        """Rewrite the whole file atomically."""

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        try:
            with tmp_path.open("w", encoding="utf-8", newline="") as handle:
                writer = csv.DictWriter(
                    handle,
                    fieldnames=_fieldnames(records),
                    restval="",
                    extrasaction="ignore",
                )
                writer.writeheader()
                writer.writerows(records)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

        tmp_path.replace(self.path)

    def merge(self, incoming_path: Path) -> MergeResult:
        """Overlay the records in ``incoming_path`` onto the store by ``Date``."""

        current = self.load()
        incoming = read_records(incoming_path)

        by_key: Dict[str, Record] = {}
        for record in current:
            by_key[record.get(DATE_COLUMN, "")] = record

        added = 0
        replaced = 0
        for record in incoming:
            key = record.get(DATE_COLUMN, "")
            if key in by_key:
                replaced += 1
            else:
                added += 1
            by_key[key] = record

        merged = sort_by_date_desc(list(by_key.values()))
        self.save(merged)

        log_line(f"Merged {len(incoming)} new activities. Total: {len(merged)}")
        _sync_event(
            "store",
            step="merge",
            incoming=len(incoming),
            added=added,
            replaced=replaced,
            total=len(merged),
        )
        return MergeResult(
            incoming=len(incoming), added=added, replaced=replaced, total=len(merged)
        )

    def prune(self, retention_days: int, *, now: Optional[datetime] = None) -> int:
        """Drop records dated before ``now - retention_days``; return how many went."""

        records = self.load()
        cutoff = (now or datetime.now()) - timedelta(days=retention_days)

        kept: List[Record] = []
        for record in records:
            parsed = parse_record_date(record.get(DATE_COLUMN))
            if parsed is not None and parsed < cutoff:
                continue
            kept.append(record)

        removed = len(records) - len(kept)
        if removed:
            log_line(f"Pruned {removed} old activities.")
            self.save(kept)
        _sync_event(
            "store",
            step="prune",
            cutoff=cutoff.isoformat(timespec="seconds"),
            removed=removed,
            kept=len(kept),
        )
        return removed


__all__ = [
    "DATE_COLUMN",
    "MergeResult",
    "Record",
    "RecordStore",
    "read_records",
    "sort_by_date_desc",
]
