"""
History/Audit Log for OKR Tracker.

Append-only, newest-first change log stored inside the Document. Entries
are never edited; the only removal is capacity eviction from the tail.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from okr.config_manager import config
from okr.logger import get_logger
from okr.models import HistoryEntry, HistoryType, ItemType, coerce_enum
from okr.status import status_label

logger = get_logger("history")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp for ordering; unusable values sort first."""
    if not value:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def diff_fields(
    old: Dict[str, Any],
    new: Dict[str, Any],
    fields: Iterable[str],
    text_fields: Iterable[str] = (),
) -> Dict[str, Dict[str, Any]]:
    """
    Field-level diff between two snapshots of an entity.

    Only fields present in ``new`` are compared, so a partial edit never
    reports the fields it did not touch. For text fields a missing value
    and an empty string are the same.

    Returns:
        ``{field: {"from": old, "to": new}}`` for every changed field.
    """
    text_fields = set(text_fields)
    changes: Dict[str, Dict[str, Any]] = {}
    for name in fields:
        if name not in new:
            continue
        before = old.get(name)
        after = new.get(name)
        if name in text_fields:
            before = "" if before is None else before
            after = "" if after is None else after
        if before != after:
            changes[name] = {"from": before, "to": after}
    return changes


class HistoryLog:
    """
    Capped, newest-first view over a Document's history list.

    The log mutates the list it was given in place, so the owning Document
    always sees the current entries.
    """

    def __init__(
        self,
        entries: List[HistoryEntry],
        limit: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.entries = entries
        self.limit = limit if limit is not None else config.HISTORY_LIMIT
        if len(self.entries) > self.limit:
            logger.warning("Loaded history exceeds cap, dropping %d oldest entries", len(self.entries) - self.limit)
            del self.entries[self.limit:]
        self._clock = clock or utc_now

    def __len__(self) -> int:
        return len(self.entries)

    def now(self) -> datetime:
        return self._clock()

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        self.entries.insert(0, entry)
        if len(self.entries) > self.limit:
            evicted = len(self.entries) - self.limit
            del self.entries[self.limit:]
            logger.debug("History cap reached, evicted %d oldest entries", evicted)
        return entry

    def record(
        self,
        entry_type: HistoryType,
        item_type: ItemType,
        item_id: str,
        item_title: str,
        changes: Dict[str, Any],
        group: Optional[str] = None,
    ) -> HistoryEntry:
        entry = HistoryEntry(
            id=f"h_{uuid.uuid4().hex[:12]}",
            timestamp=self.now().isoformat(),
            type=entry_type,
            item_type=item_type,
            item_id=item_id,
            item_title=item_title,
            changes=changes,
            group=group,
        )
        return self.append(entry)

    def list(
        self,
        item_type: Optional[str] = None,
        group: Optional[str] = None,
        entry_type: Optional[str] = None,
    ) -> List[HistoryEntry]:
        """Newest-first listing filtered by item type, group and entry type."""
        results = self.entries
        if item_type:
            wanted_item = coerce_enum(ItemType, item_type, None)
            results = [e for e in results if e.item_type == wanted_item]
        if group:
            results = [e for e in results if e.group == group]
        if entry_type:
            wanted_type = coerce_enum(HistoryType, entry_type, None)
            results = [e for e in results if e.type == wanted_type]
        return list(results)

    def snapshots(self) -> List[HistoryEntry]:
        """Progress snapshots in chronological order (oldest first)."""
        found = [
            e for e in reversed(self.entries)
            if e.type == HistoryType.PROGRESS_SNAPSHOT and isinstance(e.changes.get("snapshot"), dict)
        ]
        found.sort(key=lambda e: parse_timestamp(e.timestamp))
        return found


def describe_entry(entry: HistoryEntry) -> str:
    """Human-readable summary of what an entry changed."""
    if entry.type in (HistoryType.CREATED, HistoryType.DELETED, HistoryType.PROGRESS_SNAPSHOT):
        return ""
    if entry.type == HistoryType.PROGRESS:
        progress = entry.changes.get("progress") or {}
        return f"{progress.get('from')} → {progress.get('to')}"

    parts = []
    for key, change in entry.changes.items():
        if not isinstance(change, dict):
            continue
        before, after = change.get("from"), change.get("to")
        if key == "status":
            before, after = status_label(before), status_label(after)
        parts.append(f"{key}: {before} → {after}")
    return ", ".join(parts)
