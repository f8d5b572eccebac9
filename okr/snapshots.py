"""
Snapshot Recorder & Trend Aggregator.

A snapshot captures the progress of every objective and key result at one
instant and is stored as a ``progress-snapshot`` history entry, competing
with ordinary entries for the history cap.

Trend views replay those snapshots chronologically. Objectives that no
longer exist in the live document are dropped from every point, so deleting
an objective removes it from history retroactively.
"""
import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from okr.history import HistoryLog
from okr.logger import get_logger
from okr.models import GROUPS, Document, HistoryEntry, HistoryType, ItemType
from okr.progress import clamp, key_result_progress, objective_progress, round_half_up

logger = get_logger("snapshots")

SNAPSHOT_ITEM_ID = "all"
SNAPSHOT_TITLE = "Progress Snapshot"
SNAPSHOT_GROUP = "all"


@dataclass
class TrendPoint:
    timestamp: str
    value: int
    count: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "value": self.value, "count": self.count}


@dataclass
class ObjectiveTrend:
    objective_id: str
    title: str
    group: str
    points: List[TrendPoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "objectiveId": self.objective_id,
            "title": self.title,
            "group": self.group,
            "points": [{"timestamp": p.timestamp, "progress": p.value} for p in self.points],
        }


def build_snapshot(document: Document, timestamp: str) -> Dict[str, Any]:
    """Capture the current progress of every objective and key result."""
    objectives: Dict[str, Any] = {}
    for obj in document.objectives:
        objectives[obj.id] = {
            "title": obj.title,
            "group": obj.group.value,
            "progress": objective_progress(obj),
            "keyResults": {
                kr.id: {
                    "title": kr.title,
                    "progress": key_result_progress(kr),
                    "current": kr.current,
                    "target": kr.target,
                }
                for kr in obj.key_results
            },
        }
    return {"timestamp": timestamp, "objectives": objectives}


def record_snapshot(document: Document, log: HistoryLog) -> Optional[HistoryEntry]:
    """
    Append a progress snapshot to the history.

    Skipped when the document has no objectives. Every call appends a new
    entry, including several on the same day.
    """
    if not document.objectives:
        return None

    timestamp = log.now().isoformat()
    snapshot = build_snapshot(document, timestamp)
    entry = HistoryEntry(
        id=f"snap_{uuid.uuid4().hex[:12]}",
        timestamp=timestamp,
        type=HistoryType.PROGRESS_SNAPSHOT,
        item_type=ItemType.SYSTEM,
        item_id=SNAPSHOT_ITEM_ID,
        item_title=SNAPSHOT_TITLE,
        changes={"snapshot": snapshot},
        group=SNAPSHOT_GROUP,
    )
    logger.debug("Recorded progress snapshot for %d objectives", len(snapshot["objectives"]))
    return log.append(entry)


def _captured_objectives(entry: HistoryEntry) -> Dict[str, Any]:
    objectives = entry.changes["snapshot"].get("objectives")
    return objectives if isinstance(objectives, dict) else {}


def _captured_progress(captured: Dict[str, Any]) -> Optional[int]:
    """Stored progress as an int in [0, 100]; None when the value is unusable."""
    value = captured.get("progress")
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return clamp(round_half_up(number), 0, 100)


def _captured_group(captured: Dict[str, Any]) -> Optional[str]:
    group = captured.get("group")
    return group if isinstance(group, str) and group else None


def grouped_trend(document: Document, log: HistoryLog) -> Dict[str, List[TrendPoint]]:
    """
    Average progress per group over time.

    Only groups with at least one live objective appear. A snapshot adds a
    point to a group only if some surviving objective of that group was
    captured in it.
    """
    live_ids = document.objective_ids()
    live_groups = {obj.group.value for obj in document.objectives}
    series: Dict[str, List[TrendPoint]] = {
        group.value: [] for group in GROUPS if group.value in live_groups
    }

    for entry in log.snapshots():
        totals: Dict[str, List[int]] = {}
        for obj_id, captured in _captured_objectives(entry).items():
            if obj_id not in live_ids or not isinstance(captured, dict):
                continue
            group = _captured_group(captured)
            progress = _captured_progress(captured)
            if group in series and progress is not None:
                totals.setdefault(group, []).append(progress)

        for group, values in totals.items():
            series[group].append(
                TrendPoint(
                    timestamp=entry.timestamp,
                    value=round_half_up(sum(values) / len(values)),
                    count=len(values),
                )
            )

    return series


def individual_trend(
    document: Document,
    log: HistoryLog,
    group: Optional[str] = None,
    objective_id: Optional[str] = None,
) -> List[ObjectiveTrend]:
    """
    One progress series per surviving objective.

    Args:
        group: keep only points captured while the objective was in this group
        objective_id: keep only this objective
    """
    live = {obj.id: obj for obj in document.objectives}
    trends: Dict[str, ObjectiveTrend] = {}

    for entry in log.snapshots():
        for obj_id, captured in _captured_objectives(entry).items():
            if obj_id not in live or not isinstance(captured, dict):
                continue
            if group and _captured_group(captured) != group:
                continue
            if objective_id and obj_id != objective_id:
                continue
            progress = _captured_progress(captured)
            if progress is None:
                continue

            trend = trends.get(obj_id)
            if trend is None:
                trend = ObjectiveTrend(
                    objective_id=obj_id,
                    title=live[obj_id].title,
                    group=_captured_group(captured) or live[obj_id].group.value,
                )
                trends[obj_id] = trend
            trend.points.append(
                TrendPoint(timestamp=entry.timestamp, value=progress)
            )

    return [trends[obj.id] for obj in document.objectives if obj.id in trends]
