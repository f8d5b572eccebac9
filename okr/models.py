"""
Core Data Models for OKR Tracker.

Defines Objectives, Key Results, history entries and the Document aggregate.
Persisted JSON uses camelCase keys; ``from_dict`` is the single place where
defaults are filled in for documents read from disk (including documents
written by the baseline schema that had no confidence/history fields).
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from okr.config_manager import config

SCHEMA_VERSION = "2.0"


class Group(str, Enum):
    PERSONAL = "Personal"
    TEAM = "Team"
    COMPANY = "Company"


class KeyResultStatus(str, Enum):
    ON_TRACK = "on-track"
    OFF_TRACK = "off-track"
    AT_RISK = "at-risk"


class Confidence(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class HistoryType(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    PROGRESS = "progress"
    DELETED = "deleted"
    PROGRESS_SNAPSHOT = "progress-snapshot"


class ItemType(str, Enum):
    OBJECTIVE = "objective"
    KEY_RESULT = "keyresult"
    SYSTEM = "system"


GROUPS = (Group.PERSONAL, Group.TEAM, Group.COMPANY)


def coerce_enum(enum_cls, value: Any, default):
    """Map a raw value onto ``enum_cls``; unknown values fall back to ``default``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _as_int(value: Any, default: Optional[int]) -> Optional[int]:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _as_number(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else default
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(parsed):
        return default
    return int(parsed) if parsed.is_integer() else parsed


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_optional_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


@dataclass
class KeyResult:
    """A measurable sub-target of an Objective (current/target pair)."""
    id: str
    title: str
    target: float = 100
    current: float = 0
    weight: int = 0
    status: KeyResultStatus = KeyResultStatus.ON_TRACK
    confidence: Confidence = Confidence.MEDIUM
    start_date: Optional[str] = None
    target_date: Optional[str] = None
    last_checkin: Optional[str] = None
    evidence: str = ""
    comments: str = ""
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "target": self.target,
            "current": self.current,
            "weight": self.weight,
            "status": self.status.value,
            "confidence": self.confidence.value,
            "startDate": self.start_date,
            "targetDate": self.target_date,
            "lastCheckin": self.last_checkin,
            "evidence": self.evidence,
            "comments": self.comments,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "KeyResult":
        target = _as_number(d.get("target"), 100)
        current = _as_number(d.get("current"), 0)
        # 旧文件里可能存在越界的 current，读入时统一夹紧
        current = max(0, min(current, max(target, 0)))
        return cls(
            id=str(d["id"]),
            title=_as_text(d.get("title")),
            target=target,
            current=current,
            weight=_as_int(d.get("weight"), 0),
            status=coerce_enum(KeyResultStatus, d.get("status"), KeyResultStatus.ON_TRACK),
            confidence=coerce_enum(Confidence, d.get("confidence"), Confidence.MEDIUM),
            start_date=_as_optional_text(d.get("startDate")),
            target_date=_as_optional_text(d.get("targetDate")),
            last_checkin=_as_optional_text(d.get("lastCheckin")),
            evidence=_as_text(d.get("evidence")),
            comments=_as_text(d.get("comments")),
            created_at=_as_optional_text(d.get("createdAt") or d.get("created")),
        )


@dataclass
class Objective:
    """A top-level goal with a group, time period and weighted priority."""
    id: str
    title: str
    group: Group = Group.PERSONAL
    year: Optional[int] = None
    quarter: Optional[int] = None
    purpose: str = ""
    start_date: Optional[str] = None
    target_date: Optional[str] = None
    weight: int = 0
    last_checkin: Optional[str] = None
    created_at: Optional[str] = None
    key_results: List[KeyResult] = field(default_factory=list)

    def find_key_result(self, key_result_id: str) -> Optional[KeyResult]:
        return next((kr for kr in self.key_results if kr.id == key_result_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "group": self.group.value,
            "year": self.year,
            "quarter": self.quarter,
            "title": self.title,
            "purpose": self.purpose,
            "startDate": self.start_date,
            "targetDate": self.target_date,
            "weight": self.weight,
            "lastCheckin": self.last_checkin,
            "createdAt": self.created_at,
            "keyResults": [kr.to_dict() for kr in self.key_results],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Objective":
        return cls(
            id=str(d["id"]),
            title=_as_text(d.get("title")),
            group=coerce_enum(Group, d.get("group"), Group.PERSONAL),
            year=_as_int(d.get("year"), None),
            quarter=_as_int(d.get("quarter"), None),
            purpose=_as_text(d.get("purpose")),
            start_date=_as_optional_text(d.get("startDate")),
            target_date=_as_optional_text(d.get("targetDate")),
            weight=_as_int(d.get("weight"), 0),
            last_checkin=_as_optional_text(d.get("lastCheckin")),
            created_at=_as_optional_text(d.get("createdAt") or d.get("created")),
            key_results=[
                KeyResult.from_dict(kr)
                for kr in _as_list(d.get("keyResults"))
                if isinstance(kr, dict) and kr.get("id")
            ],
        )


@dataclass(frozen=True)
class HistoryEntry:
    """One immutable record of a create/update/delete/progress/snapshot event."""
    id: str
    timestamp: str
    type: HistoryType
    item_type: ItemType
    item_id: str
    item_title: str
    changes: Dict[str, Any] = field(default_factory=dict)
    group: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "type": self.type.value,
            "itemType": self.item_type.value,
            "itemId": self.item_id,
            "itemTitle": self.item_title,
            "changes": self.changes,
            "group": self.group,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HistoryEntry":
        changes = d.get("changes")
        return cls(
            id=str(d["id"]),
            timestamp=_as_text(d.get("timestamp")),
            type=HistoryType(d["type"]),
            item_type=coerce_enum(ItemType, d.get("itemType"), ItemType.SYSTEM),
            item_id=_as_text(d.get("itemId")),
            item_title=_as_text(d.get("itemTitle")),
            changes=changes if isinstance(changes, dict) else {},
            group=_as_optional_text(d.get("group")),
        )


@dataclass
class Document:
    """Root aggregate: ordered objectives plus newest-first history."""
    objectives: List[Objective] = field(default_factory=list)
    history: List[HistoryEntry] = field(default_factory=list)
    schema_version: str = SCHEMA_VERSION

    def find_objective(self, objective_id: str) -> Optional[Objective]:
        return next((o for o in self.objectives if o.id == objective_id), None)

    def objective_ids(self) -> set:
        return {o.id for o in self.objectives}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "objectives": [o.to_dict() for o in self.objectives],
            "history": [h.to_dict() for h in self.history],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Document":
        """
        Build a Document from parsed JSON, tolerating missing or malformed parts.

        Records that cannot be interpreted (no id, unknown history type) are
        skipped rather than failing the whole load.
        History beyond the configured cap is dropped from the oldest end.
        """
        if not isinstance(data, dict):
            return cls()

        objectives = []
        for raw in _as_list(data.get("objectives")):
            if isinstance(raw, dict) and raw.get("id"):
                objectives.append(Objective.from_dict(raw))

        history = []
        for raw in _as_list(data.get("history")):
            if not isinstance(raw, dict):
                continue
            try:
                history.append(HistoryEntry.from_dict(raw))
            except (KeyError, ValueError):
                continue
            if len(history) >= config.HISTORY_LIMIT:
                break

        return cls(objectives=objectives, history=history)
