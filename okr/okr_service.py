"""
Canonical OKR domain service.

Holds one Document by reference and applies every mutation to it:
weights are balanced, the change is diffed into the history log, a
progress snapshot is recorded and, when a store is attached, the full
document is saved. Operations on unknown ids are no-ops.
"""
import math
import uuid
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from okr.exceptions import ValidationError
from okr.history import HistoryLog, diff_fields
from okr.logger import get_logger
from okr.models import (
    Confidence,
    Document,
    Group,
    HistoryEntry,
    HistoryType,
    ItemType,
    KeyResult,
    KeyResultStatus,
    Objective,
)
from okr.progress import clamp, format_progress, key_result_progress
from okr.snapshots import ObjectiveTrend, TrendPoint, grouped_trend, individual_trend, record_snapshot
from okr.status import parse_date
from okr.store import DocumentStore
from okr.views import dashboard, export_text_report, objective_view_model
from okr.weights import balance_equally, clamp_weight, rebalance_others

logger = get_logger("okr_service")

# attribute -> persisted key, in the order changes are reported
OBJECTIVE_FIELDS = {
    "title": "title",
    "group": "group",
    "year": "year",
    "quarter": "quarter",
    "purpose": "purpose",
    "start_date": "startDate",
    "target_date": "targetDate",
    "weight": "weight",
    "last_checkin": "lastCheckin",
}

KEY_RESULT_FIELDS = {
    "title": "title",
    "status": "status",
    "confidence": "confidence",
    "target": "target",
    "start_date": "startDate",
    "target_date": "targetDate",
    "weight": "weight",
    "last_checkin": "lastCheckin",
    "evidence": "evidence",
    "comments": "comments",
}

TEXT_FIELDS = {"purpose", "startDate", "targetDate", "lastCheckin", "evidence", "comments"}


def _plain(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


class OKRService:
    """Application service for objective and key result operations."""

    def __init__(
        self,
        document: Optional[Document] = None,
        store: Optional[DocumentStore] = None,
        history_limit: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.document = document if document is not None else Document()
        self.store = store
        self.history = HistoryLog(self.document.history, limit=history_limit, clock=clock)

    @classmethod
    def from_store(cls, store: DocumentStore, **kwargs) -> "OKRService":
        return cls(store.load(), store=store, **kwargs)

    # ---------------------------------------------------------------------
    # Input normalization
    # ---------------------------------------------------------------------
    @staticmethod
    def _new_id(prefix: str) -> str:
        return f"{prefix}_{uuid.uuid4().hex[:8]}"

    def _today(self) -> date:
        return self.history.now().date()

    @staticmethod
    def normalize_title(title: Any) -> str:
        cleaned = str(title or "").strip()
        if not cleaned:
            raise ValidationError("Title is required", field="title")
        return cleaned

    @staticmethod
    def normalize_group(group: Any) -> Group:
        if group is None or group == "":
            return Group.PERSONAL
        try:
            return Group(group)
        except ValueError:
            raise ValidationError(f"Unknown group: {group}", field="group")

    @staticmethod
    def normalize_status(status: Any) -> KeyResultStatus:
        if status is None or status == "":
            return KeyResultStatus.ON_TRACK
        try:
            return KeyResultStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown status: {status}", field="status")

    @staticmethod
    def normalize_confidence(confidence: Any) -> Confidence:
        if confidence is None or confidence == "":
            return Confidence.MEDIUM
        try:
            return Confidence(confidence)
        except ValueError:
            raise ValidationError(f"Unknown confidence: {confidence}", field="confidence")

    @staticmethod
    def normalize_year(year: Any) -> int:
        try:
            return int(year)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid year: {year}", field="year")

    @staticmethod
    def normalize_quarter(quarter: Any) -> int:
        try:
            value = int(quarter)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid quarter: {quarter}", field="quarter")
        if value not in (1, 2, 3, 4):
            raise ValidationError(f"Quarter must be 1-4, got {value}", field="quarter")
        return value

    @staticmethod
    def normalize_date(value: Any, field: str) -> Optional[str]:
        if value is None or value == "":
            return None
        parsed = parse_date(value)
        if parsed is None:
            raise ValidationError(f"Invalid date for {field}: {value}", field=field)
        return parsed.isoformat()

    @staticmethod
    def normalize_target(target: Any) -> float:
        try:
            value = float(target)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid target: {target}", field="target")
        if not math.isfinite(value):
            raise ValidationError(f"Target must be a finite number, got {target}", field="target")
        if value <= 0:
            raise ValidationError("Target must be greater than 0", field="target")
        return int(value) if value.is_integer() else value

    @staticmethod
    def normalize_text(value: Any) -> str:
        return str(value or "").strip()

    def _normalize_objective_updates(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        unknown = set(updates) - set(OBJECTIVE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown objective fields: {sorted(unknown)}")

        normalizers = {
            "title": self.normalize_title,
            "group": self.normalize_group,
            "year": self.normalize_year,
            "quarter": self.normalize_quarter,
            "purpose": self.normalize_text,
            "start_date": lambda v: self.normalize_date(v, "start_date"),
            "target_date": lambda v: self.normalize_date(v, "target_date"),
            "weight": clamp_weight,
            "last_checkin": lambda v: self.normalize_date(v, "last_checkin"),
        }
        return {name: normalizers[name](value) for name, value in updates.items()}

    def _normalize_key_result_updates(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        unknown = set(updates) - set(KEY_RESULT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown key result fields: {sorted(unknown)}")

        normalizers = {
            "title": self.normalize_title,
            "status": self.normalize_status,
            "confidence": self.normalize_confidence,
            "target": self.normalize_target,
            "start_date": lambda v: self.normalize_date(v, "start_date"),
            "target_date": lambda v: self.normalize_date(v, "target_date"),
            "weight": clamp_weight,
            "last_checkin": lambda v: self.normalize_date(v, "last_checkin"),
            "evidence": self.normalize_text,
            "comments": self.normalize_text,
        }
        return {name: normalizers[name](value) for name, value in updates.items()}

    @staticmethod
    def _field_changes(entity: Any, updates: Dict[str, Any], fields: Dict[str, str]) -> Dict[str, Any]:
        old = {fields[name]: _plain(getattr(entity, name)) for name in updates}
        new = {fields[name]: _plain(value) for name, value in updates.items()}
        ordered = [key for name, key in fields.items() if name in updates]
        return diff_fields(old, new, ordered, TEXT_FIELDS)

    # ---------------------------------------------------------------------
    # Persistence
    # ---------------------------------------------------------------------
    def save(self) -> None:
        """Request a full save; PersistenceError propagates to the caller."""
        if self.store is not None:
            self.store.save(self.document)

    def _commit(self) -> None:
        record_snapshot(self.document, self.history)
        self.save()

    # ---------------------------------------------------------------------
    # Query operations
    # ---------------------------------------------------------------------
    def get_objective(self, objective_id: str) -> Optional[Objective]:
        return self.document.find_objective(objective_id)

    def get_key_result(self, objective_id: str, key_result_id: str) -> Optional[KeyResult]:
        objective = self.get_objective(objective_id)
        if objective is None:
            return None
        return objective.find_key_result(key_result_id)

    def list_objectives(self, group: Optional[str] = None) -> List[Objective]:
        if not group:
            return list(self.document.objectives)
        return [o for o in self.document.objectives if o.group.value == group]

    def list_history(
        self,
        item_type: Optional[str] = None,
        group: Optional[str] = None,
        entry_type: Optional[str] = None,
    ) -> List[HistoryEntry]:
        return self.history.list(item_type=item_type, group=group, entry_type=entry_type)

    def grouped_trend(self) -> Dict[str, List[TrendPoint]]:
        return grouped_trend(self.document, self.history)

    def individual_trend(
        self, group: Optional[str] = None, objective_id: Optional[str] = None
    ) -> List[ObjectiveTrend]:
        return individual_trend(self.document, self.history, group=group, objective_id=objective_id)

    def objective_view(self, objective_id: str, today: Optional[date] = None) -> Optional[Dict[str, Any]]:
        objective = self.get_objective(objective_id)
        if objective is None:
            return None
        return objective_view_model(objective, today)

    def objective_views(self, group: Optional[str] = None, today: Optional[date] = None) -> List[Dict[str, Any]]:
        return [objective_view_model(o, today) for o in self.list_objectives(group)]

    def dashboard(self) -> Dict[str, Dict[str, int]]:
        return dashboard(self.document)

    def export_report(self, today: Optional[date] = None) -> str:
        return export_text_report(self.document, today or self._today())

    # ---------------------------------------------------------------------
    # Objective commands
    # ---------------------------------------------------------------------
    def add_objective(
        self,
        title: str,
        group: Optional[str] = None,
        year: Optional[int] = None,
        quarter: Optional[int] = None,
        purpose: str = "",
        start_date: Optional[str] = None,
        target_date: Optional[str] = None,
        last_checkin: Optional[str] = None,
    ) -> Objective:
        today = self._today()
        objective = Objective(
            id=self._new_id("obj"),
            title=self.normalize_title(title),
            group=self.normalize_group(group),
            year=self.normalize_year(year if year is not None else today.year),
            quarter=self.normalize_quarter(
                quarter if quarter is not None else (today.month - 1) // 3 + 1
            ),
            purpose=self.normalize_text(purpose),
            start_date=self.normalize_date(start_date, "start_date"),
            target_date=self.normalize_date(target_date, "target_date"),
            weight=0,
            last_checkin=self.normalize_date(last_checkin, "last_checkin"),
            created_at=today.isoformat(),
        )
        self.document.objectives.append(objective)
        balance_equally(self.document.objectives)

        self.history.record(
            HistoryType.CREATED,
            ItemType.OBJECTIVE,
            objective.id,
            objective.title,
            {"created": True},
            objective.group.value,
        )
        logger.info("Objective created: %s (%s)", objective.id, objective.title)
        self._commit()
        return objective

    def edit_objective(self, objective_id: str, **updates: Any) -> Optional[Objective]:
        """
        Apply the supplied fields to an objective.

        A changed weight is clamped to [0, 100] and the other objectives
        split the remainder; their new weights are not logged.
        """
        objective = self.get_objective(objective_id)
        if objective is None:
            logger.debug("edit_objective: unknown id %s", objective_id)
            return None

        normalized = self._normalize_objective_updates(updates)
        changes = self._field_changes(objective, normalized, OBJECTIVE_FIELDS)
        old_weight = objective.weight

        for name, value in normalized.items():
            setattr(objective, name, value)

        if changes:
            self.history.record(
                HistoryType.UPDATED,
                ItemType.OBJECTIVE,
                objective.id,
                objective.title,
                changes,
                objective.group.value,
            )
        if "weight" in normalized and normalized["weight"] != old_weight:
            rebalance_others(self.document.objectives, objective.id, normalized["weight"])

        self._commit()
        return objective

    def delete_objective(self, objective_id: str) -> bool:
        """Remove an objective and, without logging them, all of its key results."""
        objective = self.get_objective(objective_id)
        if objective is None:
            logger.debug("delete_objective: unknown id %s", objective_id)
            return False

        self.history.record(
            HistoryType.DELETED,
            ItemType.OBJECTIVE,
            objective.id,
            objective.title,
            {"deleted": True},
            objective.group.value,
        )
        self.document.objectives.remove(objective)
        logger.info("Objective deleted: %s (%s)", objective.id, objective.title)
        self._commit()
        return True

    def balance_objective_weights(self) -> None:
        """Explicit "balance all": equal weights for every objective."""
        balance_equally(self.document.objectives)
        self.save()

    # ---------------------------------------------------------------------
    # Key result commands
    # ---------------------------------------------------------------------
    def add_key_result(
        self,
        objective_id: str,
        title: str,
        target: Any = 100,
        start_date: Optional[str] = None,
        target_date: Optional[str] = None,
        status: Optional[str] = None,
        confidence: Optional[str] = None,
        last_checkin: Optional[str] = None,
        evidence: str = "",
        comments: str = "",
    ) -> Optional[KeyResult]:
        objective = self.get_objective(objective_id)
        if objective is None:
            logger.debug("add_key_result: unknown objective %s", objective_id)
            return None

        kr = KeyResult(
            id=self._new_id("kr"),
            title=self.normalize_title(title),
            target=self.normalize_target(target),
            current=0,
            weight=0,
            status=self.normalize_status(status),
            confidence=self.normalize_confidence(confidence),
            start_date=self.normalize_date(start_date, "start_date"),
            target_date=self.normalize_date(target_date, "target_date"),
            last_checkin=self.normalize_date(last_checkin, "last_checkin"),
            evidence=self.normalize_text(evidence),
            comments=self.normalize_text(comments),
            created_at=self._today().isoformat(),
        )
        objective.key_results.append(kr)
        balance_equally(objective.key_results)

        self.history.record(
            HistoryType.CREATED,
            ItemType.KEY_RESULT,
            kr.id,
            kr.title,
            {"created": True},
            objective.group.value,
        )
        logger.info("Key result created: %s under %s", kr.id, objective.id)
        self._commit()
        return kr

    def edit_key_result(self, objective_id: str, key_result_id: str, **updates: Any) -> Optional[KeyResult]:
        objective = self.get_objective(objective_id)
        kr = objective.find_key_result(key_result_id) if objective else None
        if kr is None:
            logger.debug("edit_key_result: unknown id %s/%s", objective_id, key_result_id)
            return None

        normalized = self._normalize_key_result_updates(updates)
        changes = self._field_changes(kr, normalized, KEY_RESULT_FIELDS)
        old_weight = kr.weight

        for name, value in normalized.items():
            setattr(kr, name, value)
        kr.current = clamp(kr.current, 0, kr.target)

        if changes:
            self.history.record(
                HistoryType.UPDATED,
                ItemType.KEY_RESULT,
                kr.id,
                kr.title,
                changes,
                objective.group.value,
            )
        if "weight" in normalized and normalized["weight"] != old_weight:
            rebalance_others(objective.key_results, kr.id, normalized["weight"])

        self._commit()
        return kr

    def adjust_progress(self, objective_id: str, key_result_id: str, delta: Any) -> Optional[KeyResult]:
        """
        Increment (or decrement, with a negative delta) a key result's current value.

        The new value is clamped into [0, target]; a progress entry is logged
        only when the value actually moved.
        """
        objective = self.get_objective(objective_id)
        kr = objective.find_key_result(key_result_id) if objective else None
        if kr is None:
            logger.debug("adjust_progress: unknown id %s/%s", objective_id, key_result_id)
            return None

        try:
            step = float(delta)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid progress delta: {delta}", field="delta")
        if not math.isfinite(step):
            raise ValidationError(f"Progress delta must be a finite number, got {delta}", field="delta")
        step = int(step) if step.is_integer() else step

        old_current = kr.current
        old_progress = key_result_progress(kr)
        new_current = clamp(kr.current + step, 0, max(kr.target, 0))
        if isinstance(new_current, float) and new_current.is_integer():
            new_current = int(new_current)
        kr.current = new_current

        if kr.current != old_current:
            self.history.record(
                HistoryType.PROGRESS,
                ItemType.KEY_RESULT,
                kr.id,
                kr.title,
                {
                    "progress": {
                        "from": format_progress(old_current, kr.target, old_progress),
                        "to": format_progress(kr.current, kr.target, key_result_progress(kr)),
                        "delta": step,
                    }
                },
                objective.group.value,
            )

        self._commit()
        return kr

    def delete_key_result(self, objective_id: str, key_result_id: str) -> bool:
        objective = self.get_objective(objective_id)
        kr = objective.find_key_result(key_result_id) if objective else None
        if kr is None:
            logger.debug("delete_key_result: unknown id %s/%s", objective_id, key_result_id)
            return False

        self.history.record(
            HistoryType.DELETED,
            ItemType.KEY_RESULT,
            kr.id,
            kr.title,
            {"deleted": True},
            objective.group.value,
        )
        objective.key_results.remove(kr)
        logger.info("Key result deleted: %s under %s", kr.id, objective.id)
        self._commit()
        return True

    def balance_key_result_weights(self, objective_id: str) -> bool:
        """Explicit "balance all" for one objective's key results."""
        objective = self.get_objective(objective_id)
        if objective is None:
            return False
        balance_equally(objective.key_results)
        self.save()
        return True
