"""
Status/Warning Classifier.

Stateless mappings from dates and progress to urgency classes. All
comparisons are date-only: time of day is stripped from both sides.
"""
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from okr.config_manager import config
from okr.models import Confidence, KeyResultStatus, coerce_enum

DateLike = Union[str, date, None]


class DateWarning(str, Enum):
    RED = "red"
    YELLOW = "yellow"


class OutlineClass(str, Enum):
    OVERDUE_RED = "overdue-red"
    OVERDUE_YELLOW = "overdue-yellow"
    ON_TRACK_BLUE = "on-track-blue"
    COMPLETE_GREEN = "complete-green"


STATUS_LABELS = {
    KeyResultStatus.ON_TRACK: "On Track",
    KeyResultStatus.OFF_TRACK: "Off Track",
    KeyResultStatus.AT_RISK: "At Risk",
}


def parse_date(value: DateLike) -> Optional[date]:
    """Accept ``YYYY-MM-DD``, a full ISO timestamp, or a date; ``None`` if unusable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if "T" in text:
        text = text.split("T")[0]
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def format_date_only(value: DateLike) -> str:
    """Date part of a stored date/timestamp string, for display."""
    if not value:
        return ""
    text = str(value)
    return text.split("T")[0] if "T" in text else text


def _today(today: Optional[date]) -> date:
    return today or date.today()


def days_until(target_date: DateLike, today: Optional[date] = None) -> Optional[int]:
    target = parse_date(target_date)
    if target is None:
        return None
    return (target - _today(today)).days


def date_warning(target_date: DateLike, today: Optional[date] = None) -> Optional[DateWarning]:
    """Red once the target date has passed, yellow within the due-soon window."""
    remaining = days_until(target_date, today)
    if remaining is None:
        return None
    if remaining < 0:
        return DateWarning.RED
    if remaining <= config.DUE_SOON_DAYS:
        return DateWarning.YELLOW
    return None


def checkin_overdue(last_checkin: DateLike, today: Optional[date] = None) -> bool:
    checkin = parse_date(last_checkin)
    if checkin is None:
        return False
    return (_today(today) - checkin).days >= config.CHECKIN_OVERDUE_DAYS


def objective_outline(
    progress: int,
    target_date: DateLike,
    today: Optional[date] = None,
) -> Optional[OutlineClass]:
    """
    Combine the due-date state with the progress thresholds.

    Returns one of four mutually exclusive classes, or None when the
    objective has no target date or is not yet due with progress below 70%.
    """
    remaining = days_until(target_date, today)
    if remaining is None:
        return None

    threshold = config.OUTLINE_PROGRESS_THRESHOLD
    if remaining < 0:
        return OutlineClass.OVERDUE_RED if progress < threshold else OutlineClass.OVERDUE_YELLOW
    if progress >= 100:
        return OutlineClass.COMPLETE_GREEN
    if progress >= threshold:
        return OutlineClass.ON_TRACK_BLUE
    return None


def status_label(status) -> str:
    resolved = coerce_enum(KeyResultStatus, status, KeyResultStatus.ON_TRACK)
    return STATUS_LABELS[resolved]


def confidence_label(confidence) -> str:
    return coerce_enum(Confidence, confidence, Confidence.MEDIUM).value
