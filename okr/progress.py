"""
Progress Calculator.

Pure functions deriving completion percentages from Key Result
current/target pairs. A target of 0 yields 0% instead of a division error.
"""
import math
from typing import Iterable

from okr.models import KeyResult, Objective


def round_half_up(value: float) -> int:
    """Round .5 upwards (``round()`` would use banker's rounding)."""
    return int(math.floor(value + 0.5))


def clamp(value, low, high):
    return max(low, min(high, value))


def _raw_percentage(kr: KeyResult) -> float:
    if not kr.target or kr.target <= 0:
        return 0.0
    return clamp(kr.current / kr.target * 100, 0.0, 100.0)


def key_result_progress(kr: KeyResult) -> int:
    return clamp(round_half_up(_raw_percentage(kr)), 0, 100)


def objective_progress(objective: Objective) -> int:
    """
    Unweighted mean of the Key Results' percentages.

    KR weights express priority only; they do not weight progress.
    """
    if not objective.key_results:
        return 0
    total = sum(_raw_percentage(kr) for kr in objective.key_results)
    return clamp(round_half_up(total / len(objective.key_results)), 0, 100)


def group_progress(objectives: Iterable[Objective]) -> int:
    """Average objective progress for a dashboard group; 0 when empty."""
    values = [objective_progress(o) for o in objectives]
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def progress_color(percentage: int) -> str:
    """Progress bar colour band: 0-25 blue, 26-55 yellow, 56-69 light green, 70+ dark green."""
    if percentage <= 25:
        return "#3b82f6"
    if percentage <= 55:
        return "#eab308"
    if percentage <= 69:
        return "#10b981"
    return "#059669"


def format_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_progress(current, target, percentage: int) -> str:
    """Render ``"<current>/<target> (<pct>%)"`` as shown in progress history entries."""
    return f"{format_number(current)}/{format_number(target)} ({percentage}%)"
