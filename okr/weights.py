"""
Weight Balancer.

Distributes integer percentage weights among siblings (objectives, or the
key results of one objective) so that they sum to 100. The +1 remainder
always goes to the earliest siblings in their current order.
"""
import math
from typing import Any, List, Sequence

from okr.exceptions import ValidationError
from okr.logger import get_logger

logger = get_logger("weights")

TOTAL_WEIGHT = 100


def clamp_weight(weight: Any) -> int:
    """
    Coerce a user-supplied weight into [0, 100].

    Numbers outside the range are clamped; anything that is not a finite
    number raises ValidationError.
    """
    if isinstance(weight, bool):
        raise ValidationError(f"Invalid weight: {weight}", field="weight")
    try:
        value = float(weight)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid weight: {weight}", field="weight")
    if not math.isfinite(value):
        raise ValidationError(f"Weight must be a finite number, got {weight}", field="weight")
    return max(0, min(TOTAL_WEIGHT, int(value)))


def split_evenly(total: int, count: int) -> List[int]:
    """``count`` integer shares of ``total``; earlier shares get the remainder."""
    if count <= 0:
        return []
    base = total // count
    remainder = total - base * count
    return [base + (1 if index < remainder else 0) for index in range(count)]


def balance_equally(items: Sequence[Any]) -> None:
    """Give every item an equal share of 100 (no-op for an empty sequence)."""
    for item, share in zip(items, split_evenly(TOTAL_WEIGHT, len(items))):
        item.weight = share


def rebalance_others(items: Sequence[Any], edited_id: str, manual_weight: Any) -> None:
    """
    Keep the edited item's weight and split the rest among its siblings.

    Args:
        items: all siblings, in display order
        edited_id: id of the item whose weight the user set
        manual_weight: the new weight; clamped to [0, 100]
    """
    weight = clamp_weight(manual_weight)
    others = []
    for item in items:
        if item.id == edited_id:
            item.weight = weight
        else:
            others.append(item)
    if not others:
        return

    for item, share in zip(others, split_evenly(TOTAL_WEIGHT - weight, len(others))):
        item.weight = share
    logger.debug("Rebalanced %d siblings around %s=%d", len(others), edited_id, weight)
