"""
Score Utilities
app/scoring/utils.py

Rounding and averaging helpers shared by the section raters.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable


def clamp(value: float, min_val: float = 0.0, max_val: float = 10.0) -> float:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean; 0.0 for an empty input."""
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)
