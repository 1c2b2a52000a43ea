"""
Shared numeric helpers so every module rounds and averages the same way.
"""

import math
import statistics
from collections.abc import Sequence


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (not banker's rounding)."""
    return math.floor(value + 0.5)


def avg(values: Sequence[float]) -> float | None:
    if not values:
        return None
    return statistics.fmean(values)


def avg_rounded(values: Sequence[float]) -> int | None:
    average = avg(values)
    return None if average is None else round_half_up(average)


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation; 0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return statistics.pstdev(values)


def truncate_one_decimal(value: float) -> float:
    """Drop everything past the first decimal, toward zero (1.96 -> 1.9, -1.96 -> -1.9)."""
    # Rounding to 9 places first keeps 0.3 * 10 == 2.9999999999999996 from losing a tenth
    return math.trunc(round(value * 10, 9)) / 10
