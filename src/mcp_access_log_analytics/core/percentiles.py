"""Exact continuous percentiles."""

from __future__ import annotations

import math
from collections.abc import Sequence


def percentile_cont(sorted_values: Sequence[float], p: float) -> float:
    """Interpolated percentile over ascending values (PERCENTILE_CONT semantics)."""
    if not sorted_values:
        raise ValueError("percentile of an empty sample is undefined")
    if not 0.0 <= p <= 1.0:
        raise ValueError("p must be within [0, 1]")

    n = len(sorted_values)
    if n == 1:
        return sorted_values[0]

    rank = p * (n - 1)
    lo = math.floor(rank)
    hi = math.ceil(rank)
    low_value = sorted_values[lo]
    high_value = sorted_values[hi]
    value = low_value + (rank - lo) * (high_value - low_value)
    # Keep float rounding from stepping outside the bracketing samples.
    return min(max(value, low_value), high_value)
