"""
Keeping capital figures finite.

Compounded growth over thousands of trades overflows float64.  Values are
saturated at +/- CAPITAL_CEILING (and NaN from inf * 0 becomes 0, a wiped
out account) so aggregates and JSON payloads stay finite.  The ceiling
leaves room to sum millions of saturated values without overflowing.
"""
from __future__ import annotations

import numpy as np

CAPITAL_CEILING = 1e300


def saturate(values) -> np.ndarray:
    """Replace NaN with 0 and clip to [-CAPITAL_CEILING, CAPITAL_CEILING]."""
    arr = np.asarray(values, dtype=np.float64)
    arr = np.nan_to_num(arr, nan=0.0, posinf=CAPITAL_CEILING, neginf=-CAPITAL_CEILING)
    return np.clip(arr, -CAPITAL_CEILING, CAPITAL_CEILING)


def saturate_scalar(value: float) -> float:
    return float(saturate(value))
