"""Utility functions for INOCSIM.

Conversion of fractional day counts (sampled treatment delays, the
prophylaxis window) to whole simulation days.
"""

from __future__ import annotations

import math

ROUNDING_MODES = frozenset({'round', 'floor', 'ceil'})


def round_half_away(x: float) -> int:
    """Round to nearest integer, halves away from zero (2.5 → 3, -2.5 → -3)."""
    if x >= 0:
        return int(math.floor(x + 0.5))
    return -int(math.floor(-x + 0.5))


def round_days(days: float, mode: str = 'round') -> int:
    """Convert a fractional number of days to whole days.

    Args:
        days: Fractional day count.
        mode: 'round' (half away from zero), 'floor' or 'ceil'.

    Raises:
        ValueError: On an unknown mode.
    """
    if mode == 'round':
        return round_half_away(days)
    if mode == 'floor':
        return int(math.floor(days))
    if mode == 'ceil':
        return int(math.ceil(days))
    raise ValueError(f"unknown rounding mode '{mode}', expected one of {sorted(ROUNDING_MODES)}")
