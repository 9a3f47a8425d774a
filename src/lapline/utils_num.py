"""Numeric utility functions shared by the track detectors."""

import math
from typing import Optional


def wrap_angle(angle: float) -> float:
    """
    Wrap an angle in radians into the (-pi, pi] range.

    Args:
        angle: Angle in radians, any magnitude

    Returns:
        float: Equivalent angle in (-pi, pi]
    """
    while angle > math.pi:
        angle -= 2 * math.pi
    while angle <= -math.pi:
        angle += 2 * math.pi
    return angle


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value into [lo, hi]."""
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def clean_float(value: Optional[float], default: float = 0.0) -> float:
    """
    Replace missing or non-finite numbers with a default.

    Args:
        value: Number to clean
        default: Value used for None, NaN and +/-inf

    Returns:
        float: The finite value or the default
    """
    if value is None:
        return default
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value):
        return default
    return value


def sign(value: float) -> float:
    """Return 1.0, -1.0 or 0.0 following the sign of value."""
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0


def finite_sum(values) -> float:
    """Sum the finite entries of values, ignoring NaN and inf."""
    total = 0.0
    for v in values:
        v = clean_float(v, 0.0)
        total += v
    return total
