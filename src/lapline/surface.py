"""Sliding-window road surface classification."""

import logging
from typing import List, Optional, Sequence

from .config import SurfaceThresholds
from .schema import Sample, SurfaceTransition, Trackpoint
from .utils_num import finite_sum, wrap_angle

_logger = logging.getLogger("lapline.surface")


def _variance(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    n = len(values)
    total = 0.0
    total_sq = 0.0
    for v in values:
        total += v
        total_sq += v * v
    mean = total / n
    return total_sq / n - mean * mean


def _lateral_variance(window: Sequence[Sample]) -> float:
    return _variance([s.accel_x for s in window])


def _heading_variance(window: Sequence[Trackpoint]) -> float:
    if len(window) < 2:
        return 0.0
    diffs = [wrap_angle(window[k].theta - window[k - 1].theta) for k in range(1, len(window))]
    return _variance(diffs)


def _slip_estimate(window: Sequence[Sample]) -> float:
    """Mean gap between measured acceleration and speed derivative."""
    if len(window) < 2:
        return 0.0
    total = 0.0
    for k in range(1, len(window)):
        prev = window[k - 1]
        cur = window[k]
        dt = cur.time - prev.time
        if not dt > 0:
            continue
        total += cur.accel_x - (cur.speed - prev.speed) / dt
    return total / (len(window) - 1)


def classify_surface(
    samples: Sequence[Sample],
    points: Sequence[Trackpoint],
    window: Optional[int] = None,
    thresholds: Optional[SurfaceThresholds] = None,
) -> List[str]:
    """
    Label every sample as puddle, rumble, dirt or asphalt.

    Puddle and rumble come straight from the wheel contact flags of the
    sample itself; dirt needs a noisy trailing window (lateral acceleration
    variance, heading-change variance and slip all above their limits).

    Args:
        samples: Telemetry samples
        points: Trackpoints aligned 1:1 with samples
        window: Trailing window length in samples; None or <= 0 uses
            thresholds.window (30 by default)
        thresholds: Surface thresholds, defaults to SurfaceThresholds()

    Returns:
        One label per sample. Mismatched or empty inputs give a list of
        empty strings as long as points.
    """
    th = thresholds or SurfaceThresholds()
    if window is None or window <= 0:
        window = th.window

    n = len(samples)
    if n == 0 or len(points) != n:
        _logger.debug("surface classification skipped: %d samples vs %d points", n, len(points))
        return [""] * len(points)

    labels = []
    for i, sample in enumerate(samples):
        if finite_sum(sample.wheel_in_puddle) > th.puddle_sum:
            labels.append("puddle")
            continue
        if finite_sum(sample.wheel_on_rumble) > th.rumble_sum:
            labels.append("rumble")
            continue

        start = max(0, i - window + 1)
        win_samples = samples[start:i + 1]
        if (_lateral_variance(win_samples) > th.lat_variance
                and _heading_variance(points[start:i + 1]) > th.heading_variance
                and _slip_estimate(win_samples) > th.slip):
            labels.append("dirt")
        else:
            labels.append("asphalt")
    return labels


def surface_transitions(labels: Sequence[str], samples: Sequence[Sample]) -> List[SurfaceTransition]:
    """
    List the points where the surface label changes.

    Empty labels are skipped and do not break a run.
    """
    out = []
    prev_label = ""
    for i, label in enumerate(labels):
        if not label:
            continue
        if prev_label and label != prev_label and i < len(samples):
            out.append(SurfaceTransition(
                index=i,
                time=samples[i].time,
                from_label=prev_label,
                to_label=label,
            ))
        prev_label = label
    return out
