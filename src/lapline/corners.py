"""Corner segmentation of the master lap from smoothed curvature."""

import logging
from typing import List, Optional, Sequence

from .config import CornerThresholds
from .schema import CornerDef, Trackpoint
from .utils_num import wrap_angle

_logger = logging.getLogger("lapline.corners")

MIN_MASTER_POINTS = 5


def compute_curvature(master: Sequence[Trackpoint]) -> List[float]:
    """
    Central-difference curvature (heading change per meter) at each point.

    Args:
        master: Master lap trackpoints

    Returns:
        List of curvatures, same length as master; endpoints are 0
    """
    curv = [0.0] * len(master)
    for i in range(1, len(master) - 1):
        d_theta = wrap_angle(master[i + 1].theta - master[i - 1].theta)
        d_s = master[i + 1].s - master[i - 1].s
        if d_s != 0:
            curv[i] = d_theta / d_s
    return curv


def smooth_curvature(values: Sequence[float], window: int = 5) -> List[float]:
    """Trailing moving average using a running sum."""
    if window <= 1 or not values:
        return list(values)
    out = []
    running = 0.0
    for i, v in enumerate(values):
        running += v
        if i >= window:
            running -= values[i - window]
        out.append(running / min(i + 1, window))
    return out


def _find_candidates(master: Sequence[Trackpoint], curv: Sequence[float], th: CornerThresholds) -> List[dict]:
    candidates = []
    in_corner = False
    start_idx = 0
    max_idx = 0
    max_abs = 0.0
    last = len(curv) - 1

    for i, c in enumerate(curv):
        ac = abs(c)
        if not in_corner and ac > th.on_threshold:
            in_corner = True
            start_idx = i
            max_idx = i
            max_abs = ac
        if not in_corner:
            continue

        if ac > max_abs:
            max_abs = ac
            max_idx = i
        if ac < th.off_threshold or i == last:
            in_corner = False
            end_idx = i
            if end_idx <= start_idx:
                continue
            angle = wrap_angle(master[end_idx].theta - master[start_idx].theta)
            length = master[end_idx].s - master[start_idx].s
            if abs(angle) < th.min_angle or length < th.min_length:
                continue
            candidates.append({
                "start_s": master[start_idx].s,
                "end_s": master[end_idx].s,
                "apex_s": master[max_idx].s,
                "direction": "left" if angle >= 0 else "right",
                "angle_rad": angle,
            })
    return candidates


def _merge_candidates(candidates: List[dict], th: CornerThresholds) -> List[dict]:
    merged: List[dict] = []
    for c in candidates:
        if not merged:
            merged.append(dict(c))
            continue
        last = merged[-1]
        gap = c["start_s"] - last["end_s"]
        same_dir = c["direction"] == last["direction"]
        if (same_dir and gap < th.merge_gap) or gap < th.min_gap:
            if abs(c["angle_rad"]) > abs(last["angle_rad"]):
                last["apex_s"] = c["apex_s"]
            last["end_s"] = c["end_s"]
            last["angle_rad"] += c["angle_rad"]
            continue
        merged.append(dict(c))
    return merged


def detect_corners(master: Sequence[Trackpoint], thresholds: Optional[CornerThresholds] = None) -> List[CornerDef]:
    """
    Identify corners on the master lap.

    Curvature is smoothed, segmented with on/off hysteresis, filtered by
    minimum angle and length, then close segments are merged.

    Args:
        master: Master lap trackpoints (at least 5 points)
        thresholds: Corner thresholds, defaults to CornerThresholds()

    Returns:
        Corners in track order, indexed from 0
    """
    th = thresholds or CornerThresholds()
    if len(master) < MIN_MASTER_POINTS:
        _logger.debug("master lap has %d points, skipping corner detection", len(master))
        return []

    curv = smooth_curvature(compute_curvature(master), th.smooth_window)
    candidates = _find_candidates(master, curv, th)
    merged = _merge_candidates(candidates, th)

    corners = [CornerDef(index=i, **c) for i, c in enumerate(merged)]
    _logger.debug("detected %d corners from %d candidates", len(corners), len(candidates))
    return corners
