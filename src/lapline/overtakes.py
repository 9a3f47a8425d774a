"""Overtake detection between cars mapped onto the master lap."""

import logging
import math
from itertools import combinations
from typing import Dict, List, Mapping, Optional, Sequence

from .schema import MappedPoint, OvertakeEvent

_logger = logging.getLogger("lapline.overtakes")


def lap_lengths(points: Sequence[MappedPoint]) -> Dict[int, float]:
    """Longest arc-length seen per lap number."""
    lengths: Dict[int, float] = {}
    for p in points:
        if p.rel_s > lengths.get(p.lap, 0.0):
            lengths[p.lap] = p.rel_s
    return lengths


def progress(point: MappedPoint, lengths: Mapping[int, float]) -> float:
    """Race progress as completed laps plus the fraction of the current lap."""
    length = lengths.get(point.lap, 0.0)
    if length <= 0:
        length = 1.0
    return (point.lap - 1) + point.rel_s / length


def point_at_time(points: Sequence[MappedPoint], t: float) -> Optional[MappedPoint]:
    """
    Linearly interpolate a mapped stream at time t.

    Times before the first or after the last point clamp to that point.
    The lap number is taken from the earlier of the two bracketing points;
    when the two points lie on different laps the earlier one is held.

    Args:
        points: Time-ordered mapped points of one car
        t: Query time

    Returns:
        Interpolated MappedPoint, or None for an empty stream
    """
    if not points:
        return None
    if t <= points[0].time:
        return points[0]
    if t >= points[-1].time:
        return points[-1]

    lo, hi = 0, len(points) - 1
    while hi - lo > 1:
        mid = (lo + hi) >> 1
        if points[mid].time <= t:
            lo = mid
        else:
            hi = mid
    p1, p2 = points[lo], points[hi]
    span = p2.time - p1.time
    if span <= 0:
        return p1
    if p1.lap != p2.lap:
        # Never interpolate across the start/finish line
        return p1.model_copy(update={"time": t})
    alpha = (t - p1.time) / span
    return MappedPoint(
        time=t,
        lap=p1.lap,
        rel_s=p1.rel_s + (p2.rel_s - p1.rel_s) * alpha,
        master_x=p1.master_x + (p2.master_x - p1.master_x) * alpha,
        master_y=p1.master_y + (p2.master_y - p1.master_y) * alpha,
    )


def _detect_pair(a_name: str, b_name: str, a_pts: Sequence[MappedPoint], b_pts: Sequence[MappedPoint]) -> List[OvertakeEvent]:
    out: List[OvertakeEvent] = []
    if not a_pts or not b_pts:
        return out

    len_a = lap_lengths(a_pts)
    len_b = lap_lengths(b_pts)
    max_t = min(a_pts[-1].time, b_pts[-1].time)

    ia, ib = 0, 0
    prev_ahead = 0
    while ia < len(a_pts) or ib < len(b_pts):
        ta = a_pts[ia].time if ia < len(a_pts) else math.inf
        tb = b_pts[ib].time if ib < len(b_pts) else math.inf
        t = min(ta, tb)
        if t > max_t:
            break
        pa = point_at_time(a_pts, t)
        pb = point_at_time(b_pts, t)
        prog_a = progress(pa, len_a)
        prog_b = progress(pb, len_b)
        ahead = 0
        if prog_a > prog_b:
            ahead = 1
        elif prog_b > prog_a:
            ahead = -1

        if ahead != 0:
            if prev_ahead != 0 and ahead != prev_ahead:
                if ahead > 0:
                    source, target, p = a_name, b_name, pa
                else:
                    source, target, p = b_name, a_name, pb
                out.append(OvertakeEvent(
                    source=source,
                    target=target,
                    time=t,
                    lap=p.lap,
                    rel_s=p.rel_s,
                    master_x=p.master_x,
                    master_y=p.master_y,
                ))
            prev_ahead = ahead

        # Step past this timestamp in every stream that has it; NaN times are skipped
        if not ta > t:
            ia += 1
        if not tb > t:
            ib += 1
    return out


def detect_overtakes(mapped: Mapping[str, Sequence[MappedPoint]]) -> List[OvertakeEvent]:
    """
    Find overtakes between every pair of cars.

    Args:
        mapped: Car identifier -> time-ordered mapped points

    Returns:
        Overtake events, grouped by car pair in sorted identifier order
    """
    events: List[OvertakeEvent] = []
    for a_name, b_name in combinations(sorted(mapped), 2):
        pair_events = _detect_pair(a_name, b_name, mapped[a_name], mapped[b_name])
        if pair_events:
            _logger.debug("%d overtakes between %s and %s", len(pair_events), a_name, b_name)
        events.extend(pair_events)
    return events
