"""Projection of laps and points onto the master lap."""

import math
from bisect import bisect_right
from typing import List, NamedTuple, Sequence

from .schema import Trackpoint
from .utils_num import clamp01, sign


class Projection(NamedTuple):
    """Closest master point to a query, matched by arc-length."""
    index: int
    rel_s: float
    x: float
    y: float
    distance_sq: float


class LapProjection(NamedTuple):
    """One lap point mapped onto the master lap."""
    index: int
    rel_s: float
    x: float
    y: float
    master_index: int
    master_rel_s: float
    master_x: float
    master_y: float
    distance_sq: float


def _bracket_index(master: Sequence[Trackpoint], rel_s: float) -> int:
    """Last master index whose S is <= rel_s, or 0 when none is."""
    j = bisect_right(master, rel_s, key=lambda p: p.s) - 1
    return max(j, 0)


def _closest_by_s(master: Sequence[Trackpoint], j: int, rel_s: float) -> int:
    # Ties stay on the lower bracket
    if j + 1 < len(master) and rel_s - master[j].s > master[j + 1].s - rel_s:
        return j + 1
    return j


def project(master: Sequence[Trackpoint], rel_s: float, x: float, y: float) -> Projection:
    """
    Map a single arc-length/point pair to the closest master point by S.

    Args:
        master: Master lap trackpoints, S sorted ascending
        rel_s: Arc-length of the query along the lap
        x: Query X
        y: Query Y

    Returns:
        Projection with master index, S, coordinates and squared planar
        distance from (x, y). An empty master yields an all-zero projection.
    """
    if not master:
        return Projection(0, 0.0, 0.0, 0.0, 0.0)

    closest = _closest_by_s(master, _bracket_index(master, rel_s), rel_s)
    m = master[closest]
    dx = x - m.x
    dy = y - m.y
    return Projection(closest, m.s, m.x, m.y, dx * dx + dy * dy)


def map_lap_to_master(
    lap: Sequence[Trackpoint],
    master: Sequence[Trackpoint],
    start_index: int = 0,
    scale: float = 1.0,
) -> List[LapProjection]:
    """
    Map every point of a lap segment onto the master lap in one joint pass.

    Args:
        lap: Trackpoints of one lap
        master: Master lap trackpoints
        start_index: Index of lap[0] within the full session, used for the
            emitted record indices
        scale: Factor applied to the lap's own arc-length so laps measured
            slightly longer or shorter line up with the master. 0 means 1.

    Returns:
        One LapProjection per lap point, in lap order
    """
    if not lap or not master:
        return []
    if scale == 0:
        scale = 1.0

    out = []
    base_s = lap[0].s
    j = 0
    n_master = len(master)
    for i, p in enumerate(lap):
        rel_s = (p.s - base_s) * scale
        while j + 1 < n_master and master[j + 1].s <= rel_s:
            j += 1
        closest = _closest_by_s(master, j, rel_s)
        m = master[closest]
        dx = p.x - m.x
        dy = p.y - m.y
        out.append(LapProjection(
            index=start_index + i,
            rel_s=rel_s,
            x=p.x,
            y=p.y,
            master_index=closest,
            master_rel_s=m.s,
            master_x=m.x,
            master_y=m.y,
            distance_sq=dx * dx + dy * dy,
        ))
    return out


def signed_offset_at_arc_length(master: Sequence[Trackpoint], rel_s: float, x: float, y: float) -> float:
    """
    Signed lateral distance from a point to the master line at arc-length rel_s.

    The point is compared with the closest point of the master segment that
    brackets rel_s. Positive is left of the direction of travel, negative is
    right, zero is on the line.
    """
    if not master:
        return 0.0

    j = _bracket_index(master, rel_s)
    j2 = min(j + 1, len(master) - 1)
    p1 = master[j]
    p2 = master[j2]
    seg_x = p2.x - p1.x
    seg_y = p2.y - p1.y
    t = 0.0
    if seg_x * seg_x + seg_y * seg_y > 0 and p2.s != p1.s:
        t = clamp01((rel_s - p1.s) / (p2.s - p1.s))

    dx = x - (p1.x + seg_x * t)
    dy = y - (p1.y + seg_y * t)
    cross = seg_x * dy - seg_y * dx
    return math.hypot(dx, dy) * sign(cross)


def signed_offset_at_index(master: Sequence[Trackpoint], idx: int, x: float, y: float) -> float:
    """Signed lateral distance to master[idx] using a neighbour tangent."""
    if not master or idx < 0 or idx >= len(master):
        return 0.0

    m = master[idx]
    dx = x - m.x
    dy = y - m.y
    last = len(master) - 1
    if 0 < idx < last:
        tx = master[idx + 1].x - master[idx - 1].x
        ty = master[idx + 1].y - master[idx - 1].y
    elif idx > 0:
        tx = m.x - master[idx - 1].x
        ty = m.y - master[idx - 1].y
    elif idx < last:
        tx = master[idx + 1].x - m.x
        ty = master[idx + 1].y - m.y
    else:
        tx = ty = 0.0

    cross = tx * dy - ty * dx
    return math.hypot(dx, dy) * sign(cross)
