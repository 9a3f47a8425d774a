"""Lap and sector timing with deltas to the best lap."""

from typing import List, Optional, Sequence

from .schema import LapTime, Sample, Trackpoint


def _valid_bounds(start: int, end: int, n: int) -> bool:
    return 0 <= start and end <= n and end > start + 1


def lap_times(samples: Sequence[Sample], lap_indices: Sequence[int]) -> List[LapTime]:
    """
    Time every lap delimited by lap_indices.

    A lap ends at the first sample of the next lap when there is one, so
    consecutive lap times add up to the session time.

    Args:
        samples: Telemetry samples of one car
        lap_indices: Lap boundary indices

    Returns:
        List of LapTime, laps numbered from 1; invalid bounds are skipped
    """
    n = len(samples)
    out = []
    for k in range(len(lap_indices) - 1):
        start, end = lap_indices[k], lap_indices[k + 1]
        if not _valid_bounds(start, end, n):
            continue
        finish = samples[end].time if end < n else samples[end - 1].time
        out.append(LapTime(
            lap=k + 1,
            start_index=start,
            end_index=end,
            lap_time=finish - samples[start].time,
        ))
    return out


def sector_times(
    samples: Sequence[Sample],
    points: Sequence[Trackpoint],
    start: int,
    end: int,
    sectors: int = 3,
) -> List[float]:
    """
    Split one lap into equal arc-length sectors and time them.

    Equal fractions of the lap line up with equal fractions of the master
    lap, so no rescaling is needed. Boundary crossing times are interpolated
    between samples.
    """
    n = min(len(samples), len(points))
    if not _valid_bounds(start, end, n) or sectors <= 0:
        return []

    base_s = points[start].s
    lap_length = points[end - 1].s - base_s
    if lap_length <= 0:
        return []

    boundaries = [lap_length * k / sectors for k in range(1, sectors)]
    boundaries.append(lap_length)
    crossings = []
    b = 0
    for i in range(start + 1, end):
        if b >= len(boundaries):
            break
        s0 = points[i - 1].s - base_s
        s1 = points[i].s - base_s
        while b < len(boundaries) and s1 >= boundaries[b]:
            t0, t1 = samples[i - 1].time, samples[i].time
            alpha = 0.0 if s1 == s0 else (boundaries[b] - s0) / (s1 - s0)
            crossings.append(t0 + (t1 - t0) * alpha)
            b += 1

    out = []
    prev_t = samples[start].time
    for t in crossings:
        out.append(t - prev_t)
        prev_t = t
    return out


def lap_deltas(laps: Sequence[LapTime]) -> List[LapTime]:
    """
    Fill lap and sector deltas against the best lap / best sector.

    Returns new LapTime objects; the inputs are not modified.
    """
    if not laps:
        return []

    best_lap = min(l.lap_time for l in laps)
    n_sec = max(len(l.sector_times) for l in laps)
    best_sectors: List[Optional[float]] = []
    for k in range(n_sec):
        col = [l.sector_times[k] for l in laps if k < len(l.sector_times)]
        best_sectors.append(min(col) if col else None)

    out = []
    for l in laps:
        deltas: List[Optional[float]] = []
        for k in range(n_sec):
            if k < len(l.sector_times) and best_sectors[k] is not None:
                deltas.append(l.sector_times[k] - best_sectors[k])
            else:
                deltas.append(None)
        out.append(l.model_copy(update={
            "lap_delta": l.lap_time - best_lap,
            "sector_deltas": deltas,
        }))
    return out
