"""Early/late braking detection relative to the average brake point per corner order."""

import logging
from typing import List, NamedTuple, Optional, Sequence

from .config import BrakeThresholds
from .geometry import project
from .schema import Event, Sample, Trackpoint
from .utils_num import clamp01

_logger = logging.getLogger("lapline.braking")


class BrakeOnset(NamedTuple):
    """Sample index and lap-relative arc-length of a brake application."""
    index: int
    rel_s: float


def _pedal(sample: Sample) -> float:
    if not sample.has_input_brake:
        return 0.0
    return clamp01(sample.brake / 255.0)


def find_brake_onsets(
    samples: Sequence[Sample],
    points: Sequence[Trackpoint],
    start: int,
    end: int,
    thresholds: Optional[BrakeThresholds] = None,
) -> List[BrakeOnset]:
    """
    Find brake applications within one lap [start, end).

    Pedal input is used whenever either side of a transition reports it;
    otherwise a drop of accel_x through the deceleration threshold counts.

    Args:
        samples: Telemetry samples of one car
        points: Trackpoints aligned with samples
        start: Index of the lap's first sample
        end: Index one past the lap's last sample
        thresholds: Brake thresholds, defaults to BrakeThresholds()

    Returns:
        Onsets in lap order, arc-length relative to the lap start
    """
    th = thresholds or BrakeThresholds()
    if start < 0 or end > len(samples) or end > len(points) or end <= start + 1:
        return []

    base_s = points[start].s
    onsets = []
    prev_brake = _pedal(samples[start])
    for i in range(start + 1, end):
        prev = samples[i - 1]
        cur = samples[i]
        cur_brake = _pedal(cur)
        if cur.has_input_brake or prev.has_input_brake:
            trigger = prev_brake <= th.pedal_low and cur_brake >= th.pedal_high
        else:
            trigger = prev.accel_x >= th.accel_threshold and cur.accel_x < th.accel_threshold
        if trigger:
            onsets.append(BrakeOnset(i, points[i].s - base_s))
        prev_brake = cur_brake
    return onsets


def _ordinal_means(lap_onsets: List[List[BrakeOnset]]) -> List[float]:
    max_count = max((len(l) for l in lap_onsets), default=0)
    sums = [0.0] * max_count
    counts = [0] * max_count
    for onsets in lap_onsets:
        for k, onset in enumerate(onsets):
            sums[k] += onset.rel_s
            counts[k] += 1
    return [sums[k] / counts[k] for k in range(max_count)]


def detect_brake_timing(
    samples: Sequence[Sample],
    points: Sequence[Trackpoint],
    lap_indices: Sequence[int],
    master: Sequence[Trackpoint],
    thresholds: Optional[BrakeThresholds] = None,
) -> List[Event]:
    """
    Flag brake points that are early or late against the lap average.

    The n-th brake onset of each lap is compared with the mean arc-length of
    the n-th onsets of all laps that have one. Deviations of at least the
    tolerance become late_brake (further down the lap) or early_brake events,
    projected onto the master lap.

    Args:
        samples: Telemetry samples of one car
        points: Trackpoints aligned with samples
        lap_indices: Lap boundary indices; lap k is [lap_indices[k], lap_indices[k+1])
        master: Master lap trackpoints
        thresholds: Brake thresholds, defaults to BrakeThresholds()

    Returns:
        Brake events ordered by lap, then by onset
    """
    th = thresholds or BrakeThresholds()
    if not samples or not points or len(lap_indices) < 2 or not master:
        return []
    if len(samples) != len(points):
        _logger.debug("brake timing skipped: %d samples vs %d points", len(samples), len(points))
        return []

    lap_onsets = [
        find_brake_onsets(samples, points, lap_indices[k], lap_indices[k + 1], th)
        for k in range(len(lap_indices) - 1)
    ]
    means = _ordinal_means(lap_onsets)
    if not means:
        return []

    events = []
    for onsets in lap_onsets:
        for k, onset in enumerate(onsets):
            delta = onset.rel_s - means[k]
            if abs(delta) < th.tolerance:
                continue
            point = points[onset.index]
            proj = project(master, onset.rel_s, point.x, point.y)
            events.append(Event(
                index=onset.index,
                time=samples[onset.index].time,
                type="late_brake" if delta > 0 else "early_brake",
                note=f"brake {k + 1}: {delta:+.1f}m vs avg",
                master_idx=proj.index,
                master_rel_s=proj.rel_s,
                master_x=proj.x,
                master_y=proj.y,
                distance_sq=proj.distance_sq,
            ))
    return events
