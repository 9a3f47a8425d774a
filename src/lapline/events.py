"""Event detection for driving anomalies: resets, crashes and collisions."""

import logging
import math
from typing import Dict, List, Optional, Sequence

from .config import EventThresholds
from .schema import Event, Sample
from .utils_num import clean_float

_logger = logging.getLogger("lapline.events")


def _clamped_dt(prev: Sample, cur: Sample, max_dt: float) -> float:
    dt = cur.time - prev.time
    if not math.isfinite(dt) or dt <= 0 or dt > max_dt:
        return 0.0
    return dt


def _ok_to_emit(last_time: Optional[float], now: float, window: float) -> bool:
    """
    Check the per-type deduplication window.

    Args:
        last_time: Time of the previous emission of this type, None if never
        now: Detection time of the candidate event
        window: Minimum seconds between two events of the same type

    Returns:
        True if the candidate may be emitted
    """
    if last_time is None:
        return True
    return now - last_time >= window


def detect_events(samples: Sequence[Sample], thresholds: Optional[EventThresholds] = None) -> List[Event]:
    """
    Flag basic driving anomalies (reset, crash, collision) in one pass.

    Samples before the race starts are ignored, and the pass stops when the
    race flag drops again. Events of the same type closer than the dedup
    window are collapsed onto the first one.

    Args:
        samples: Telemetry samples of one car, time ordered
        thresholds: Event thresholds, defaults to EventThresholds()

    Returns:
        List of detected events in sample order
    """
    th = thresholds or EventThresholds()
    events: List[Event] = []
    if len(samples) < 2:
        return events

    last_of_type: Dict[str, float] = {}

    def emit(kind: str, index: int, now: float, note: str) -> None:
        if not _ok_to_emit(last_of_type.get(kind), now, th.dedup_window):
            _logger.debug("suppressed duplicate %s at t=%.3f", kind, now)
            return
        events.append(Event(index=index, time=samples[index].time, type=kind, note=note))
        last_of_type[kind] = now

    reset_start = -1
    reset_accum = 0.0
    seen_on = False

    for i in range(1, len(samples)):
        prev = samples[i - 1]
        cur = samples[i]

        # Wait for the race to start; stop once it has ended.
        if not cur.is_race_on:
            if seen_on:
                break
            continue
        seen_on = True
        if not prev.is_race_on:
            continue

        dt = _clamped_dt(prev, cur, th.max_dt)
        speed_prev = clean_float(prev.speed)
        speed_cur = clean_float(cur.speed)
        d_speed = speed_cur - speed_prev
        decel = d_speed / dt if dt > 0 else 0.0

        accel_mag = math.sqrt(cur.accel_x ** 2 + cur.accel_y ** 2 + cur.accel_z ** 2)
        vel_mag = math.hypot(cur.vel_x, cur.vel_z)

        # Reset: sustained near-zero movement
        if vel_mag < th.reset_vel_epsilon and speed_cur < th.stop_speed:
            if reset_start == -1:
                reset_start = i
                reset_accum = 0.0
            reset_accum += dt
            if reset_accum >= th.reset_min_duration:
                emit("reset", reset_start, cur.time, "near-zero movement")
                reset_start = -1
                reset_accum = 0.0
        else:
            reset_start = -1
            reset_accum = 0.0

        # Crash: hard deceleration down to a stop
        if (speed_prev > th.crash_min_pre_speed
                and speed_cur < th.stop_speed
                and decel <= th.crash_decel):
            emit("crash", i, cur.time, "hard stop")

        # Collision: acceleration spike with a speed drop but still rolling
        if (accel_mag >= th.collision_accel_mag
                and -d_speed >= th.collision_speed_drop
                and speed_cur >= th.stop_speed):
            emit("collision", i, cur.time, "accel spike + speed drop")

    return events
