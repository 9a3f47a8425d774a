"""Tests for early/late brake detection."""

import pytest

from lapline.braking import detect_brake_timing, find_brake_onsets
from lapline.schema import Sample, Trackpoint

from .test_helpers import straight_track

LAP_LEN = 100


def _laps(onsets_per_lap, pedal=True):
    """
    Build consecutive laps of LAP_LEN samples, 1 m apart.

    onsets_per_lap: per lap, the lap-relative sample offsets where braking
    starts; each brake application lasts five samples.
    """
    samples = []
    points = []
    for lap_no, onsets in enumerate(onsets_per_lap):
        braking = set()
        for o in onsets:
            braking.update(range(o, o + 5))
        for k in range(LAP_LEN):
            i = lap_no * LAP_LEN + k
            on = k in braking
            if pedal:
                samples.append(Sample(time=i * 0.05, speed=40.0, brake=200 if on else 0, has_input_brake=True))
            else:
                samples.append(Sample(time=i * 0.05, speed=40.0, accel_x=-6.0 if on else 0.0))
            points.append(Trackpoint(x=float(k), y=0.0, s=float(i)))
    lap_indices = [n * LAP_LEN for n in range(len(onsets_per_lap) + 1)]
    return samples, points, lap_indices


class TestBrakeTiming:
    """Test cases for detect_brake_timing."""

    def setup_method(self):
        self.master = straight_track(LAP_LEN, spacing=1.0)

    def test_identical_laps_no_events(self):
        """Identical onset positions produce no brake events."""
        samples, points, laps = _laps([[40], [40], [40]])
        assert detect_brake_timing(samples, points, laps, self.master) == []

    def test_one_late_lap(self):
        """Shifting one lap's first onset by +20 m flags only that lap."""
        samples, points, laps = _laps([[40], [60], [40]])
        events = detect_brake_timing(samples, points, laps, self.master)

        assert len(events) == 1
        ev = events[0]
        assert ev.type == "late_brake"
        assert ev.index == LAP_LEN + 60
        assert ev.time == samples[LAP_LEN + 60].time
        assert ev.note == "brake 1: +13.3m vs avg"
        assert ev.master_idx == 60
        assert ev.master_rel_s == 60.0
        assert (ev.master_x, ev.master_y) == (60.0, 0.0)
        assert ev.distance_sq == pytest.approx(0.0)

    def test_one_early_lap(self):
        """A negative deviation beyond the tolerance is early braking."""
        samples, points, laps = _laps([[40], [20], [40]])
        events = detect_brake_timing(samples, points, laps, self.master)

        assert [(e.type, e.index) for e in events] == [("early_brake", LAP_LEN + 20)]
        assert events[0].note == "brake 1: -13.3m vs avg"

    def test_ordinals_averaged_over_laps_that_reach_them(self):
        """A second onset seen on only one lap is its own mean."""
        samples, points, laps = _laps([[20, 70], [20], [20]])
        assert detect_brake_timing(samples, points, laps, self.master) == []

    def test_decel_fallback(self):
        """Without pedal data the deceleration threshold is used."""
        samples, points, laps = _laps([[30], [30], [55]], pedal=False)
        events = detect_brake_timing(samples, points, laps, self.master)

        assert [(e.type, e.index) for e in events] == [("late_brake", 2 * LAP_LEN + 55)]

    def test_idempotent(self):
        samples, points, laps = _laps([[40], [60], [40]])
        first = detect_brake_timing(samples, points, laps, self.master)
        assert first == detect_brake_timing(samples, points, laps, self.master)
        assert len(first) == 1

    def test_fail_soft_inputs(self):
        """Insufficient or mismatched inputs give no events."""
        samples, points, laps = _laps([[40], [60], [40]])
        assert detect_brake_timing(samples, points, [0], self.master) == []
        assert detect_brake_timing(samples, points[:-1], laps, self.master) == []
        assert detect_brake_timing(samples, points, laps, []) == []
        assert detect_brake_timing([], [], laps, self.master) == []

    def test_invalid_lap_bounds_skipped(self):
        """Laps with out-of-range bounds are ignored."""
        samples, points, _ = _laps([[40], [60], [40]])
        assert detect_brake_timing(samples, points, [0, 100, 1000], self.master) == []


class TestFindBrakeOnsets:
    """Test cases for find_brake_onsets."""

    def test_pedal_onsets_relative_to_lap(self):
        samples, points, _ = _laps([[10, 50]])
        onsets = find_brake_onsets(samples, points, 0, LAP_LEN)
        assert [(o.index, o.rel_s) for o in onsets] == [(10, 10.0), (50, 50.0)]

    def test_light_pedal_ignored(self):
        """Pedal pressure below the high threshold is not an onset."""
        samples = [Sample(time=k * 0.1, brake=20, has_input_brake=True) for k in range(5)]
        samples[0] = Sample(time=0.0, brake=0, has_input_brake=True)
        points = [Trackpoint(x=float(k), y=0.0, s=float(k)) for k in range(5)]
        assert find_brake_onsets(samples, points, 0, 5) == []

    def test_invalid_bounds(self):
        samples, points, _ = _laps([[10]])
        assert find_brake_onsets(samples, points, 5, 6) == []
        assert find_brake_onsets(samples, points, -1, 10) == []
