"""Tests for sliding-window surface classification."""

import math

from lapline.schema import Sample, Trackpoint
from lapline.surface import classify_surface, surface_transitions


def _smooth_run(n):
    samples = [Sample(time=i / 60.0, speed=20.0) for i in range(n)]
    points = [Trackpoint(x=i * 0.33, y=0.0, s=i * 0.33, theta=0.0) for i in range(n)]
    return samples, points


def _rough_run(n):
    """Alternating lateral acceleration and heading at constant speed."""
    samples = [
        Sample(time=i / 60.0, speed=20.0, accel_x=3.0 if i % 2 else -1.0)
        for i in range(n)
    ]
    points = [
        Trackpoint(x=i * 0.33, y=0.0, s=i * 0.33, theta=1.0 if i % 2 else 0.0)
        for i in range(n)
    ]
    return samples, points


class TestClassifySurface:
    """Test cases for classify_surface."""

    def test_smooth_asphalt(self):
        """Steady driving is asphalt everywhere."""
        samples, points = _smooth_run(60)
        assert classify_surface(samples, points) == ["asphalt"] * 60

    def test_rough_window_is_dirt(self):
        """Noisy lateral accel, heading and slip together mean dirt."""
        samples, points = _rough_run(60)
        labels = classify_surface(samples, points)
        assert labels[0] == "asphalt"
        assert labels[-1] == "dirt"
        assert len(labels) == 60

    def test_idempotent(self):
        samples, points = _rough_run(60)
        assert classify_surface(samples, points) == classify_surface(samples, points)

    def test_window_of_one_never_dirt(self):
        """A single-sample window has no variance."""
        samples, points = _rough_run(60)
        assert set(classify_surface(samples, points, window=1)) == {"asphalt"}

    def test_puddle_beats_rumble(self):
        """Puddle contact has priority over rumble strips."""
        samples, points = _smooth_run(3)
        samples[1] = Sample(
            time=samples[1].time,
            speed=20.0,
            wheel_in_puddle=(0.1, 0.1, 0.1, 0.1),
            wheel_on_rumble=(1.0, 1.0, 0.0, 0.0),
        )
        samples[2] = Sample(time=samples[2].time, speed=20.0, wheel_on_rumble=(0.3, 0.3, 0.0, 0.0))
        assert classify_surface(samples, points) == ["asphalt", "puddle", "rumble"]

    def test_non_finite_wheel_readings_ignored(self):
        """NaN wheel readings drop out of the contact sum."""
        samples, points = _smooth_run(2)
        samples[0] = Sample(time=0.0, speed=20.0, wheel_in_puddle=(math.nan, 0.2, 0.2, 0.0))
        samples[1] = Sample(time=1 / 60.0, speed=20.0, wheel_in_puddle=(math.nan, 0.1, 0.1, 0.0))
        assert classify_surface(samples, points) == ["puddle", "asphalt"]

    def test_mismatched_lengths_fail_soft(self):
        """Mismatched inputs give empty labels instead of raising."""
        samples, points = _smooth_run(5)
        assert classify_surface(samples[:3], points) == [""] * 5
        assert classify_surface([], []) == []


class TestSurfaceTransitions:
    """Test cases for surface_transitions."""

    def test_transitions_skip_empty_labels(self):
        samples, _ = _smooth_run(6)
        labels = ["asphalt", "asphalt", "dirt", "", "dirt", "rumble"]
        out = surface_transitions(labels, samples)

        assert [(t.index, t.from_label, t.to_label) for t in out] == [
            (2, "asphalt", "dirt"),
            (5, "dirt", "rumble"),
        ]
        assert out[1].time == samples[5].time

    def test_constant_label_has_no_transitions(self):
        samples, _ = _smooth_run(4)
        assert surface_transitions(["asphalt"] * 4, samples) == []
