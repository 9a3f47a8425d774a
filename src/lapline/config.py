"""Configuration module for lapline detectors."""

import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field


class CornerThresholds(BaseModel):
    """Curvature hysteresis and merge settings for corner segmentation."""

    on_threshold: float = Field(default=0.006, description="rad/m to enter a corner")
    off_threshold: float = Field(default=0.004, description="rad/m to leave a corner")
    min_angle: float = Field(default=0.12, description="rad (~7 deg) net turn to keep a corner")
    min_length: float = Field(default=8.0, description="meters of arc to keep a corner")
    min_gap: float = Field(default=12.0, description="meters; closer corners merge regardless of direction")
    merge_gap: float = Field(default=25.0, description="meters; closer same-direction corners merge")
    smooth_window: int = Field(default=5, description="samples in the trailing curvature average")


class EventThresholds(BaseModel):
    """Thresholds for reset / crash / collision detection (SI units)."""

    stop_speed: float = 1.0
    crash_decel: float = -8.0
    crash_min_pre_speed: float = 5.0
    collision_accel_mag: float = 12.0
    collision_speed_drop: float = 2.0
    reset_min_duration: float = 1.5
    reset_vel_epsilon: float = 0.25
    dedup_window: float = 1.0
    max_dt: float = 1.0


class BrakeThresholds(BaseModel):
    """Brake-onset detection and early/late classification."""

    pedal_low: float = 0.05
    pedal_high: float = 0.15
    accel_threshold: float = -3.0
    tolerance: float = Field(default=12.0, description="meters from the ordinal mean to flag")


class SurfaceThresholds(BaseModel):
    """Sliding-window surface classifier settings."""

    window: int = Field(default=30, description="samples, ~0.5s at 60Hz")
    puddle_sum: float = 0.3
    rumble_sum: float = 0.5
    lat_variance: float = 0.8
    heading_variance: float = 0.5
    slip: float = 0.2


class Settings(BaseModel):
    """All detector thresholds for one analysis run."""

    corners: CornerThresholds = Field(default_factory=CornerThresholds)
    events: EventThresholds = Field(default_factory=EventThresholds)
    brakes: BrakeThresholds = Field(default_factory=BrakeThresholds)
    surface: SurfaceThresholds = Field(default_factory=SurfaceThresholds)

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from LAPLINE_* environment variables."""
        corners = CornerThresholds()
        events = EventThresholds()
        brakes = BrakeThresholds()
        surface = SurfaceThresholds()

        on = _env_float("LAPLINE_CORNER_ON")
        off = _env_float("LAPLINE_CORNER_OFF")
        if on is not None or off is not None:
            corners = corners.model_copy(update={
                "on_threshold": on if on is not None else corners.on_threshold,
                "off_threshold": off if off is not None else corners.off_threshold,
            })

        dedup = _env_float("LAPLINE_DEDUP_WINDOW_S")
        if dedup is not None:
            events = events.model_copy(update={"dedup_window": dedup})

        tolerance = _env_float("LAPLINE_BRAKE_TOLERANCE_M")
        if tolerance is not None:
            brakes = brakes.model_copy(update={"tolerance": tolerance})

        window = _env_float("LAPLINE_SURFACE_WINDOW")
        if window is not None and window > 0:
            surface = surface.model_copy(update={"window": int(window)})

        return cls(corners=corners, events=events, brakes=brakes, surface=surface)


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
