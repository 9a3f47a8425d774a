"""Pydantic schema models for lapline telemetry analytics."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


EventType = Literal["reset", "crash", "collision", "early_brake", "late_brake", "surface_change"]
SurfaceLabel = Literal["puddle", "rumble", "dirt", "asphalt", ""]


class Sample(BaseModel):
    """One telemetry tick as captured from the car."""

    model_config = ConfigDict(frozen=True)

    time: float
    speed: float = 0.0
    accel_x: float = 0.0
    accel_y: float = 0.0
    accel_z: float = 0.0
    # Ground-plane velocity components
    vel_x: float = 0.0
    vel_z: float = 0.0
    is_race_on: bool = True
    brake: int = 0
    has_input_brake: bool = False
    wheel_on_rumble: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    wheel_in_puddle: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)


class Trackpoint(BaseModel):
    """Planar position, arc-length and heading derived for one sample."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    s: float = 0.0
    theta: float = 0.0


class CornerDef(BaseModel):
    """Corner segment of the master lap."""

    model_config = ConfigDict(frozen=True)

    index: int = 0
    start_s: float
    end_s: float
    apex_s: float
    direction: Literal["left", "right"]
    angle_rad: float


class Event(BaseModel):
    """Typed, timestamped driving anomaly."""

    model_config = ConfigDict(frozen=True)

    index: int
    time: float
    type: EventType
    note: str = ""
    # Master-lap projection, only set for brake events
    master_idx: Optional[int] = None
    master_rel_s: Optional[float] = None
    master_x: Optional[float] = None
    master_y: Optional[float] = None
    distance_sq: Optional[float] = None
    # Filled in by the session pipeline
    lap: Optional[int] = None
    source: Optional[str] = None


class MappedPoint(BaseModel):
    """A point expressed in master-lap coordinates."""

    model_config = ConfigDict(frozen=True)

    time: float
    lap: int
    rel_s: float
    master_x: float
    master_y: float


class OvertakeEvent(BaseModel):
    """Source car moved ahead of target car at this instant."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    time: float
    lap: int
    rel_s: float
    master_x: float
    master_y: float


class SurfaceTransition(BaseModel):
    """Change of classified surface between consecutive samples."""

    model_config = ConfigDict(frozen=True)

    index: int
    time: float
    from_label: str
    to_label: str


class LapTime(BaseModel):
    """Lap and sector timing for one lap."""

    lap: int
    start_index: int
    end_index: int
    lap_time: float
    sector_times: list[float] = Field(default_factory=list)
    lap_delta: Optional[float] = None
    sector_deltas: list[Optional[float]] = Field(default_factory=list)


class CarInput(BaseModel):
    """Complete recording of one car handed to the session pipeline."""

    source: str
    samples: list[Sample] = Field(default_factory=list)
    points: list[Trackpoint] = Field(default_factory=list)
    lap_indices: list[int] = Field(default_factory=list)


class CarAnalysis(BaseModel):
    """Per-car results of the session pipeline."""

    source: str
    mapped: list[MappedPoint] = Field(default_factory=list)
    events: list[Event] = Field(default_factory=list)
    surfaces: list[str] = Field(default_factory=list)
    lap_times: list[LapTime] = Field(default_factory=list)


class SessionAnalysis(BaseModel):
    """Complete analysis of a session, ready for serialization."""

    master: list[Trackpoint] = Field(default_factory=list)
    corners: list[CornerDef] = Field(default_factory=list)
    cars: list[CarAnalysis] = Field(default_factory=list)
    events: list[Event] = Field(default_factory=list)
    overtakes: list[OvertakeEvent] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
