"""Session analysis pipeline tying the detectors together."""

import logging
from typing import Dict, List, Optional, Sequence

from .braking import detect_brake_timing
from .config import Settings, get_settings
from .corners import detect_corners
from .events import detect_events
from .geometry import map_lap_to_master
from .laps import lap_deltas, lap_times, sector_times
from .overtakes import detect_overtakes
from .schema import CarAnalysis, CarInput, Event, MappedPoint, Sample, SessionAnalysis, Trackpoint
from .surface import classify_surface, surface_transitions

_logger = logging.getLogger("lapline.pipeline")


def map_laps_to_master(
    samples: Sequence[Sample],
    points: Sequence[Trackpoint],
    lap_indices: Sequence[int],
    master: Sequence[Trackpoint],
) -> List[MappedPoint]:
    """
    Express every lap of one car in master-lap coordinates.

    Each lap's arc-length is scaled so its full length matches the master
    length before mapping.

    Args:
        samples: Telemetry samples of one car
        points: Trackpoints aligned with samples
        lap_indices: Lap boundary indices
        master: Master lap trackpoints

    Returns:
        Mapped points for every sample inside a valid lap, time ordered
    """
    if not master or len(points) != len(samples):
        return []

    master_length = master[-1].s - master[0].s
    out: List[MappedPoint] = []
    for k in range(len(lap_indices) - 1):
        start, end = lap_indices[k], lap_indices[k + 1]
        if start < 0 or end > len(points) or end <= start:
            continue
        lap = points[start:end]
        lap_length = lap[-1].s - lap[0].s
        scale = master_length / lap_length if lap_length > 0 and master_length > 0 else 1.0
        for rec in map_lap_to_master(lap, master, start, scale):
            out.append(MappedPoint(
                time=samples[rec.index].time,
                lap=k + 1,
                rel_s=rec.master_rel_s,
                master_x=rec.master_x,
                master_y=rec.master_y,
            ))
    return out


def _lap_of(index: int, lap_indices: Sequence[int]) -> Optional[int]:
    for k in range(len(lap_indices) - 1):
        if lap_indices[k] <= index < lap_indices[k + 1]:
            return k + 1
    return None


def _annotate(events: List[Event], source: str, lap_indices: Sequence[int]) -> List[Event]:
    return [
        e.model_copy(update={"source": source, "lap": _lap_of(e.index, lap_indices)})
        for e in events
    ]


def _analyze_car(car: CarInput, master: Sequence[Trackpoint], settings: Settings) -> CarAnalysis:
    samples, points, laps = car.samples, car.points, car.lap_indices

    mapped = map_laps_to_master(samples, points, laps, master)

    events = detect_events(samples, settings.events)
    events += detect_brake_timing(samples, points, laps, master, settings.brakes)

    surfaces = classify_surface(samples, points, thresholds=settings.surface)
    for tr in surface_transitions(surfaces, samples):
        events.append(Event(
            index=tr.index,
            time=tr.time,
            type="surface_change",
            note=f"{tr.from_label} -> {tr.to_label}",
        ))

    timed = []
    for lt in lap_times(samples, laps):
        secs = sector_times(samples, points, lt.start_index, lt.end_index)
        timed.append(lt.model_copy(update={"sector_times": secs}))

    events = _annotate(events, car.source, laps)
    events.sort(key=lambda e: (e.time, e.index, e.type))
    return CarAnalysis(
        source=car.source,
        mapped=mapped,
        events=events,
        surfaces=surfaces,
        lap_times=lap_deltas(timed),
    )


def analyze_session(
    master: Sequence[Trackpoint],
    cars: Sequence[CarInput],
    settings: Optional[Settings] = None,
) -> SessionAnalysis:
    """
    Run every detector over a session.

    Corners are detected once on the master lap; each car is then mapped,
    scanned for events, surface-classified and timed; finally overtakes are
    detected across all cars. Cars whose samples and trackpoints do not line
    up are skipped with a warning rather than failing the whole session.

    Args:
        master: Master lap trackpoints
        cars: Recordings of every car in the session
        settings: Detector thresholds, defaults to get_settings()

    Returns:
        SessionAnalysis with corners, per-car results, merged events,
        overtakes and warnings
    """
    settings = settings or get_settings()
    warnings: List[str] = []

    if not master:
        warnings.append("master lap is empty")
    corners = detect_corners(master, settings.corners)

    results: List[CarAnalysis] = []
    mapped: Dict[str, List[MappedPoint]] = {}
    for car in sorted(cars, key=lambda c: c.source):
        if car.source in mapped:
            warnings.append(f"{car.source}: duplicate car identifier, skipped")
            continue
        if len(car.samples) != len(car.points):
            warnings.append(
                f"{car.source}: {len(car.samples)} samples vs {len(car.points)} trackpoints, skipped"
            )
            continue
        if len(car.lap_indices) < 2:
            warnings.append(f"{car.source}: fewer than two lap boundaries, no lap data")

        result = _analyze_car(car, master, settings)
        results.append(result)
        mapped[car.source] = result.mapped

    overtakes = detect_overtakes(mapped)
    events = [e for r in results for e in r.events]
    events.sort(key=lambda e: (e.time, e.source or "", e.index, e.type))

    for w in warnings:
        _logger.warning(w)
    _logger.info(
        "analyzed %d cars: %d corners, %d events, %d overtakes",
        len(results), len(corners), len(events), len(overtakes),
    )
    return SessionAnalysis(
        master=list(master),
        corners=corners,
        cars=results,
        events=events,
        overtakes=overtakes,
        warnings=warnings,
    )
