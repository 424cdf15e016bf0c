"""
Stop/drive segmentation over a single engineer's GPS samples.

Everything here is pure: no I/O, no geocoding, no persistence. The engine in
``activity.services.segmentation_engine`` feeds samples in and turns the
resulting segments into stored events.

Stops come from a single forward pass: consecutive slow samples accumulate
into a candidate run, and the run becomes a Stop when a fast sample (or the
end of the stream) closes it and it spans at least ``MIN_STOP_DURATION``.

Drives fill the gaps of the timeline formed by the previously stored event
(the anchor) plus the new Stops. Each gap collects the samples strictly
between one event's end and the next event's start, with the final gap open
ended.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from activity.constants import (
    ACTIVITY_EARTH_RADIUS_M,
    MIN_DRIVE_POINTS,
    MIN_STOP_DURATION,
    STOP_SPEED_THRESHOLD_MPS,
)
from core.constants import MPS_TO_KMH
from core.spatial import GeometryService

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackPoint:
    """The subset of a location sample segmentation cares about."""

    latitude: float
    longitude: float
    timestamp: datetime
    speed: float | None = None

    @property
    def effective_speed(self) -> float:
        return self.speed or 0.0

    @classmethod
    def from_sample(cls, sample: Any) -> TrackPoint:
        return cls(
            latitude=sample.latitude,
            longitude=sample.longitude,
            timestamp=sample.timestamp,
            speed=sample.speed,
        )


@dataclass(frozen=True)
class Interval:
    """Closed time span of an existing or newly detected event."""

    start: datetime
    end: datetime


@dataclass
class StopSegment:
    start_time: datetime
    end_time: datetime
    latitude: float
    longitude: float
    sample_count: int

    @property
    def duration_minutes(self) -> int:
        return duration_minutes(self.start_time, self.end_time)

    @property
    def interval(self) -> Interval:
        return Interval(self.start_time, self.end_time)


@dataclass
class DriveSegment:
    start_time: datetime
    end_time: datetime
    distance_km: float
    top_speed_kmh: float
    start_latitude: float
    start_longitude: float
    end_latitude: float
    end_longitude: float
    points: list[TrackPoint] = field(default_factory=list)

    @property
    def duration_minutes(self) -> int:
        return duration_minutes(self.start_time, self.end_time)

    @property
    def sample_count(self) -> int:
        return len(self.points)

    def route_path(self) -> dict[str, Any] | None:
        """GeoJSON LineString through the drive's samples."""
        return GeometryService.geometry_from_coordinate_pairs(
            [(p.longitude, p.latitude) for p in self.points],
            allow_point=False,
        )


@dataclass
class SegmentationResult:
    stops: list[StopSegment] = field(default_factory=list)
    drives: list[DriveSegment] = field(default_factory=list)
    # Samples at or before the anchor's end; consumed but not segmented
    stale_count: int = 0


def duration_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, truncated."""
    return int((end - start).total_seconds() // 60)


def _close_candidate(
    candidates: list[TrackPoint],
    min_duration: timedelta,
) -> StopSegment | None:
    if not candidates:
        return None
    first, last = candidates[0], candidates[-1]
    if last.timestamp - first.timestamp < min_duration:
        return None
    count = len(candidates)
    return StopSegment(
        start_time=first.timestamp,
        end_time=last.timestamp,
        latitude=sum(p.latitude for p in candidates) / count,
        longitude=sum(p.longitude for p in candidates) / count,
        sample_count=count,
    )


def detect_stops(
    points: Sequence[TrackPoint],
    *,
    speed_threshold: float = STOP_SPEED_THRESHOLD_MPS,
    min_duration: timedelta = MIN_STOP_DURATION,
) -> list[StopSegment]:
    """Find qualifying stops in time-ordered ``points``."""
    stops: list[StopSegment] = []
    candidates: list[TrackPoint] = []

    for point in points:
        if point.effective_speed < speed_threshold:
            candidates.append(point)
            continue
        stop = _close_candidate(candidates, min_duration)
        if stop is not None:
            stops.append(stop)
        candidates = []

    stop = _close_candidate(candidates, min_duration)
    if stop is not None:
        stops.append(stop)
    return stops


def path_distance_km(points: Sequence[TrackPoint]) -> float:
    total_m = 0.0
    for prev, curr in zip(points, points[1:]):
        total_m += GeometryService.haversine_distance(
            prev.longitude,
            prev.latitude,
            curr.longitude,
            curr.latitude,
            radius_m=ACTIVITY_EARTH_RADIUS_M,
        )
    return total_m / 1000.0


def build_drive(
    points: Sequence[TrackPoint],
    *,
    min_points: int = MIN_DRIVE_POINTS,
) -> DriveSegment | None:
    """Summarize a gap's samples as a drive, or None if there are too few."""
    if len(points) < min_points:
        return None
    first, last = points[0], points[-1]
    return DriveSegment(
        start_time=first.timestamp,
        end_time=last.timestamp,
        distance_km=path_distance_km(points),
        top_speed_kmh=max(p.effective_speed for p in points) * MPS_TO_KMH,
        start_latitude=first.latitude,
        start_longitude=first.longitude,
        end_latitude=last.latitude,
        end_longitude=last.longitude,
        points=list(points),
    )


def gap_windows(
    timeline: Sequence[Interval],
    points: Sequence[TrackPoint],
) -> list[list[TrackPoint]]:
    """
    Collect the samples inside each gap of ``timeline``.

    ``timeline`` must be sorted by start. Gap ``i`` holds samples with
    ``timeline[i].end < timestamp < timeline[i + 1].start``; the gap after the
    last interval has no upper bound.
    """
    windows: list[list[TrackPoint]] = []
    for index, current in enumerate(timeline):
        upper = timeline[index + 1].start if index + 1 < len(timeline) else None
        windows.append(
            [
                p
                for p in points
                if p.timestamp > current.end and (upper is None or p.timestamp < upper)
            ]
        )
    return windows


def segment_track(
    points: Iterable[TrackPoint],
    anchor: Interval | None = None,
) -> SegmentationResult:
    """
    Segment one engineer's unprocessed samples into stops and drives.

    Args:
        points: Unprocessed samples; re-sorted by timestamp here.
        anchor: Time span of the engineer's most recent stored event.

    Returns:
        New stops and drives, each list ordered by start time.
    """
    ordered = sorted(points, key=lambda p: p.timestamp)
    stale_count = 0
    if anchor is not None:
        fresh = [p for p in ordered if p.timestamp > anchor.end]
        stale_count = len(ordered) - len(fresh)
        ordered = fresh
        if stale_count:
            logger.debug(
                "Ignoring %d sample(s) at or before anchor end %s",
                stale_count,
                anchor.end.isoformat(),
            )

    stops = detect_stops(ordered)

    timeline: list[Interval] = []
    if anchor is not None:
        timeline.append(anchor)
    timeline.extend(stop.interval for stop in stops)
    timeline.sort(key=lambda interval: interval.start)

    drives: list[DriveSegment] = []
    for window in gap_windows(timeline, ordered):
        drive = build_drive(window)
        if drive is not None:
            drives.append(drive)

    return SegmentationResult(stops=stops, drives=drives, stale_count=stale_count)
