"""
Turns an engineer's unprocessed location samples into stored activity events.

One call to :meth:`SegmentationEngine.process_engineer` is one run for one
engineer:

1. take the engineer's lease (skip if another run holds it)
2. fetch every unprocessed sample, oldest first
3. anchor on the most recent stored event, segment, geocode
4. insert the new events, then flag every fetched sample processed
5. broadcast each inserted event

A crash after the insert but before the flags are set is safe to retry: the
samples are still unprocessed and the unique ``eventKey`` turns the re-insert
into a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from activity.constants import DRIVE_EVENT, STOP_EVENT
from activity.events import publish_activity_event
from activity.segmentation import Interval, TrackPoint, segment_track
from activity.services.event_store import EventStore
from activity.services.geocoding import ReverseGeocoder
from activity.services.lease import EngineerLease
from activity.services.sample_store import SampleStore
from core.exceptions import LeaseUnavailableError
from db.models import ActivityEvent, DriveEvent, StopEvent

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from activity.segmentation import DriveSegment, StopSegment

logger = logging.getLogger(__name__)


@dataclass
class EngineerRunResult:
    engineer_id: int
    status: str
    samples: int = 0
    stops: int = 0
    drives: int = 0
    stale: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SegmentationEngine:
    def __init__(
        self,
        *,
        samples: SampleStore | None = None,
        events: EventStore | None = None,
        geocoder: ReverseGeocoder | None = None,
        lease: EngineerLease | None = None,
        publisher: Callable[[ActivityEvent], Awaitable[bool]] = publish_activity_event,
    ) -> None:
        self.samples = samples or SampleStore()
        self.events = events or EventStore()
        self.geocoder = geocoder or ReverseGeocoder()
        self.lease = lease or EngineerLease()
        self._publisher = publisher

    async def process_engineer(self, engineer_id: int) -> EngineerRunResult:
        """Run segmentation for one engineer under its lease."""
        try:
            async with self.lease.hold(engineer_id) as held:
                if not held:
                    logger.info(
                        "Engineer %s is being processed by another run; skipping",
                        engineer_id,
                    )
                    return EngineerRunResult(engineer_id, "locked")
                return await self._process_locked(engineer_id)
        except LeaseUnavailableError as e:
            # Leave samples unprocessed; the next pass picks them up.
            logger.warning("%s; skipping this run", e.message)
            return EngineerRunResult(engineer_id, "lease_unavailable")

    async def _process_locked(self, engineer_id: int) -> EngineerRunResult:
        samples = await self.samples.fetch_unprocessed(engineer_id)
        if not samples:
            return EngineerRunResult(engineer_id, "no_samples")

        last_event = await self.events.latest_event(engineer_id)
        anchor = (
            Interval(last_event.startTime, last_event.endTime)
            if last_event is not None
            else None
        )
        segmented = segment_track(
            (TrackPoint.from_sample(sample) for sample in samples),
            anchor,
        )

        new_events: list[ActivityEvent] = []
        for stop in segmented.stops:
            new_events.append(await self._build_stop_event(engineer_id, stop))
        for drive in segmented.drives:
            new_events.append(await self._build_drive_event(engineer_id, drive))
        new_events.sort(key=lambda event: event.startTime)

        inserted = await self.events.insert_events(new_events)
        await self.samples.mark_processed([sample.id for sample in samples])

        for event in inserted:
            await self._broadcast(event)

        result = EngineerRunResult(
            engineer_id,
            "processed",
            samples=len(samples),
            stops=len(segmented.stops),
            drives=len(segmented.drives),
            stale=segmented.stale_count,
        )
        logger.info(
            "Engineer %s: %d sample(s) -> %d stop(s), %d drive(s), %d stale",
            engineer_id,
            result.samples,
            result.stops,
            result.drives,
            result.stale,
        )
        return result

    async def _build_stop_event(
        self,
        engineer_id: int,
        stop: StopSegment,
    ) -> StopEvent:
        place = await self.geocoder.reverse(stop.latitude, stop.longitude)
        return StopEvent(
            engineerId=engineer_id,
            startTime=stop.start_time,
            endTime=stop.end_time,
            durationMinutes=stop.duration_minutes,
            sampleCount=stop.sample_count,
            eventKey=ActivityEvent.build_key(engineer_id, STOP_EVENT, stop.start_time),
            latitude=stop.latitude,
            longitude=stop.longitude,
            locationName=place.place_name,
            address=place.address,
        )

    async def _build_drive_event(
        self,
        engineer_id: int,
        drive: DriveSegment,
    ) -> DriveEvent:
        start_place = await self.geocoder.reverse(
            drive.start_latitude,
            drive.start_longitude,
        )
        end_place = await self.geocoder.reverse(
            drive.end_latitude,
            drive.end_longitude,
        )
        return DriveEvent(
            engineerId=engineer_id,
            startTime=drive.start_time,
            endTime=drive.end_time,
            durationMinutes=drive.duration_minutes,
            sampleCount=drive.sample_count,
            eventKey=ActivityEvent.build_key(engineer_id, DRIVE_EVENT, drive.start_time),
            distanceKm=drive.distance_km,
            topSpeedKmh=drive.top_speed_kmh,
            startLatitude=drive.start_latitude,
            startLongitude=drive.start_longitude,
            endLatitude=drive.end_latitude,
            endLongitude=drive.end_longitude,
            startAddress=start_place.address,
            endAddress=end_place.address,
            routePath=drive.route_path(),
        )

    async def _broadcast(self, event: ActivityEvent) -> None:
        try:
            await self._publisher(event)
        except Exception:
            logger.exception(
                "Broadcast of %s event for engineer %s failed",
                event.type,
                event.engineerId,
            )
