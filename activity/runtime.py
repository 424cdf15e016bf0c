"""Wiring of the activity components and their FastAPI dependencies."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from activity.scheduler import ActivityScheduler
from activity.services.event_store import EventStore
from activity.services.geocoding import ReverseGeocoder
from activity.services.history_service import HistoryService
from activity.services.lease import EngineerLease
from activity.services.sample_store import SampleStore
from activity.services.segmentation_engine import SegmentationEngine

logger = logging.getLogger(__name__)


@dataclass
class ActivityRuntime:
    engine: SegmentationEngine
    scheduler: ActivityScheduler
    history: HistoryService


def build_activity_runtime() -> ActivityRuntime:
    samples = SampleStore()
    events = EventStore()
    engine = SegmentationEngine(
        samples=samples,
        events=events,
        geocoder=ReverseGeocoder(),
        lease=EngineerLease(),
    )
    return ActivityRuntime(
        engine=engine,
        scheduler=ActivityScheduler(engine, samples),
        history=HistoryService(events),
    )


def get_activity_runtime(request: Request) -> ActivityRuntime:
    runtime = getattr(request.app.state, "activity", None)
    if runtime is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Activity processing is not initialized",
        )
    return runtime


def get_activity_scheduler(request: Request) -> ActivityScheduler:
    return get_activity_runtime(request).scheduler


def get_history_service(request: Request) -> HistoryService:
    runtime = getattr(request.app.state, "activity", None)
    # History reads only need the database, not the scheduler
    return runtime.history if runtime is not None else HistoryService()
