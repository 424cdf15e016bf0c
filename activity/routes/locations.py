"""API routes for location sample ingest and raw history."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Query, Request

from activity.services.sample_store import SampleStore
from core.api import api_route
from db.schemas import LocationIngestResponse, LocationSampleIn
from db.serializers import serialize_document

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/locations", response_model=LocationIngestResponse)
@api_route(logger)
async def ingest_locations(
    request: Request,
    samples: Annotated[list[LocationSampleIn], Body()],
) -> LocationIngestResponse:
    """Store a batch of pings and kick off processing for their engineers."""
    stored = await SampleStore.ingest(samples)

    runtime = getattr(request.app.state, "activity", None)
    if runtime is not None:
        runtime.scheduler.trigger({sample.engineerId for sample in stored})

    return LocationIngestResponse(
        message="Location samples saved successfully.",
        count=len(stored),
    )


@router.get("/api/locations/{engineer_id}")
@api_route(logger)
async def get_location_history(
    engineer_id: int,
    limit: Annotated[int, Query(ge=1, le=5000)] = 500,
) -> list[dict[str, Any]]:
    """Raw samples for an engineer, newest first."""
    samples = await SampleStore.recent_for_engineer(engineer_id, limit)
    return [serialize_document(sample) for sample in samples]
