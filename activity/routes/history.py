"""API route for an engineer's activity history."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from activity.runtime import get_history_service
from activity.services.history_service import HistoryService
from core.api import api_route
from db.serializers import serialize_document

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "/api/activity/{engineer_id}/history",
    response_model=list[dict[str, Any]],
    summary="Get Activity History",
    description=(
        "Stop/Drive events for a local date range (default: today in the "
        "engineer's time zone). With minStayMinutes, only the first stop, "
        "stops lasting at least that long, and the drives between them are "
        "returned."
    ),
)
@api_route(logger)
async def get_activity_history(
    engineer_id: int,
    history: Annotated[HistoryService, Depends(get_history_service)],
    min_stay_minutes: Annotated[
        int | None,
        Query(alias="minStayMinutes", description="Minimum stop duration in minutes"),
    ] = None,
    start_date: Annotated[
        str | None,
        Query(alias="startDate", description="First day, YYYY-MM-DD (inclusive)"),
    ] = None,
    end_date: Annotated[
        str | None,
        Query(alias="endDate", description="Last day, YYYY-MM-DD (inclusive)"),
    ] = None,
) -> list[dict[str, Any]]:
    """Return the (optionally filtered) activity timeline."""
    events = await history.get_filtered_history(
        engineer_id,
        start_date=start_date,
        end_date=end_date,
        min_stay_minutes=min_stay_minutes,
    )
    return [serialize_document(event) for event in events]
