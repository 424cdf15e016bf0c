"""API routes for triggering and inspecting activity processing."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from activity.runtime import get_activity_scheduler
from activity.scheduler import ActivityScheduler
from core.api import api_route
from db.schemas import ProcessingAcceptedResponse, SchedulerStatusResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/api/activity/process",
    response_model=ProcessingAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Trigger Activity Processing",
    description="Start a segmentation run in the background and return immediately.",
)
@api_route(logger)
async def trigger_activity_processing(
    scheduler: Annotated[ActivityScheduler, Depends(get_activity_scheduler)],
) -> ProcessingAcceptedResponse:
    scheduler.trigger()
    logger.info("Manual activity processing run started")
    return ProcessingAcceptedResponse(
        message="Activity processing started in the background.",
    )


@router.get("/api/activity/scheduler", response_model=SchedulerStatusResponse)
@api_route(logger)
async def get_scheduler_status(
    scheduler: Annotated[ActivityScheduler, Depends(get_activity_scheduler)],
) -> SchedulerStatusResponse:
    return SchedulerStatusResponse(
        running=scheduler.running,
        intervalMinutes=scheduler.interval_seconds / 60,
        lastRunStartedAt=scheduler.last_run_started_at,
        lastRunFinishedAt=scheduler.last_run_finished_at,
        lastRunSummary=scheduler.last_run_summary,
        inFlightRuns=scheduler.in_flight,
    )
