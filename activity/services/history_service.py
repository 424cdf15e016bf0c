"""
Itinerary reconstruction for an engineer's activity history.

With a minimum stay the raw timeline is reduced to the engineer's first
stop of the range (the clock-in point), every stop lasting at least the
minimum, and the drives that connect them. Short stops and the drives
around them that lead nowhere qualifying are dropped.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING

from activity.constants import DRIVE_EVENT, STOP_EVENT
from activity.services.event_store import EventStore
from config import DEFAULT_TIMEZONE
from core.date_utils import local_day_range, parse_calendar_date, resolve_timezone
from core.exceptions import ResourceNotFoundException, ValidationException
from db.models import FieldEngineer

if TYPE_CHECKING:
    from collections.abc import Sequence

    from db.models import ActivityEvent

logger = logging.getLogger(__name__)


def filter_itinerary(
    events: Sequence[ActivityEvent],
    min_stay_minutes: int | None,
) -> list[ActivityEvent]:
    """
    Reduce ``events`` to anchor + qualifying stays + connecting drives.

    Args:
        events: One engineer's events for the requested range, any order.
        min_stay_minutes: Minimum stop duration. ``None`` or ``<= 0`` disables
            filtering and returns every event chronologically.

    Returns:
        Events ordered by start time.
    """
    ordered = sorted(events, key=lambda event: event.startTime)
    if min_stay_minutes is None or min_stay_minutes <= 0:
        return ordered

    stops = [event for event in ordered if event.type == STOP_EVENT]
    if not stops:
        return []

    anchor = stops[0]
    stays = [
        stop
        for stop in stops[1:]
        if stop.durationMinutes >= min_stay_minutes
    ]
    if not stays:
        return [anchor]

    drives = [event for event in ordered if event.type == DRIVE_EVENT]
    selected: list[ActivityEvent] = [anchor]
    previous_end = anchor.endTime
    for stay in stays:
        selected.extend(
            drive
            for drive in drives
            if drive.startTime >= previous_end and drive.endTime <= stay.startTime
        )
        selected.append(stay)
        previous_end = stay.endTime

    unique: dict[object, ActivityEvent] = {}
    for event in selected:
        unique.setdefault(event.id if event.id is not None else id(event), event)
    return sorted(unique.values(), key=lambda event: event.startTime)


class HistoryService:
    def __init__(self, events: EventStore | None = None) -> None:
        self.events = events or EventStore()

    @staticmethod
    async def get_engineer(engineer_id: int) -> FieldEngineer:
        engineer = await FieldEngineer.find_one(FieldEngineer.engineerId == engineer_id)
        if engineer is None:
            msg = f"Field engineer {engineer_id} not found"
            raise ResourceNotFoundException(msg, {"engineer_id": engineer_id})
        return engineer

    async def get_filtered_history(
        self,
        engineer_id: int,
        *,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
        min_stay_minutes: int | None = None,
        now: datetime | None = None,
    ) -> list[ActivityEvent]:
        """
        Load an engineer's events for a local date range and filter them.

        Dates are calendar days in the engineer's time zone; the range covers
        ``start_date`` through ``end_date`` inclusive and defaults to today.

        Raises:
            ResourceNotFoundException: Unknown engineer.
            ValidationException: Malformed or inverted dates.
        """
        engineer = await self.get_engineer(engineer_id)
        tz = resolve_timezone(engineer.timeZone, DEFAULT_TIMEZONE)

        try:
            start_utc, end_utc = local_day_range(
                parse_calendar_date(start_date),
                parse_calendar_date(end_date),
                tz,
                now=now,
            )
        except ValueError as e:
            raise ValidationException(str(e)) from e

        events = await self.events.events_in_range(engineer_id, start_utc, end_utc)
        filtered = filter_itinerary(events, min_stay_minutes)
        logger.debug(
            "History for %s (%s) [%s, %s): %d of %d event(s)",
            engineer.display_name,
            engineer_id,
            start_utc.isoformat(),
            end_utc.isoformat(),
            len(filtered),
            len(events),
        )
        return filtered
