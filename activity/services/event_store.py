"""Append-only storage for Stop/Drive activity events."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pymongo.errors import DuplicateKeyError

from db.models import ActivityEvent

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

logger = logging.getLogger(__name__)


class EventStore:
    @staticmethod
    async def insert_events(events: Sequence[ActivityEvent]) -> list[ActivityEvent]:
        """Insert events in order, skipping any whose ``eventKey`` already exists.

        Returns the events that were actually written.
        """
        inserted: list[ActivityEvent] = []
        for event in events:
            try:
                await event.insert()
            except DuplicateKeyError:
                logger.info("Activity event %s already stored; skipping", event.eventKey)
                continue
            inserted.append(event)
        return inserted

    @staticmethod
    async def latest_event(engineer_id: int) -> ActivityEvent | None:
        """Most recent event by end time, used to anchor the next run."""
        return (
            await ActivityEvent.find(
                ActivityEvent.engineerId == engineer_id,
                with_children=True,
            )
            .sort("-endTime")
            .first_or_none()
        )

    @staticmethod
    async def events_in_range(
        engineer_id: int,
        start: datetime,
        end: datetime,
    ) -> list[ActivityEvent]:
        """Events starting in ``[start, end)``, ordered by start time."""
        return (
            await ActivityEvent.find(
                ActivityEvent.engineerId == engineer_id,
                ActivityEvent.startTime >= start,
                ActivityEvent.startTime < end,
                with_children=True,
            )
            .sort("+startTime")
            .to_list()
        )
