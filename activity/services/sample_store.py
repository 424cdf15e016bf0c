"""Access to the raw location sample buffer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from beanie.operators import In

from core.date_utils import get_current_utc_time
from core.exceptions import ValidationException
from db.models import LocationSample

if TYPE_CHECKING:
    from collections.abc import Sequence

    from beanie import PydanticObjectId

    from db.schemas import LocationSampleIn

logger = logging.getLogger(__name__)


class SampleStore:
    """Ingest, fetch, and flag location samples."""

    @staticmethod
    async def ingest(samples: Sequence[LocationSampleIn]) -> list[LocationSample]:
        """Persist a batch of pings as unprocessed samples.

        A ping without a timestamp is stamped with the ingest time.
        """
        if not samples:
            msg = "No location samples provided"
            raise ValidationException(msg)

        received_at = get_current_utc_time()
        documents = [
            LocationSample(
                engineerId=sample.engineerId,
                latitude=sample.latitude,
                longitude=sample.longitude,
                speed=sample.speed,
                accuracy=sample.accuracy,
                timestamp=sample.timestamp or received_at,
                receivedAt=received_at,
            )
            for sample in samples
        ]
        await LocationSample.insert_many(documents)
        logger.info("Stored %d location sample(s)", len(documents))
        return documents

    @staticmethod
    async def engineers_with_unprocessed() -> list[int]:
        engineer_ids = await LocationSample.distinct(
            "engineerId",
            {"processed": False},
        )
        return sorted(int(engineer_id) for engineer_id in engineer_ids)

    @staticmethod
    async def fetch_unprocessed(engineer_id: int) -> list[LocationSample]:
        return (
            await LocationSample.find(
                LocationSample.engineerId == engineer_id,
                LocationSample.processed == False,  # noqa: E712
            )
            .sort("+timestamp")
            .to_list()
        )

    @staticmethod
    async def mark_processed(sample_ids: Sequence[PydanticObjectId]) -> int:
        """Flag samples as consumed. Already-processed samples are left alone."""
        if not sample_ids:
            return 0
        await LocationSample.find(
            In(LocationSample.id, list(sample_ids)),
            LocationSample.processed == False,  # noqa: E712
        ).update(
            {"$set": {"processed": True, "processedAt": get_current_utc_time()}},
        )
        return len(sample_ids)

    @staticmethod
    async def recent_for_engineer(
        engineer_id: int,
        limit: int = 500,
    ) -> list[LocationSample]:
        return (
            await LocationSample.find(LocationSample.engineerId == engineer_id)
            .sort("-timestamp")
            .limit(limit)
            .to_list()
        )
