"""
In-process scheduler for activity segmentation runs.

``ActivityScheduler`` owns one periodic loop plus any number of ad-hoc runs
started by :meth:`ActivityScheduler.trigger`. Each run walks the engineers
with unprocessed samples one at a time; overlapping runs are safe because
the engine takes a per-engineer lease.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from config import ACTIVITY_PROCESSING_INTERVAL_MINUTES
from core.date_utils import get_current_utc_time

if TYPE_CHECKING:
    from collections.abc import Iterable

    from activity.services.sample_store import SampleStore
    from activity.services.segmentation_engine import SegmentationEngine

logger = logging.getLogger(__name__)


class ActivityScheduler:
    def __init__(
        self,
        engine: SegmentationEngine,
        samples: SampleStore,
        *,
        interval_seconds: float = ACTIVITY_PROCESSING_INTERVAL_MINUTES * 60,
    ) -> None:
        self._engine = engine
        self._samples = samples
        self._interval_seconds = interval_seconds
        self._loop_task: asyncio.Task | None = None
        self._runs: set[asyncio.Task] = set()
        self.last_run_started_at: datetime | None = None
        self.last_run_finished_at: datetime | None = None
        self.last_run_summary: dict[str, Any] = {}

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @property
    def in_flight(self) -> int:
        return len(self._runs)

    def start(self) -> None:
        """Start the periodic loop; the first pass runs immediately."""
        if self.running:
            return
        self._loop_task = asyncio.create_task(
            self._periodic_loop(),
            name="activity-scheduler",
        )
        logger.info(
            "Activity scheduler started (every %.0f seconds)",
            self._interval_seconds,
        )

    async def stop(self) -> None:
        """Cancel the loop and any in-flight runs, and wait for them to unwind."""
        tasks = list(self._runs)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._runs.clear()
        logger.info("Activity scheduler stopped")

    def trigger(self, engineer_ids: Iterable[int] | None = None) -> asyncio.Task:
        """Start an ad-hoc run in the background and return its task.

        With ``engineer_ids`` only those engineers are processed; otherwise
        every engineer with unprocessed samples is.
        """
        ids = sorted(set(engineer_ids)) if engineer_ids is not None else None
        task = asyncio.create_task(self.run_once(ids), name="activity-run")
        self._runs.add(task)
        task.add_done_callback(self._on_run_done)
        return task

    def _on_run_done(self, task: asyncio.Task) -> None:
        self._runs.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Ad-hoc activity run failed", exc_info=error)

    async def run_once(self, engineer_ids: list[int] | None = None) -> dict[str, Any]:
        """Process engineers sequentially; one failure never stops the pass."""
        started_at = get_current_utc_time()
        self.last_run_started_at = started_at
        if engineer_ids is None:
            engineer_ids = await self._samples.engineers_with_unprocessed()

        summary: dict[str, Any] = {
            "engineers": len(engineer_ids),
            "processed": 0,
            "skipped": 0,
            "failed": 0,
            "events": 0,
        }
        for engineer_id in engineer_ids:
            try:
                result = await self._engine.process_engineer(engineer_id)
            except asyncio.CancelledError:
                raise
            except Exception:
                summary["failed"] += 1
                logger.exception("Activity processing failed for engineer %s", engineer_id)
                continue
            if result.status == "processed":
                summary["processed"] += 1
                summary["events"] += result.stops + result.drives
            else:
                summary["skipped"] += 1

        self.last_run_finished_at = get_current_utc_time()
        self.last_run_summary = summary
        logger.info(
            "Activity run finished in %.2fs: %s",
            (self.last_run_finished_at - started_at).total_seconds(),
            summary,
        )
        return summary

    async def _periodic_loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Scheduled activity run failed")
            await asyncio.sleep(self._interval_seconds)
