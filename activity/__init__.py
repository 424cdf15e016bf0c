"""Field engineer activity timeline package.

This package turns raw GPS samples into Stop/Drive events and serves the
filtered itinerary:

- segmentation.py: pure stop/drive detection
- scheduler.py: periodic and on-demand processing runs
- services/: sample and event storage, geocoding, lease, engine, history
- routes/: API endpoint handlers
"""

from fastapi import APIRouter

from activity.routes import history, locations, processing

router = APIRouter()

router.include_router(processing.router, tags=["activity-processing"])
router.include_router(history.router, tags=["activity-history"])
router.include_router(locations.router, tags=["locations"])

__all__ = ["router"]
