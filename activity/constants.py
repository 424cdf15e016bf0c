"""Tuning constants for stop/drive segmentation."""

from datetime import timedelta
from typing import Final

# Below this speed (m/s) a sample counts as stationary; ~5 km/h, walking pace
STOP_SPEED_THRESHOLD_MPS: Final[float] = 1.4

# A run of stationary samples must span at least this long to become a Stop
MIN_STOP_DURATION: Final[timedelta] = timedelta(minutes=5)

# A gap between stops needs at least this many samples to become a Drive
MIN_DRIVE_POINTS: Final[int] = 2

# Drive distances use this sphere, not GeometryService.EARTH_RADIUS_M (6371 km).
# Existing stored distances were computed with it, so keep it stable.
ACTIVITY_EARTH_RADIUS_M: Final[float] = 6376500.0

GEOCODE_PLACEHOLDER_TEMPLATE: Final[str] = "Location near {lat:.3f}, {lon:.3f}"

STOP_EVENT: Final[str] = "Stop"
DRIVE_EVENT: Final[str] = "Drive"
