"""Activity services."""

from activity.services.event_store import EventStore
from activity.services.geocoding import GeocodedPlace, ReverseGeocoder
from activity.services.history_service import HistoryService, filter_itinerary
from activity.services.lease import EngineerLease
from activity.services.sample_store import SampleStore
from activity.services.segmentation_engine import EngineerRunResult, SegmentationEngine

__all__ = [
    "EngineerLease",
    "EngineerRunResult",
    "EventStore",
    "GeocodedPlace",
    "HistoryService",
    "ReverseGeocoder",
    "SampleStore",
    "SegmentationEngine",
    "filter_itinerary",
]
