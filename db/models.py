"""Beanie ODM document models for MongoDB collections.

Collections:
- ``location_samples``: raw GPS pings, flagged once the segmentation engine
  has consumed them
- ``activity_events``: the append-only Stop/Drive timeline. ``StopEvent`` and
  ``DriveEvent`` share the collection through Beanie document inheritance,
  so queries against ``ActivityEvent`` must pass ``with_children=True``
- ``field_engineers``: engineer directory, used for existence checks and the
  local time zone of history queries

Usage:
    from db.models import ActivityEvent, LocationSample

    pending = await LocationSample.find(
        LocationSample.engineerId == 7,
        LocationSample.processed == False,  # noqa: E712
    ).sort("+timestamp").to_list()
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from beanie import Document, Indexed
from pydantic import Field, field_validator
from pymongo import ASCENDING, DESCENDING, IndexModel

from core.date_utils import ensure_utc, get_current_utc_time, parse_timestamp


def _coerce_utc(v: Any) -> datetime | None:
    # Mongo hands back naive UTC datetimes; normalize everything to aware UTC.
    if v is None:
        return None
    return ensure_utc(parse_timestamp(v))


class LocationSample(Document):
    """A single GPS ping reported by an engineer's device."""

    engineerId: Indexed(int)
    latitude: float
    longitude: float
    speed: float | None = None  # m/s
    accuracy: float | None = None  # meters
    timestamp: datetime
    processed: bool = False
    processedAt: datetime | None = None
    receivedAt: datetime = Field(default_factory=get_current_utc_time)

    @field_validator("timestamp", "processedAt", "receivedAt", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        return _coerce_utc(v)

    class Settings:
        name = "location_samples"
        indexes = [
            IndexModel(
                [("engineerId", ASCENDING), ("processed", ASCENDING), ("timestamp", ASCENDING)],
                name="engineer_unprocessed_timestamp_idx",
            ),
            IndexModel(
                [("engineerId", ASCENDING), ("timestamp", DESCENDING)],
                name="engineer_timestamp_desc_idx",
            ),
        ]


class ActivityEvent(Document):
    """Root of the Stop/Drive tagged variant; never instantiated directly."""

    engineerId: Indexed(int)
    type: str
    startTime: datetime
    endTime: datetime
    durationMinutes: int = 0
    sampleCount: int = 0
    eventKey: Indexed(str, unique=True)
    createdAt: datetime = Field(default_factory=get_current_utc_time)

    @field_validator("startTime", "endTime", "createdAt", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        return _coerce_utc(v)

    @staticmethod
    def build_key(engineer_id: int, event_type: str, start_time: datetime) -> str:
        return f"{engineer_id}:{event_type}:{ensure_utc(start_time).isoformat()}"

    class Settings:
        name = "activity_events"
        is_root = True
        indexes = [
            IndexModel(
                [("engineerId", ASCENDING), ("startTime", ASCENDING)],
                name="engineer_start_time_idx",
            ),
            IndexModel(
                [("engineerId", ASCENDING), ("endTime", DESCENDING)],
                name="engineer_end_time_desc_idx",
            ),
        ]


class StopEvent(ActivityEvent):
    """A dwell: the engineer stayed roughly in one place."""

    type: Literal["Stop"] = "Stop"
    latitude: float
    longitude: float
    locationName: str | None = None
    address: str | None = None


class DriveEvent(ActivityEvent):
    """Movement between two stops, synthesized from the samples in the gap."""

    type: Literal["Drive"] = "Drive"
    distanceKm: float = 0.0
    topSpeedKmh: float = 0.0
    startLatitude: float
    startLongitude: float
    endLatitude: float
    endLongitude: float
    startAddress: str | None = None
    endAddress: str | None = None
    routePath: dict[str, Any] | None = None  # GeoJSON LineString


class FieldEngineer(Document):
    """Directory entry for a field engineer."""

    engineerId: Indexed(int, unique=True)
    name: str | None = None
    firstName: str | None = None
    lastName: str | None = None
    email: str | None = None
    phone: str | None = None
    timeZone: str | None = None
    isActive: bool = True
    createdAt: datetime = Field(default_factory=get_current_utc_time)

    @field_validator("createdAt", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        return _coerce_utc(v)

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        parts = [p for p in (self.firstName, self.lastName) if p]
        return " ".join(parts) or f"Engineer {self.engineerId}"

    class Settings:
        name = "field_engineers"


ALL_DOCUMENT_MODELS = [
    LocationSample,
    ActivityEvent,
    StopEvent,
    DriveEvent,
    FieldEngineer,
]
