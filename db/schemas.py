"""
Pydantic schemas for request validation and API responses.

Kept separate from the Beanie documents so the wire format can differ from
the stored one.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from core.date_utils import parse_timestamp


class LocationSampleIn(BaseModel):
    """A GPS ping as posted by a device."""

    engineerId: int
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    speed: float | None = Field(default=None, ge=0)
    accuracy: float | None = Field(default=None, ge=0)
    timestamp: datetime | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp_field(cls, v: Any) -> datetime | None:
        if v is None or v == "":
            return None
        parsed = parse_timestamp(v)
        if parsed is None:
            msg = f"Invalid timestamp: {v!r}"
            raise ValueError(msg)
        return parsed


class LocationIngestResponse(BaseModel):
    message: str
    count: int


class ProcessingAcceptedResponse(BaseModel):
    status: str = "accepted"
    message: str


class SchedulerStatusResponse(BaseModel):
    running: bool
    intervalMinutes: float
    lastRunStartedAt: datetime | None = None
    lastRunFinishedAt: datetime | None = None
    lastRunSummary: dict[str, Any] = Field(default_factory=dict)
    inFlightRuns: int = 0
