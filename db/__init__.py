"""Database package for MongoDB operations using Beanie ODM.

Modules:
    manager: DatabaseManager singleton for connection handling
    models: Beanie Document models for all collections
    schemas: Pydantic request/response schemas
    serializers: JSON conversion helpers for API responses

Usage:
    from db.models import LocationSample, StopEvent

    sample = LocationSample(engineerId=7, latitude=30.1, longitude=-97.7, ...)
    await sample.insert()
"""

from db.manager import DatabaseManager, db_manager
from db.models import (
    ALL_DOCUMENT_MODELS,
    ActivityEvent,
    DriveEvent,
    FieldEngineer,
    LocationSample,
    StopEvent,
)
from db.serializers import serialize_datetime, serialize_document, serialize_for_json


async def init_database() -> None:
    """Initialize Beanie (and with it, every model's indexes)."""
    await db_manager.init_beanie()


__all__ = [
    "ALL_DOCUMENT_MODELS",
    "ActivityEvent",
    "DatabaseManager",
    "DriveEvent",
    "FieldEngineer",
    "LocationSample",
    "StopEvent",
    "db_manager",
    "init_database",
    "serialize_datetime",
    "serialize_document",
    "serialize_for_json",
]
