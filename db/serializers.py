"""Serialization utilities for MongoDB documents.

Converts Beanie documents and raw Mongo values into JSON-ready dicts for
API responses and broadcast payloads.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from beanie import Document
from bson import ObjectId

from core.date_utils import ensure_utc


def serialize_datetime(dt: datetime | None) -> str | None:
    """Serialize a datetime to an ISO 8601 string with a ``Z`` suffix."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def serialize_for_json(data: Any) -> Any:
    """Recursively convert ObjectId and datetime values for JSON output."""
    if isinstance(data, dict):
        return {k: serialize_for_json(v) for k, v in data.items()}
    if isinstance(data, list | tuple):
        return [serialize_for_json(item) for item in data]
    if isinstance(data, ObjectId):
        return str(data)
    if isinstance(data, datetime):
        return serialize_datetime(data)
    return data


def serialize_document(doc: Document | dict[str, Any] | None) -> dict[str, Any]:
    """Serialize a Beanie document (or raw Mongo dict) for a JSON response.

    The Mongo ``_id`` is exposed as ``id``; Beanie bookkeeping fields are
    dropped.
    """
    if not doc:
        return {}
    if isinstance(doc, Document):
        data = doc.model_dump(exclude={"revision_id"})
    else:
        data = dict(doc)
        if "_id" in data:
            data["id"] = data.pop("_id")
    data.pop("_class_id", None)
    return serialize_for_json(data)
