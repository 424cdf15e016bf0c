from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from fakes import FakeRedis

from activity import events as activity_events
from db.models import ActivityEvent, StopEvent


def _stop_event() -> StopEvent:
    start = datetime(2025, 3, 10, 8, 0, tzinfo=UTC)
    return StopEvent(
        engineerId=3,
        startTime=start,
        endTime=start + timedelta(minutes=12),
        durationMinutes=12,
        eventKey=ActivityEvent.build_key(3, "Stop", start),
        latitude=30.0,
        longitude=-97.0,
        locationName="Warehouse",
    )


@pytest.mark.asyncio
async def test_publish_activity_event_sends_topic_and_payload(
    monkeypatch,
    beanie_db,
) -> None:
    redis = FakeRedis()
    monkeypatch.setattr(activity_events, "get_shared_redis", AsyncMock(return_value=redis))

    ok = await activity_events.publish_activity_event(_stop_event())

    assert ok is True
    channel, raw = redis.published[0]
    assert channel == "activity_updates"
    message = json.loads(raw)
    assert message["topic"] == "engineer:3"
    assert message["payload"]["event_type"] == "activity_event"
    event = message["payload"]["event"]
    assert event["type"] == "Stop"
    assert event["startTime"] == "2025-03-10T08:00:00Z"
    assert event["locationName"] == "Warehouse"
    assert message["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_publish_reports_failure_instead_of_raising(monkeypatch) -> None:
    monkeypatch.setattr(
        activity_events,
        "get_shared_redis",
        AsyncMock(return_value=FakeRedis(fail=True)),
    )

    assert await activity_events.publish("engineer:1", {"x": 1}) is False


def test_json_serializer_rejects_unknown_types() -> None:
    with pytest.raises(TypeError):
        activity_events.json_serializer(object())
