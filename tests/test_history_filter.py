from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

from activity.services.history_service import filter_itinerary

DAY = datetime(2025, 3, 10, tzinfo=UTC)


def _event(kind: str, start: str, end: str, event_id: int | None = None):
    start_h, start_m = map(int, start.split(":"))
    end_h, end_m = map(int, end.split(":"))
    start_time = DAY + timedelta(hours=start_h, minutes=start_m)
    end_time = DAY + timedelta(hours=end_h, minutes=end_m)
    return SimpleNamespace(
        id=event_id,
        type=kind,
        startTime=start_time,
        endTime=end_time,
        durationMinutes=int((end_time - start_time).total_seconds() // 60),
    )


def _timeline():
    return [
        _event("Stop", "08:00", "08:02", 1),
        _event("Stop", "09:00", "09:20", 2),
        _event("Drive", "08:02", "09:00", 3),
    ]


def _labels(events):
    return [(e.type, e.startTime.strftime("%H:%M")) for e in events]


def test_anchor_plus_qualifying_stay_and_connecting_drive() -> None:
    result = filter_itinerary(_timeline(), 10)

    assert _labels(result) == [
        ("Stop", "08:00"),
        ("Drive", "08:02"),
        ("Stop", "09:00"),
    ]


def test_no_qualifying_stay_returns_only_anchor() -> None:
    result = filter_itinerary(_timeline(), 30)

    assert _labels(result) == [("Stop", "08:00")]


def test_without_minimum_returns_everything_in_order() -> None:
    for min_stay in (None, 0, -5):
        result = filter_itinerary(_timeline(), min_stay)
        assert _labels(result) == [
            ("Stop", "08:00"),
            ("Drive", "08:02"),
            ("Stop", "09:00"),
        ]


def test_no_stops_returns_empty() -> None:
    drives_only = [_event("Drive", "08:00", "08:30", 1)]

    assert filter_itinerary(drives_only, 10) == []
    assert filter_itinerary([], 10) == []


def test_short_stops_and_their_drives_are_dropped_between_stays() -> None:
    events = [
        _event("Stop", "07:55", "08:00", 1),
        _event("Drive", "08:01", "08:20", 2),
        _event("Stop", "08:21", "08:25", 3),
        _event("Drive", "08:26", "08:40", 4),
        _event("Stop", "08:41", "09:30", 5),
        _event("Drive", "09:31", "09:45", 6),
        _event("Stop", "09:46", "09:50", 7),
    ]

    result = filter_itinerary(events, 15)

    # Drives between the anchor and the 08:41 stay are kept even though they
    # pass through a short stop; the short stop itself and the drive after
    # the last stay are not.
    assert _labels(result) == [
        ("Stop", "07:55"),
        ("Drive", "08:01"),
        ("Drive", "08:26"),
        ("Stop", "08:41"),
    ]


def test_anchor_is_excluded_from_qualifying_set() -> None:
    events = [
        _event("Stop", "08:00", "09:00", 1),
        _event("Drive", "09:01", "09:30", 2),
        _event("Stop", "09:31", "09:33", 3),
    ]

    result = filter_itinerary(events, 10)

    assert _labels(result) == [("Stop", "08:00")]


def test_multiple_stays_each_bring_their_drives() -> None:
    events = [
        _event("Stop", "08:00", "08:05", 1),
        _event("Drive", "08:06", "08:30", 2),
        _event("Stop", "08:31", "09:00", 3),
        _event("Drive", "09:01", "09:20", 4),
        _event("Stop", "09:21", "10:00", 5),
    ]

    result = filter_itinerary(list(reversed(events)), 20)

    assert [e.id for e in result] == [1, 2, 3, 4, 5]
