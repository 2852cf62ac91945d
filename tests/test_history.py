"""Tests for the reading history, statistics and JSON export/import."""

import json

from history import ReadingHistory
from models import TransportationType


def test_append_grows_until_capacity(make_reading):
    history = ReadingHistory()
    for i in range(100):
        history.append(make_reading(seconds=i))
        assert len(history) == i + 1

    history.append(make_reading(seconds=100))
    assert len(history) == 100


def test_eviction_removes_oldest(make_reading):
    history = ReadingHistory(capacity=3)
    readings = [make_reading(seconds=i, steps=i) for i in range(5)]
    for reading in readings:
        history.append(reading)

    assert history.readings == readings[2:]


def test_reset_clears_history(make_reading):
    history = ReadingHistory()
    history.append(make_reading())
    history.reset()

    assert len(history) == 0
    assert history.compute_statistics().total_readings == 0


def test_empty_statistics():
    stats = ReadingHistory().compute_statistics()

    assert stats.total_readings == 0
    assert stats.total_sessions == 0
    assert stats.max_floor == 0
    assert stats.min_floor == 0
    assert stats.total_steps == 0
    assert stats.total_monitoring_time == 0
    assert stats.transport_counts == {}
    assert stats.available_transport_types == []
    assert stats.most_used_transport_type == TransportationType.UNKNOWN
    assert stats.average_floor_change == 0
    assert stats.formatted_monitoring_time == "0h 0m"


def test_statistics(make_reading):
    history = ReadingHistory()
    history.append(make_reading(seconds=0, floor=0, steps=0))
    history.append(make_reading(seconds=60, floor=2, steps=40,
                                transport_type=TransportationType.STAIRS, walking_floors=2))
    history.append(make_reading(seconds=120, floor=3, steps=55,
                                transport_type=TransportationType.STAIRS, walking_floors=3))
    history.append(make_reading(seconds=3900, floor=-1, steps=80,
                                transport_type=TransportationType.ELEVATOR))

    stats = history.compute_statistics()

    assert stats.total_readings == 4
    assert stats.total_sessions == 1
    assert stats.max_floor == 3
    assert stats.min_floor == -1
    assert stats.total_steps == 80
    assert stats.total_floors_climbed == 5
    assert stats.total_floors_descended == 1
    assert stats.transport_counts == {
        TransportationType.STATIONARY: 1,
        TransportationType.STAIRS: 2,
        TransportationType.ELEVATOR: 1,
    }
    assert stats.available_transport_types == [
        TransportationType.ELEVATOR,
        TransportationType.STAIRS,
        TransportationType.STATIONARY,
    ]
    assert stats.most_used_transport_type == TransportationType.STAIRS
    assert stats.total_monitoring_time == 3900
    assert stats.formatted_monitoring_time == "1h 5m"
    assert stats.average_floor_change == 1.5
    assert stats.average_floor_height == 3.0


def test_most_used_tie_goes_to_first_seen(make_reading):
    history = ReadingHistory()
    history.append(make_reading(transport_type=TransportationType.WALKING))
    history.append(make_reading(transport_type=TransportationType.ESCALATOR))

    assert history.compute_statistics().most_used_transport_type == TransportationType.WALKING


def test_export_format(make_reading):
    history = ReadingHistory()
    history.append(make_reading(floor=2, steps=30, walking_floors=2,
                                transport_type=TransportationType.STAIRS, activity="walking"))

    exported = json.loads(history.export_json())

    assert len(exported) == 1
    assert set(exported[0]) == {
        "altitude", "pressure", "timestamp", "floor",
        "walkingFloors", "steps", "transportType", "activity",
    }
    assert exported[0]["walkingFloors"] == 2
    assert exported[0]["transportType"] == "stairs"
    assert exported[0]["timestamp"].startswith("2025-09-15T10:00:00")


def test_export_then_import_round_trip(make_reading):
    history = ReadingHistory()
    for i, floor in enumerate([0, 1, 2, 1, -1]):
        history.append(make_reading(seconds=i * 5, floor=floor, steps=i * 10))
    original = history.readings

    payload = history.export_json()
    assert history.import_json(payload) is True

    assert history.readings == original


def test_import_into_another_store(make_reading):
    source = ReadingHistory()
    source.append(make_reading(floor=4, transport_type=TransportationType.ESCALATOR))

    target = ReadingHistory()
    target.append(make_reading(floor=1))

    assert target.import_json(source.export_json()) is True
    assert target.readings == source.readings


def test_import_accepts_epoch_timestamps():
    history = ReadingHistory()
    payload = json.dumps([{
        "altitude": 3.1, "pressure": 1012.8, "timestamp": 1757898000,
        "floor": 1, "walkingFloors": 1, "steps": 20,
        "transportType": "stairs", "activity": "walking",
    }])

    assert history.import_json(payload) is True
    assert history.readings[0].timestamp.year == 2025


def test_import_unknown_transport_label_decodes_as_unknown(make_reading):
    history = ReadingHistory()
    reading = json.loads(_single_reading_payload(make_reading))[0]
    reading["transportType"] = "teleport"

    assert history.import_json(json.dumps([reading])) is True
    assert history.readings[0].transport_type == TransportationType.UNKNOWN


def test_malformed_import_leaves_history_untouched(make_reading):
    history = ReadingHistory()
    history.append(make_reading(floor=2))
    before = history.readings

    valid = json.loads(_single_reading_payload(make_reading))[0]
    missing_field = {k: v for k, v in valid.items() if k != "steps"}
    wrong_type = dict(valid, floor="second")

    for payload in [
        b"not json",
        b"",
        b'{"altitude": 1.0}',
        json.dumps([missing_field]),
        json.dumps([wrong_type]),
        json.dumps([valid, 42]),
    ]:
        assert history.import_json(payload) is False
        assert history.readings == before


def test_import_over_capacity_keeps_newest(make_reading):
    source = ReadingHistory(capacity=10)
    for i in range(10):
        source.append(make_reading(seconds=i, steps=i))

    target = ReadingHistory(capacity=4)
    assert target.import_json(source.export_json()) is True
    assert [r.steps for r in target.readings] == [6, 7, 8, 9]


def _single_reading_payload(make_reading) -> bytes:
    history = ReadingHistory()
    history.append(make_reading(floor=1, walking_floors=1, steps=12,
                                transport_type=TransportationType.STAIRS))
    return history.export_json()


def test_statistics_mix_naive_imports_and_aware_readings(make_reading):
    history = ReadingHistory()
    payload = json.dumps([{
        "altitude": 0.0, "pressure": 1013.2, "timestamp": "2025-09-15T09:59:50",
        "floor": 0, "walkingFloors": 0, "steps": 0,
        "transportType": "stationary", "activity": "stationary",
    }])
    assert history.import_json(payload) is True
    assert history.readings[0].timestamp.tzinfo is not None

    history.append(make_reading(seconds=5, floor=1, steps=10))

    stats = history.compute_statistics()
    assert stats.total_readings == 2
    assert stats.total_monitoring_time == 15


def test_import_rejects_non_finite_numbers(make_reading):
    history = ReadingHistory()
    history.append(make_reading(floor=1))
    before = history.readings

    valid = json.loads(_single_reading_payload(make_reading))[0]
    for bad in [float("nan"), float("inf"), float("-inf")]:
        assert history.import_json(json.dumps([dict(valid, altitude=bad)])) is False
        assert history.import_json(json.dumps([dict(valid, pressure=bad)])) is False

    assert history.readings == before
    assert history.import_json(history.export_json()) is True
