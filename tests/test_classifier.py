"""Tests for transport classification and floor estimation."""

import pytest

from classifier import classify_transport, estimate_floor
from models import ActivityType, TransportationType


@pytest.mark.parametrize("altitude,baseline,expected", [
    (0.0, 0.0, 0),
    (1.4, 0.0, 0),
    (1.5, 0.0, 1),
    (4.5, 0.0, 2),
    (-1.5, 0.0, -1),
    (-4.4, 0.0, -1),
    (12.0, 0.0, 4),
    (9.5, 0.5, 3),
])
def test_estimate_floor(altitude, baseline, expected):
    assert estimate_floor(altitude, baseline) == expected


@pytest.mark.parametrize("activity", [None, *ActivityType])
def test_small_altitude_change_is_stationary(activity):
    result = classify_transport(
        current_altitude=10.4,
        baseline_altitude=10.0,
        floor_delta=5,
        walking_floor_delta=2,
        current_activity=activity,
    )
    assert result == TransportationType.STATIONARY


def test_missing_activity_is_unknown():
    result = classify_transport(5.0, 0.0, 2, 0, None)
    assert result == TransportationType.UNKNOWN


def test_missing_activity_at_threshold_is_unknown():
    assert classify_transport(0.5, 0.0, 0, 0, None) == TransportationType.UNKNOWN


def test_elevator():
    result = classify_transport(5.0, 0.0, 3, 0, ActivityType.STATIONARY)
    assert result == TransportationType.ELEVATOR


def test_stairs_when_floor_counts_agree():
    result = classify_transport(12.0, 0.0, 4, 4, ActivityType.WALKING)
    assert result == TransportationType.STAIRS


def test_stairs_tolerates_one_floor_difference():
    assert classify_transport(12.0, 0.0, 4, 3, ActivityType.RUNNING) == TransportationType.STAIRS
    assert classify_transport(-12.0, 0.0, -4, -5, ActivityType.WALKING) == TransportationType.STAIRS


def test_floor_counts_too_far_apart_is_unknown():
    assert classify_transport(12.0, 0.0, 4, 2, ActivityType.WALKING) == TransportationType.UNKNOWN


def test_escalator():
    result = classify_transport(12.0, 0.0, 4, 0, ActivityType.WALKING)
    assert result == TransportationType.ESCALATOR


def test_no_step_floors_while_driving_is_unknown():
    assert classify_transport(12.0, 0.0, 4, 0, ActivityType.AUTOMOTIVE) == TransportationType.UNKNOWN


def test_flat_walking():
    result = classify_transport(1.0, 0.0, 0, 0, ActivityType.WALKING)
    assert result == TransportationType.WALKING


def test_flat_while_stationary_is_unknown():
    assert classify_transport(1.0, 0.0, 0, 0, ActivityType.STATIONARY) == TransportationType.UNKNOWN


def test_classification_is_deterministic():
    args = (7.3, 1.1, 2, 2, ActivityType.WALKING)
    results = {classify_transport(*args) for _ in range(20)}
    assert results == {TransportationType.STAIRS}
