from datetime import datetime, timedelta

import pytest
import pytz

from floor_detector import FloorDetector
from models import AltitudeReading, TransportationType


@pytest.fixture
def t0() -> datetime:
    """Session start time"""
    return pytz.timezone("Asia/Seoul").localize(datetime(2025, 9, 15, 10, 0, 0))


@pytest.fixture
def make_reading(t0):
    """Factory for readings offset from t0"""
    def _make(seconds: float = 0, floor: int = 0,
              transport_type: TransportationType = TransportationType.STATIONARY,
              steps: int = 0, walking_floors: int = 0, activity: str = "stationary"):
        return AltitudeReading(
            altitude=floor * 3.0,
            pressure=1013.2 - floor * 0.36,
            timestamp=t0 + timedelta(seconds=seconds),
            floor=floor,
            walking_floors=walking_floors,
            steps=steps,
            transport_type=transport_type,
            activity=activity,
        )
    return _make


@pytest.fixture
def detector() -> FloorDetector:
    return FloorDetector()
