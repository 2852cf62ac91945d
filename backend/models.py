"""
Data models for the Floor Tracker
"""

from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from enum import Enum

from config import AVERAGE_FLOOR_HEIGHT, SIGNIFICANT_ALTITUDE_CHANGE
from utils import format_duration, now_local, to_local


class TransportationType(str, Enum):
    """Transport mode classification"""
    UNKNOWN = "unknown"
    STAIRS = "stairs"
    ELEVATOR = "elevator"
    ESCALATOR = "escalator"
    STATIONARY = "stationary"
    WALKING = "walking"

    @property
    def display_name(self) -> str:
        return _TRANSPORT_DISPLAY_NAMES[self]

    @property
    def description(self) -> str:
        return _TRANSPORT_DESCRIPTIONS[self]


_TRANSPORT_DISPLAY_NAMES = {
    TransportationType.UNKNOWN: "Analyzing",
    TransportationType.STAIRS: "Stairs",
    TransportationType.ELEVATOR: "Elevator",
    TransportationType.ESCALATOR: "Escalator",
    TransportationType.STATIONARY: "Stationary",
    TransportationType.WALKING: "Walking on flat ground",
}

_TRANSPORT_DESCRIPTIONS = {
    TransportationType.UNKNOWN: "Analyzing sensor data to determine how you are moving.",
    TransportationType.STAIRS: "Both steps and floor counts were detected, so this looks like stairs.",
    TransportationType.ELEVATOR: "Altitude changed while stationary, so this looks like an elevator.",
    TransportationType.ESCALATOR: "Walking was detected without floor counts, so this looks like an escalator.",
    TransportationType.STATIONARY: "Altitude is barely changing, so you appear to be standing still.",
    TransportationType.WALKING: "You appear to be walking on flat ground.",
}


class ActivityType(str, Enum):
    """Coarse motion activity labels"""
    WALKING = "walking"
    RUNNING = "running"
    AUTOMOTIVE = "automotive"
    CYCLING = "cycling"
    STATIONARY = "stationary"
    UNKNOWN = "unknown"


# ==================== RAW SENSOR SAMPLES ====================

class AltitudeSample(BaseModel):
    """Relative altitude update from the barometer"""
    model_config = ConfigDict(allow_inf_nan=False)

    timestamp: datetime
    relative_altitude: float  # meters since the sensor started
    pressure: float  # hPa


class PedometerSample(BaseModel):
    """Cumulative pedometer update for the session"""
    timestamp: datetime
    steps: int
    floors_ascended: int = 0
    floors_descended: int = 0

    @property
    def walking_floors(self) -> int:
        return self.floors_ascended - self.floors_descended


class ActivitySample(BaseModel):
    """Motion activity update"""
    timestamp: datetime
    activity: ActivityType


# ==================== CLASSIFIED DATA ====================

class AltitudeReading(BaseModel):
    """Classified reading, one per altitude update"""
    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    altitude: float
    pressure: float
    timestamp: datetime
    floor: int
    walking_floors: int = Field(alias="walkingFloors")
    steps: int
    transport_type: TransportationType = Field(alias="transportType")
    activity: str

    @field_validator("timestamp")
    @classmethod
    def _timestamp_is_aware(cls, value: datetime) -> datetime:
        return to_local(value)

    @field_validator("transport_type", mode="before")
    @classmethod
    def _unknown_label_is_unknown(cls, value):
        # Unrecognised labels decode as UNKNOWN rather than failing
        if isinstance(value, str) and value not in {t.value for t in TransportationType}:
            return TransportationType.UNKNOWN
        return value

    @property
    def floor_difference(self) -> int:
        return self.floor - self.walking_floors

    @property
    def is_significant_movement(self) -> bool:
        return abs(self.floor) > 0 or abs(self.altitude) > SIGNIFICANT_ALTITUDE_CHANGE

    @property
    def formatted_time(self) -> str:
        return to_local(self.timestamp).strftime("%H:%M:%S")

    @property
    def formatted_altitude(self) -> str:
        return f"{self.altitude:.2f} m"

    @property
    def formatted_pressure(self) -> str:
        return f"{self.pressure:.1f} hPa"

    @classmethod
    def sample(cls) -> "AltitudeReading":
        return cls(
            altitude=9.2,
            pressure=1013.2,
            timestamp=now_local(),
            floor=3,
            walking_floors=3,
            steps=245,
            transport_type=TransportationType.STAIRS,
            activity=ActivityType.WALKING.value,
        )

    @classmethod
    def elevator_sample(cls) -> "AltitudeReading":
        return cls(
            altitude=24.0,
            pressure=1009.8,
            timestamp=now_local(),
            floor=8,
            walking_floors=0,
            steps=12,
            transport_type=TransportationType.ELEVATOR,
            activity=ActivityType.STATIONARY.value,
        )

    @classmethod
    def escalator_sample(cls) -> "AltitudeReading":
        return cls(
            altitude=12.1,
            pressure=1011.5,
            timestamp=now_local(),
            floor=4,
            walking_floors=0,
            steps=89,
            transport_type=TransportationType.ESCALATOR,
            activity=ActivityType.WALKING.value,
        )


class FloorStatistics(BaseModel):
    """Statistics derived from the reading history"""
    total_readings: int
    total_sessions: int
    max_floor: int
    min_floor: int
    total_steps: int
    total_floors_climbed: int
    total_floors_descended: int
    transport_counts: Dict[TransportationType, int]
    available_transport_types: List[TransportationType]
    most_used_transport_type: TransportationType
    total_monitoring_time: float  # seconds
    average_floor_change: float
    average_floor_height: float = AVERAGE_FLOOR_HEIGHT

    @computed_field
    @property
    def formatted_monitoring_time(self) -> str:
        return format_duration(self.total_monitoring_time)

    @classmethod
    def empty(cls) -> "FloorStatistics":
        return cls(
            total_readings=0,
            total_sessions=0,
            max_floor=0,
            min_floor=0,
            total_steps=0,
            total_floors_climbed=0,
            total_floors_descended=0,
            transport_counts={},
            available_transport_types=[],
            most_used_transport_type=TransportationType.UNKNOWN,
            total_monitoring_time=0.0,
            average_floor_change=0.0,
        )


class DetectorSnapshot(BaseModel):
    """Immutable view of the session state for display"""
    model_config = ConfigDict(frozen=True)

    current_floor: int
    relative_altitude: float
    pressure: float
    is_monitoring: bool
    status_message: str
    show_permission_alert: bool
    transportation_type: TransportationType
    walking_floors: int
    total_steps: int
    activity_type: str
    altitude_history: List[AltitudeReading]


class MonitoringSession(BaseModel):
    """Archived monitoring session"""
    id: Optional[int] = None
    started_at: datetime
    stopped_at: Optional[datetime] = None
