"""
Transport mode classification logic
"""

import math
from typing import Optional

from models import ActivityType, TransportationType
from config import (
    AVERAGE_FLOOR_HEIGHT,
    FLOOR_AGREEMENT_TOLERANCE,
    STATIONARY_ALTITUDE_THRESHOLD,
)


def estimate_floor(altitude: float, baseline_altitude: float,
                   floor_height: float = AVERAGE_FLOOR_HEIGHT) -> int:
    """
    Estimate the signed floor delta from the altitude change since the baseline.
    Halves round away from zero, so 1.5 m is one floor up and -1.5 m one floor down.
    """
    floors = (altitude - baseline_altitude) / floor_height
    return int(math.copysign(math.floor(abs(floors) + 0.5), floors))


def classify_transport(
    current_altitude: float,
    baseline_altitude: float,
    floor_delta: int,
    walking_floor_delta: int,
    current_activity: Optional[ActivityType],
) -> TransportationType:
    """
    Classify the transport mode using sensor fusion.

    The barometer gives the floor estimate, the pedometer gives the floors
    counted from steps, and the activity sensor tells whether the body is
    walking or still. The first matching rule wins:

    - STATIONARY: altitude within the noise floor of the baseline
    - UNKNOWN: no activity sample yet
    - ELEVATOR: floors changed, no step floors, body stationary
    - ESCALATOR: floors changed, no step floors, body walking
    - STAIRS: barometer and pedometer floors agree within one floor
    - WALKING: walking without any floor change
    - UNKNOWN: anything else
    """
    altitude_change = abs(current_altitude - baseline_altitude)
    if altitude_change < STATIONARY_ALTITUDE_THRESHOLD:
        return TransportationType.STATIONARY

    if current_activity is None:
        return TransportationType.UNKNOWN

    floor_change = abs(floor_delta)
    walking_change = abs(walking_floor_delta)

    if floor_change > 0 and walking_change == 0:
        if current_activity == ActivityType.STATIONARY:
            return TransportationType.ELEVATOR
        elif current_activity == ActivityType.WALKING:
            return TransportationType.ESCALATOR
        return TransportationType.UNKNOWN

    if (floor_change > 0 and walking_change > 0
            and abs(floor_change - walking_change) <= FLOOR_AGREEMENT_TOLERANCE):
        return TransportationType.STAIRS

    if current_activity == ActivityType.WALKING and floor_change == 0:
        return TransportationType.WALKING

    return TransportationType.UNKNOWN
