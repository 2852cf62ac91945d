"""
Sensor error types reported by sensor adapters
"""

from typing import Optional

# Error codes reported by the motion stack
MOTION_NOT_AUTHORIZED = 105
MOTION_NOT_AVAILABLE = 106
DEVICE_REQUIRES_MOVEMENT = 107


class SensorError(Exception):
    """An error reported by a sensor channel"""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class SensorUnavailableError(SensorError):
    """The device lacks a required sensor"""


class PermissionDeniedError(SensorError):
    """Access to motion data was not authorized"""

    def __init__(self, message: str = "Motion & Fitness access not authorized",
                 code: Optional[int] = MOTION_NOT_AUTHORIZED):
        super().__init__(message, code)
