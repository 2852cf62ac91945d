"""
Floor detection session: fuses altitude, pedometer and activity updates
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from classifier import classify_transport, estimate_floor
from config import BASELINE_SETTLE_SECONDS, STATIONARY_ALTITUDE_THRESHOLD
from errors import (
    DEVICE_REQUIRES_MOVEMENT,
    MOTION_NOT_AUTHORIZED,
    MOTION_NOT_AVAILABLE,
    PermissionDeniedError,
    SensorError,
    SensorUnavailableError,
)
from history import ReadingHistory
from models import (
    ActivitySample,
    ActivityType,
    AltitudeReading,
    AltitudeSample,
    DetectorSnapshot,
    FloorStatistics,
    PedometerSample,
    TransportationType,
)
from utils import now_local, to_local

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[DetectorSnapshot], None]
ReadingCallback = Callable[[AltitudeReading], None]


class FloorDetector:
    """
    Owns the classification state and reading history of one monitoring session.

    Sensor updates arrive from three independent channels (altitude, pedometer,
    activity) and possibly from several threads. Every mutation goes through
    a single lock, and subscribers receive an immutable snapshot after each
    change.
    """

    def __init__(self, sensor_check: Optional[Callable[[], None]] = None,
                 history: Optional[ReadingHistory] = None):
        # Raises SensorUnavailableError when the device cannot monitor
        self.sensor_check = sensor_check
        self.history = history or ReadingHistory()

        self._lock = threading.RLock()
        self._subscribers: List[SnapshotCallback] = []
        self._reading_callback: Optional[ReadingCallback] = None

        # Published state
        self.current_floor: int = 0
        self.relative_altitude: float = 0.0
        self.pressure: float = 0.0
        self.is_monitoring: bool = False
        self.status_message: str = "Ready"
        self.show_permission_alert: bool = False
        self.transportation_type: TransportationType = TransportationType.UNKNOWN
        self.walking_floors: int = 0
        self.total_steps: int = 0
        self.activity_type: str = ActivityType.STATIONARY.value

        # Internal state
        self.starting_altitude: float = 0.0
        self.current_activity: Optional[ActivityType] = None
        self.session_start_time: Optional[datetime] = None
        self.baseline_latched: bool = False

    # ==================== CALLBACKS ====================

    def subscribe(self, callback: SnapshotCallback):
        """Register a callback that receives a snapshot after every change"""
        self._subscribers.append(callback)

    def set_reading_callback(self, callback: ReadingCallback):
        """Set callback function to be called for each new classified reading"""
        self._reading_callback = callback

    def _publish(self, snapshot: DetectorSnapshot):
        for callback in list(self._subscribers):
            callback(snapshot)

    # ==================== LIFECYCLE ====================

    def start_monitoring(self, now: Optional[datetime] = None) -> bool:
        """
        Start a monitoring session.
        Returns False if the sensors are unavailable or a session is already running.
        """
        with self._lock:
            if self.is_monitoring:
                logger.info("Monitoring already running")
                return False

            try:
                if self.sensor_check:
                    self.sensor_check()
            except SensorUnavailableError as e:
                self.status_message = f"Sensor not available: {e}"
                logger.warning("Cannot start monitoring: %s", e)
                started = False
            else:
                started = True
                self.session_start_time = to_local(now) if now else now_local()
                self.baseline_latched = False
                self.show_permission_alert = False
                self.is_monitoring = True
                self.status_message = "Monitoring all sensors..."
                logger.info("Monitoring started at %s", self.session_start_time.isoformat())
            snapshot = self._snapshot_locked()

        self._publish(snapshot)
        return started

    def stop_monitoring(self):
        """Stop monitoring. Calling it when already stopped is a no-op."""
        with self._lock:
            if not self.is_monitoring:
                return
            self._stop_locked()
            snapshot = self._snapshot_locked()

        self._publish(snapshot)

    def _stop_locked(self):
        self.is_monitoring = False
        self.status_message = "Monitoring stopped"
        self.session_start_time = None
        logger.info(
            "Monitoring stopped - floor: %d, steps: %d, transport: %s",
            self.current_floor, self.total_steps, self.transportation_type.value
        )

    def reset_measurement(self):
        """Stop monitoring and clear all state, history included"""
        with self._lock:
            if self.is_monitoring:
                self._stop_locked()

            self.current_floor = 0
            self.relative_altitude = 0.0
            self.pressure = 0.0
            self.walking_floors = 0
            self.total_steps = 0
            self.starting_altitude = 0.0
            self.baseline_latched = False
            self.current_activity = None
            self.transportation_type = TransportationType.UNKNOWN
            self.activity_type = ActivityType.STATIONARY.value
            self.show_permission_alert = False
            self.history.reset()
            self.status_message = "All data reset"
            logger.info("Measurement reset")
            snapshot = self._snapshot_locked()

        self._publish(snapshot)

    def latch_baseline(self):
        """Use the current altitude as the baseline for floor estimates"""
        with self._lock:
            if not self.is_monitoring:
                return
            self._latch_baseline_locked()
            snapshot = self._snapshot_locked()

        self._publish(snapshot)

    def _latch_baseline_locked(self):
        self.starting_altitude = self.relative_altitude
        self.baseline_latched = True
        self.status_message = "All sensors active"
        logger.info("Baseline set: %.2fm", self.starting_altitude)

    # ==================== SENSOR UPDATES ====================

    def update_altitude(self, sample: AltitudeSample) -> Optional[AltitudeReading]:
        """
        Process an altitude update and record a classified reading.
        Returns None when not monitoring.
        """
        timestamp = to_local(sample.timestamp)

        with self._lock:
            if not self.is_monitoring:
                return None

            # The baseline is the altitude known once the sensors have settled
            settle_time = self.session_start_time + timedelta(seconds=BASELINE_SETTLE_SECONDS)
            if not self.baseline_latched and timestamp >= settle_time:
                self._latch_baseline_locked()

            self.relative_altitude = sample.relative_altitude
            self.pressure = sample.pressure
            self.current_floor = estimate_floor(self.relative_altitude, self.starting_altitude)

            self._analyze_transportation_type()

            reading = AltitudeReading(
                altitude=self.relative_altitude,
                pressure=self.pressure,
                timestamp=timestamp,
                floor=self.current_floor,
                walking_floors=self.walking_floors,
                steps=self.total_steps,
                transport_type=self.transportation_type,
                activity=self.activity_type,
            )
            self.history.append(reading)
            self._update_status_message()

            logger.debug(
                "Altitude update: %.2fm, pressure: %.1fhPa, floor: %d",
                self.relative_altitude, self.pressure, self.current_floor
            )
            snapshot = self._snapshot_locked()

        if self._reading_callback:
            self._reading_callback(reading)
        self._publish(snapshot)
        return reading

    def update_pedometer(self, sample: PedometerSample):
        with self._lock:
            if not self.is_monitoring:
                return
            self.total_steps = sample.steps
            self.walking_floors = sample.walking_floors
            logger.debug(
                "Pedometer update - steps: %d, walking floors: %d (+%d/-%d)",
                self.total_steps, self.walking_floors,
                sample.floors_ascended, sample.floors_descended
            )
            snapshot = self._snapshot_locked()

        self._publish(snapshot)

    def update_activity(self, sample: ActivitySample):
        with self._lock:
            if not self.is_monitoring:
                return
            self.current_activity = sample.activity
            if sample.activity.value != self.activity_type:
                self.activity_type = sample.activity.value
                logger.info("Activity changed: %s", self.activity_type)
            snapshot = self._snapshot_locked()

        self._publish(snapshot)

    def handle_sensor_error(self, error: SensorError):
        """Stop monitoring and report the error in the status message"""
        with self._lock:
            logger.error("Sensor error (code=%s): %s", error.code, error)
            if self.is_monitoring:
                self._stop_locked()

            if isinstance(error, PermissionDeniedError) or error.code == MOTION_NOT_AUTHORIZED:
                self.status_message = "Motion & Fitness permission is required"
                self.show_permission_alert = True
            elif isinstance(error, SensorUnavailableError) or error.code == MOTION_NOT_AVAILABLE:
                self.status_message = "Motion data is not available"
            elif error.code == DEVICE_REQUIRES_MOVEMENT:
                self.status_message = "Please move the device a little"
            elif "not authorized" in str(error).lower():
                self.status_message = "Motion & Fitness permission is required"
                self.show_permission_alert = True
            else:
                self.status_message = "A sensor error occurred"
            snapshot = self._snapshot_locked()

        self._publish(snapshot)

    # ==================== QUERIES ====================

    def snapshot(self) -> DetectorSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def get_statistics(self) -> FloorStatistics:
        with self._lock:
            return self.history.compute_statistics()

    def export_data(self) -> bytes:
        with self._lock:
            return self.history.export_json()

    def import_data(self, payload: bytes) -> bool:
        with self._lock:
            success = self.history.import_json(payload)
            if success:
                self.status_message = f"Data import complete ({len(self.history)} items)"
            else:
                self.status_message = "Data import failed"
            snapshot = self._snapshot_locked()

        self._publish(snapshot)
        return success

    # ==================== INTERNALS ====================

    def _analyze_transportation_type(self):
        old_transport_type = self.transportation_type

        self.transportation_type = classify_transport(
            current_altitude=self.relative_altitude,
            baseline_altitude=self.starting_altitude,
            floor_delta=self.current_floor,
            walking_floor_delta=self.walking_floors,
            current_activity=self.current_activity,
        )

        if old_transport_type != self.transportation_type:
            logger.info(
                "Transport changed: %s -> %s",
                old_transport_type.value, self.transportation_type.value
            )

    def _update_status_message(self):
        relative_from_start = self.relative_altitude - self.starting_altitude
        display = self.transportation_type.display_name

        if abs(relative_from_start) < STATIONARY_ALTITUDE_THRESHOLD:
            self.status_message = f"Base floor ({display})"
            return

        direction = "Up" if relative_from_start > 0 else "Down"
        floors = abs(self.current_floor)
        unit = "floor" if floors == 1 else "floors"
        self.status_message = f"{direction} {floors} {unit} - {display}"

        if self.walking_floors != self.current_floor and self.walking_floors != 0:
            self.status_message += f" (walking: {abs(self.walking_floors)} floors)"

    def _snapshot_locked(self) -> DetectorSnapshot:
        return DetectorSnapshot(
            current_floor=self.current_floor,
            relative_altitude=self.relative_altitude,
            pressure=self.pressure,
            is_monitoring=self.is_monitoring,
            status_message=self.status_message,
            show_permission_alert=self.show_permission_alert,
            transportation_type=self.transportation_type,
            walking_floors=self.walking_floors,
            total_steps=self.total_steps,
            activity_type=self.activity_type,
            altitude_history=self.history.readings,
        )
