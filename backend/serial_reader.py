"""
Serial port reader for live sensor bridge data
"""

import logging
import serial
import threading
import time
from datetime import datetime
from typing import Optional, Union

from config import SERIAL_PORT, BAUD_RATE
from errors import MOTION_NOT_AUTHORIZED, PermissionDeniedError, SensorError, SensorUnavailableError
from floor_detector import FloorDetector
from models import ActivitySample, ActivityType, AltitudeSample, PedometerSample

logger = logging.getLogger(__name__)

SensorFrame = Union[AltitudeSample, PedometerSample, ActivitySample, SensorError]


def parse_frame(line: str) -> Optional[SensorFrame]:
    """
    Parse a CSV line from the sensor bridge.
    Expected formats:
        ALT,<timestamp>,<relative_altitude_m>,<pressure_kpa>
        PED,<timestamp>,<steps>,<floors_ascended>,<floors_descended>
        ACT,<timestamp>,<activity>
        ERR,<code>,<message>
    Example: ALT,2025-09-15T14:30:15+09:00,3.12,101.32
    Returns None for header, blank or malformed lines.
    """
    parts = [p.strip() for p in line.strip().split(",")]
    kind = parts[0].upper()

    try:
        if kind == "ALT" and len(parts) == 4:
            return AltitudeSample(
                timestamp=datetime.fromisoformat(parts[1]),
                relative_altitude=float(parts[2]),
                pressure=float(parts[3]) * 10,  # kPa -> hPa
            )

        if kind == "PED" and len(parts) == 5:
            return PedometerSample(
                timestamp=datetime.fromisoformat(parts[1]),
                steps=int(parts[2]),
                floors_ascended=int(parts[3]),
                floors_descended=int(parts[4]),
            )

        if kind == "ACT" and len(parts) == 3:
            return ActivitySample(
                timestamp=datetime.fromisoformat(parts[1]),
                activity=ActivityType(parts[2].lower()),
            )

        if kind == "ERR" and len(parts) >= 3:
            code = int(parts[1])
            message = ",".join(parts[2:])
            if code == MOTION_NOT_AUTHORIZED:
                return PermissionDeniedError(message, code)
            return SensorError(message, code)

    except (ValueError, IndexError):
        # Invalid line format - skip it
        return None

    return None


class SerialReader:
    """
    Reads sensor frames from the sensor bridge via serial port.
    Runs in a separate thread and feeds every frame into the floor detector.
    """

    def __init__(self, detector: FloorDetector, port: str = SERIAL_PORT, baud_rate: int = BAUD_RATE):
        self.detector = detector
        self.port = port
        self.baud_rate = baud_rate
        self.serial_connection: Optional[serial.Serial] = None
        self.is_running = False
        self.read_thread: Optional[threading.Thread] = None
        self.frames_received = 0

    def connect(self) -> bool:
        """
        Establish connection to the serial port.
        Returns True if successful, False otherwise.
        """
        try:
            self.serial_connection = serial.Serial(
                port=self.port,
                baudrate=self.baud_rate,
                timeout=1
            )
            logger.info("Connected to %s at %d baud", self.port, self.baud_rate)

            # Clear any startup messages
            self.serial_connection.reset_input_buffer()

            return True

        except serial.SerialException as e:
            logger.error("Error connecting to %s: %s", self.port, e)
            return False

    def disconnect(self):
        """Close the serial connection"""
        if self.serial_connection and self.serial_connection.is_open:
            self.serial_connection.close()
            logger.info("Disconnected from %s", self.port)

    def ensure_available(self):
        """Raise SensorUnavailableError if the sensor bridge cannot be reached"""
        if self.serial_connection and self.serial_connection.is_open:
            return
        if not self.connect():
            raise SensorUnavailableError(f"no sensor bridge on {self.port}")

    def dispatch(self, frame: SensorFrame):
        """Route a parsed frame to the matching detector channel"""
        self.frames_received += 1

        if isinstance(frame, AltitudeSample):
            self.detector.update_altitude(frame)
        elif isinstance(frame, PedometerSample):
            self.detector.update_pedometer(frame)
        elif isinstance(frame, ActivitySample):
            self.detector.update_activity(frame)
        elif isinstance(frame, SensorError):
            self.detector.handle_sensor_error(frame)

    def _read_loop(self):
        """Main reading loop - runs in separate thread"""
        logger.info("Serial reading started")

        while self.is_running:
            try:
                if self.serial_connection and self.serial_connection.in_waiting > 0:
                    line = self.serial_connection.readline().decode('utf-8', errors='ignore')

                    frame = parse_frame(line)
                    if frame is not None:
                        self.dispatch(frame)

                else:
                    # Small delay to prevent busy waiting
                    time.sleep(0.05)

            except serial.SerialException as e:
                logger.error("Error reading from serial: %s", e)
                time.sleep(0.5)

        logger.info("Serial reading stopped")

    def start_reading(self):
        """Start the background reading thread"""
        if self.is_running:
            logger.info("Already reading")
            return

        if not self.serial_connection or not self.serial_connection.is_open:
            if not self.connect():
                logger.warning("Failed to connect. Cannot start reading.")
                return

        self.is_running = True
        self.read_thread = threading.Thread(target=self._read_loop, daemon=True)
        self.read_thread.start()

    def stop_reading(self):
        """Stop the background reading thread"""
        self.is_running = False

        if self.read_thread:
            self.read_thread.join(timeout=2)

        self.disconnect()


if __name__ == "__main__":
    # Test the serial reader
    logging.basicConfig(level=logging.INFO)
    detector = FloorDetector()

    def on_snapshot(snapshot):
        print(f"Floor: {snapshot.current_floor} | Altitude: {snapshot.relative_altitude:.2f}m | "
              f"Transport: {snapshot.transportation_type.value} | Steps: {snapshot.total_steps}")

    detector.subscribe(on_snapshot)
    reader = SerialReader(detector)

    if reader.connect():
        detector.start_monitoring()
        reader.start_reading()

        try:
            print("Reading from serial port. Press Ctrl+C to stop...")
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            print("\nStopping...")
        finally:
            detector.stop_monitoring()
            reader.stop_reading()
