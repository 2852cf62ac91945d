"""
Configuration settings for the Floor Tracker
"""

# Serial port configuration (sensor bridge)
SERIAL_PORT = "/dev/ttyUSB0"
BAUD_RATE = 115200

# Floor estimation
AVERAGE_FLOOR_HEIGHT = 3.0  # meters per floor
SIGNIFICANT_ALTITUDE_CHANGE = 1.0  # meters

# Transport classification thresholds
STATIONARY_ALTITUDE_THRESHOLD = 0.5  # meters - barometer noise floor
FLOOR_AGREEMENT_TOLERANCE = 1  # floors - barometer vs. pedometer

# Session settings
HISTORY_CAPACITY = 100  # Number of readings kept in memory
BASELINE_SETTLE_SECONDS = 3.0  # Let sensors settle before latching the baseline

# Refuse to start monitoring when the serial sensor bridge is unreachable
REQUIRE_SENSOR_BRIDGE = False

# Timezone used for display and for naive timestamps
LOCAL_TIMEZONE = "Asia/Seoul"

# Logging
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Database - SQLite archive of classified readings
DATABASE_URL = "sqlite:///./floor_tracker.db"

# API settings
API_HOST = "0.0.0.0"
API_PORT = 8000
