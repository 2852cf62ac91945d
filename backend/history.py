"""
Bounded reading history with statistics and JSON export/import
"""

import logging
from collections import Counter, deque
from typing import Deque, List, Union

from pydantic import TypeAdapter, ValidationError

from config import HISTORY_CAPACITY
from models import AltitudeReading, FloorStatistics

logger = logging.getLogger(__name__)

_readings_adapter = TypeAdapter(List[AltitudeReading])


class ReadingHistory:
    """
    Keeps the most recent classified readings, oldest first.
    Once full, appending evicts the oldest reading.
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY):
        self.capacity = capacity
        self._readings: Deque[AltitudeReading] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._readings)

    def append(self, reading: AltitudeReading):
        self._readings.append(reading)

    def reset(self):
        self._readings.clear()

    @property
    def readings(self) -> List[AltitudeReading]:
        """Copy of the history in insertion order"""
        return list(self._readings)

    def compute_statistics(self) -> FloorStatistics:
        """Aggregate the current history. An empty history gives zero defaults."""
        if not self._readings:
            return FloorStatistics.empty()

        readings = self._readings
        first, last = readings[0], readings[-1]
        floors = [r.floor for r in readings]

        transport_counts = Counter(r.transport_type for r in readings)
        # Ties go to the type seen first
        most_used = transport_counts.most_common(1)[0][0]

        return FloorStatistics(
            total_readings=len(readings),
            total_sessions=1,
            max_floor=max(floors),
            min_floor=min(floors),
            total_steps=last.steps,
            total_floors_climbed=sum(f for f in floors if f > 0),
            total_floors_descended=sum(-f for f in floors if f < 0),
            transport_counts=dict(transport_counts),
            available_transport_types=sorted(transport_counts, key=lambda t: t.value),
            most_used_transport_type=most_used,
            total_monitoring_time=(last.timestamp - first.timestamp).total_seconds(),
            average_floor_change=sum(abs(f) for f in floors) / len(floors),
        )

    def export_json(self) -> bytes:
        """Serialize the history as a JSON array of readings"""
        return _readings_adapter.dump_json(list(self._readings), by_alias=True)

    def import_json(self, payload: Union[bytes, str]) -> bool:
        """
        Replace the history with the readings in a JSON payload.
        Returns False and leaves the history untouched if the payload is invalid.
        """
        try:
            imported = _readings_adapter.validate_json(payload)
        except (ValidationError, ValueError) as e:
            logger.warning("Import failed: %s", e)
            return False

        self._readings = deque(imported, maxlen=self.capacity)
        logger.info("Imported %d readings", len(imported))
        return True
