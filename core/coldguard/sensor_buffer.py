"""
Sensor Reading Buffer

Simple in-memory store of the most recent readings pushed by the sensor board.
Readings are transient: only the last ``max_records`` are kept.
"""

import logging
import math
import threading
import time
from collections import deque
from datetime import datetime, timezone
from typing import Any, Optional

from .exceptions import InvalidReadingError
from .models import SensorReading

logger = logging.getLogger(__name__)

# Payload keys accepted for each field, Spanish firmware names first
FIELD_ALIASES = {
    "temperature": ("temperatura", "temperature", "temp"),
    "humidity": ("humedad", "humidity", "hum"),
    "light_level": ("luz", "light", "lightLevel"),
    "voltage": ("voltaje", "voltage"),
}

# Plausible sensor ranges; values outside are stored but logged
PLAUSIBLE_RANGES = {
    "temperature": (-50, 100),
    "humidity": (0, 100),
    "light_level": (0, 4095),
}


def _first_present(payload: dict, keys: tuple[str, ...]) -> Any:
    # A reading of 0 is valid, so only None counts as missing
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def _to_number(field_name: str, value: Any, as_int: bool = False) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidReadingError(f"{field_name} must be numeric, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidReadingError(f"{field_name} must be numeric, got {value!r}") from None
    if not math.isfinite(number):
        raise InvalidReadingError(f"{field_name} must be finite, got {value!r}")
    return int(number) if as_int else number


def parse_reading(payload: Any, timestamp: Optional[str] = None) -> SensorReading:
    """Build a reading from a board payload.

    Args:
        payload: Decoded JSON object
        timestamp: ISO timestamp to keep (server time now if omitted)

    Raises:
        InvalidReadingError: If the payload has no usable sensor values
    """
    if not isinstance(payload, dict) or not payload:
        raise InvalidReadingError("empty or invalid body")

    raw = {name: _first_present(payload, keys) for name, keys in FIELD_ALIASES.items()}
    if raw["temperature"] is None and raw["humidity"] is None and raw["light_level"] is None:
        raise InvalidReadingError(
            "no valid sensor data found "
            "(expected temperatura/temperature, humedad/humidity, luz/light)"
        )

    return SensorReading(
        id=str(time.time_ns()),
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        temperature=_to_number("temperature", raw["temperature"]),
        humidity=_to_number("humidity", raw["humidity"]),
        light_level=_to_number("light_level", raw["light_level"], as_int=True),
        voltage=_to_number("voltage", raw["voltage"]),
    )


class SensorBuffer:
    """Tracks the most recent sensor readings, newest first."""

    def __init__(self, max_records: int = 500):
        """Initialize buffer.

        Args:
            max_records: How many readings to keep
        """
        self.max_records = max_records
        self.readings: deque[SensorReading] = deque(maxlen=max_records)
        self.lock = threading.Lock()

    def ingest(self, payload: Any) -> SensorReading:
        """Parse and store a reading posted by the board.

        Args:
            payload: Decoded JSON body

        Returns:
            The stored reading

        Raises:
            InvalidReadingError: If the payload has no usable sensor values
        """
        reading = parse_reading(payload)

        for name, (low, high) in PLAUSIBLE_RANGES.items():
            value = getattr(reading, name)
            if value is not None and not low <= value <= high:
                logger.warning(f"{name} out of range: {value}")

        with self.lock:
            self.readings.appendleft(reading)

        logger.debug(f"Stored reading {reading.id}: {reading.to_dict()}")
        return reading

    def latest(self) -> Optional[SensorReading]:
        with self.lock:
            return self.readings[0] if self.readings else None

    def latest_temperature(self) -> Optional[float]:
        """Temperature of the newest reading that carries one."""
        with self.lock:
            for reading in self.readings:
                if reading.temperature is not None:
                    return reading.temperature
        return None

    def recent(self, limit: Optional[int] = None) -> list[SensorReading]:
        """Readings newest first.

        Args:
            limit: How many readings (None = all available)
        """
        with self.lock:
            readings = list(self.readings)
        return readings[:limit] if limit is not None else readings

    def count(self) -> int:
        with self.lock:
            return len(self.readings)

    def clear(self):
        with self.lock:
            self.readings.clear()

    def stats(self) -> dict:
        """Summary of the buffered readings."""
        readings = self.recent()

        def value_range(name: str) -> dict:
            values = [getattr(r, name) for r in readings if getattr(r, name) is not None]
            if not values:
                return {"min": None, "max": None}
            return {"min": min(values), "max": max(values)}

        return {
            "totalRecords": len(readings),
            "latestRecord": readings[0].to_dict() if readings else None,
            "oldestRecord": readings[-1].to_dict() if readings else None,
            "dataRange": {
                "temperature": value_range("temperature"),
                "humidity": value_range("humidity"),
                "light": value_range("light_level"),
            },
            "serverTime": datetime.now(timezone.utc).isoformat(),
        }
