"""
ColdGuard Data Models

SignalState is the single persisted record handed from the classifier to the
polling device. SensorReading is one sample pushed by the sensor board.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class SignalStatus(str, Enum):
    """Externally visible classification of the storage unit."""

    OPTIMAL = "OPTIMAL"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    TOO_COLD = "TOO_COLD"
    UNKNOWN = "UNKNOWN"
    ERROR = "ERROR"  # Device read fault only, never persisted


# status -> (green, yellow, red)
LED_PATTERNS: dict[SignalStatus, tuple[bool, bool, bool]] = {
    SignalStatus.OPTIMAL: (True, False, False),
    SignalStatus.WARNING: (False, True, False),
    SignalStatus.TOO_COLD: (False, True, False),
    SignalStatus.CRITICAL: (False, False, True),
    SignalStatus.UNKNOWN: (False, False, False),
    SignalStatus.ERROR: (False, False, False),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    return utc_now()


@dataclass(frozen=True)
class SignalState:
    """Latest traffic-light decision for the storage unit.

    The LED triple is always the one-hot projection of ``status``; a
    mismatching combination is rejected at construction.
    """

    green_on: bool
    yellow_on: bool
    red_on: bool
    status: SignalStatus
    category: Optional[str] = None
    temperature: Optional[float] = None
    last_update: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        status = SignalStatus(self.status)
        object.__setattr__(self, "status", status)

        leds = (bool(self.green_on), bool(self.yellow_on), bool(self.red_on))
        if sum(leds) > 1:
            raise ValueError(f"At most one LED may be on, got {leds}")
        if leds != LED_PATTERNS[status]:
            raise ValueError(f"LEDs {leds} do not match status {status.value}")

    @classmethod
    def unknown(cls) -> "SignalState":
        """All-off state used before any category has been selected."""
        return cls.for_status(SignalStatus.UNKNOWN)

    @classmethod
    def for_status(
        cls,
        status: SignalStatus,
        category: Optional[str] = None,
        temperature: Optional[float] = None,
        last_update: Optional[datetime] = None,
    ) -> "SignalState":
        """Build a state whose LEDs follow from the status."""
        green, yellow, red = LED_PATTERNS[SignalStatus(status)]
        return cls(
            green_on=green,
            yellow_on=yellow,
            red_on=red,
            status=status,
            category=category,
            temperature=temperature,
            last_update=last_update or utc_now(),
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready record, as persisted and returned to the dashboard."""
        return {
            "greenOn": self.green_on,
            "yellowOn": self.yellow_on,
            "redOn": self.red_on,
            "status": self.status.value,
            "category": self.category,
            "temperature": self.temperature,
            "lastUpdate": self.last_update.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SignalState":
        """Rebuild a state from its record.

        Also accepts the legacy dashboard keys (green/yellow/red/foodType).

        Raises:
            ValueError: If the record is malformed or violates the LED invariant
        """
        if not isinstance(data, dict):
            raise ValueError(f"Signal record must be an object, got {type(data).__name__}")

        temperature = data.get("temperature")
        return cls(
            green_on=bool(data.get("greenOn", data.get("green", False))),
            yellow_on=bool(data.get("yellowOn", data.get("yellow", False))),
            red_on=bool(data.get("redOn", data.get("red", False))),
            status=SignalStatus(data.get("status", SignalStatus.UNKNOWN.value)),
            category=data.get("category", data.get("foodType")),
            temperature=float(temperature) if temperature is not None else None,
            last_update=_parse_timestamp(data.get("lastUpdate")),
        )

    def led_flags(self) -> dict[str, int]:
        """LED states as 0/1 integers."""
        return {
            "green": int(self.green_on),
            "yellow": int(self.yellow_on),
            "red": int(self.red_on),
        }

    def to_device_payload(self) -> dict[str, Any]:
        """Flat payload for the polling device (no nested objects)."""
        return {
            **self.led_flags(),
            "status": self.status.value,
            "lastUpdate": self.last_update.isoformat(),
            "category": self.category,
            "temperature": self.temperature,
        }


@dataclass
class SensorReading:
    """A single sample pushed by the sensor board."""

    id: str
    timestamp: str  # ISO format, server time
    temperature: Optional[float] = None  # °C
    humidity: Optional[float] = None  # %
    light_level: Optional[int] = None  # Raw ADC, 0-4095
    voltage: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "temperature": self.temperature,
            "humidity": self.humidity,
            "lightLevel": self.light_level,
            "voltage": self.voltage,
            "timestamp": self.timestamp,
        }
