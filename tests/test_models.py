"""
Tests for SignalState and SensorReading.

Tests cover:
- LED invariant: at most one LED on, LEDs always match the status
- Serialization: record keys, legacy keys, device payload
- Error scenarios: malformed records
"""

from datetime import datetime, timezone

import pytest

from core.coldguard.models import LED_PATTERNS, SensorReading, SignalState, SignalStatus


class TestSignalState:
    """Test suite for SignalState."""

    # ==================== LED Invariant ====================

    @pytest.mark.parametrize("status", list(SignalStatus))
    def test_for_status_follows_pattern(self, status):
        state = SignalState.for_status(status)
        assert (state.green_on, state.yellow_on, state.red_on) == LED_PATTERNS[status]

    def test_two_leds_rejected(self):
        """Error scenario: two LEDs on at once is never representable."""
        with pytest.raises(ValueError):
            SignalState(green_on=True, yellow_on=True, red_on=False, status=SignalStatus.OPTIMAL)

    def test_mismatched_led_rejected(self):
        """Error scenario: red LED with an OPTIMAL status."""
        with pytest.raises(ValueError):
            SignalState(green_on=False, yellow_on=False, red_on=True, status=SignalStatus.OPTIMAL)

    def test_too_cold_lights_yellow(self):
        state = SignalState.for_status(SignalStatus.TOO_COLD)
        assert state.led_flags() == {"green": 0, "yellow": 1, "red": 0}

    def test_unknown_is_all_off(self):
        state = SignalState.unknown()
        assert state.status is SignalStatus.UNKNOWN
        assert state.category is None
        assert state.led_flags() == {"green": 0, "yellow": 0, "red": 0}

    def test_status_string_is_coerced(self):
        state = SignalState(green_on=True, yellow_on=False, red_on=False, status="OPTIMAL")
        assert state.status is SignalStatus.OPTIMAL

    # ==================== Serialization ====================

    def test_to_dict_keys(self):
        stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        state = SignalState.for_status(SignalStatus.WARNING, "quesos_duros", 10.0, stamp)
        assert state.to_dict() == {
            "greenOn": False,
            "yellowOn": True,
            "redOn": False,
            "status": "WARNING",
            "category": "quesos_duros",
            "temperature": 10.0,
            "lastUpdate": "2024-05-01T12:00:00+00:00",
        }

    def test_from_dict_restores_state(self):
        state = SignalState.for_status(SignalStatus.CRITICAL, "pescado", -6.0)
        assert SignalState.from_dict(state.to_dict()) == state

    def test_from_dict_legacy_keys(self):
        """Records written by the old dashboard use green/yellow/red and foodType."""
        state = SignalState.from_dict({
            "green": True, "yellow": False, "red": False,
            "status": "OPTIMAL", "foodType": "carnes",
            "lastUpdate": "2024-05-01T12:00:00.000Z",
        })
        assert state.green_on is True
        assert state.category == "carnes"
        assert state.last_update.tzinfo is not None

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(ValueError):
            SignalState.from_dict(["OPTIMAL"])

    def test_from_dict_rejects_unknown_status(self):
        with pytest.raises(ValueError):
            SignalState.from_dict({"status": "PURPLE"})

    def test_device_payload_is_flat(self):
        state = SignalState.for_status(SignalStatus.OPTIMAL, "carnes", 2.0)
        payload = state.to_device_payload()
        assert payload["green"] == 1 and payload["yellow"] == 0 and payload["red"] == 0
        assert payload["status"] == "OPTIMAL"
        assert not any(isinstance(v, (dict, list)) for v in payload.values())


class TestSensorReading:
    """Test suite for SensorReading."""

    def test_to_dict_uses_light_level_key(self):
        reading = SensorReading(id="1", timestamp="t", temperature=3.5, light_level=1200)
        data = reading.to_dict()
        assert data["lightLevel"] == 1200
        assert data["humidity"] is None
