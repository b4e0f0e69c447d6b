"""
Tests for SignalController.

Tests cover:
- Equivalence classes: one selection per status
- Error scenarios: missing category, unknown category, missing temperature
- Idempotence and last-write-wins
- Device read: flat payload and the ERROR fallback
"""

from unittest.mock import Mock

import pytest

from core.coldguard.exceptions import (
    InvalidInputError,
    MissingTemperatureError,
    StorageError,
    UnknownCategoryError,
)
from core.coldguard.kv_client import KVClient
from core.coldguard.models import SignalStatus
from core.coldguard.signal_controller import SignalController, parse_temperature
from core.coldguard.state_store import DurableStateStore, StateStore


class TestParseTemperature:
    """Test suite for parse_temperature()."""

    @pytest.mark.parametrize("value, expected", [(4, 4.0), (-2.5, -2.5), ("7.01", 7.01), (0, 0.0)])
    def test_numeric_values(self, value, expected):
        assert parse_temperature(value) == expected

    @pytest.mark.parametrize("value", [None, "", "warm", True, float("nan"), float("inf"), [], {}])
    def test_rejected_values(self, value):
        """Error scenario: absent, non-numeric, boolean or non-finite input."""
        with pytest.raises(MissingTemperatureError):
            parse_temperature(value)


class TestSelect:
    """Test suite for SignalController.select()."""

    # ==================== Equivalence Classes ====================

    def test_optimal_lights_green(self, controller):
        state = controller.select("carnes", 2)
        assert state.status is SignalStatus.OPTIMAL
        assert (state.green_on, state.yellow_on, state.red_on) == (True, False, False)

    def test_hard_cheese_warning(self, controller):
        """quesos_duros at 10°C → WARNING, yellow only."""
        state = controller.select("quesos_duros", 10)
        assert state.status is SignalStatus.WARNING
        assert (state.green_on, state.yellow_on, state.red_on) == (False, True, False)
        assert state.category == "quesos_duros"
        assert state.temperature == 10.0

    def test_fish_far_below_band_critical(self, controller):
        """pescado at -6°C → CRITICAL, red only."""
        state = controller.select("pescado", -6)
        assert state.status is SignalStatus.CRITICAL
        assert (state.green_on, state.yellow_on, state.red_on) == (False, False, True)

    def test_too_cold_lights_yellow(self, controller):
        state = controller.select("pescado", -3)
        assert state.status is SignalStatus.TOO_COLD
        assert state.yellow_on and not state.green_on and not state.red_on

    def test_select_persists(self, controller, memory_store):
        state = controller.select("pollo", 1)
        assert memory_store.read() == state
        assert controller.current() == state

    # ==================== Error Scenarios ====================

    def test_unknown_category_leaves_state_unchanged(self, controller):
        """Error scenario: unicorn_meat is rejected and nothing is written."""
        before = controller.select("carnes", 2)
        with pytest.raises(UnknownCategoryError):
            controller.select("unicorn_meat", 2)
        assert controller.current() == before

    @pytest.mark.parametrize("category", [None, ""])
    def test_missing_category(self, controller, category):
        with pytest.raises(InvalidInputError, match="category required"):
            controller.select(category, 2)

    def test_missing_temperature_leaves_state_unchanged(self, controller):
        before = controller.current()
        with pytest.raises(MissingTemperatureError):
            controller.select("carnes", None)
        assert controller.current() == before

    def test_current_after_failed_durable_write(self):
        """Error scenario: KV write fails, current() returns the new state, not the older KV record."""
        kv_client = Mock(spec=KVClient)
        kv_client.get_json.return_value = {
            "greenOn": True, "yellowOn": False, "redOn": False,
            "status": "OPTIMAL", "category": "carnes", "temperature": 2.0,
        }
        kv_client.set_json.side_effect = StorageError("timeout")
        controller = SignalController(DurableStateStore(kv_client, "test:signal"))

        state = controller.select("carnes", 9)

        assert state.status is SignalStatus.CRITICAL
        assert controller.current() == state

    # ==================== Idempotence ====================

    def test_repeated_select_same_outcome(self, controller):
        first = controller.select("lacteos", 3)
        second = controller.select("lacteos", 3)
        assert first.status is second.status
        assert first.led_flags() == second.led_flags()
        assert second.last_update >= first.last_update

    def test_last_write_wins(self, controller):
        controller.select("carnes", 2)
        controller.select("carnes", 9)
        assert controller.current().status is SignalStatus.CRITICAL


class TestDeviceRead:
    """Test suite for SignalController.current_for_device()."""

    def test_before_any_selection(self, controller):
        payload = controller.current_for_device()
        assert payload["status"] == "UNKNOWN"
        assert (payload["green"], payload["yellow"], payload["red"]) == (0, 0, 0)

    def test_after_selection(self, controller):
        controller.select("carnes", 5)
        payload = controller.current_for_device()
        assert (payload["green"], payload["yellow"], payload["red"]) == (0, 1, 0)
        assert payload["category"] == "carnes"

    def test_store_fault_yields_error_payload(self):
        """Error scenario: any read fault becomes the all-off ERROR payload."""
        store = Mock(spec=StateStore)
        store.read.side_effect = RuntimeError("boom")
        payload = SignalController(store).current_for_device()

        assert set(payload) == {"green", "yellow", "red", "status", "lastUpdate"}
        assert (payload["green"], payload["yellow"], payload["red"]) == (0, 0, 0)
        assert payload["status"] == "ERROR"

    def test_unreachable_kv_still_answers(self):
        """Error scenario: KV down for every call, the device still gets a well-formed payload."""
        kv_client = Mock(spec=KVClient)
        kv_client.get_json.side_effect = StorageError("connection refused")
        kv_client.set_json.side_effect = StorageError("connection refused")
        controller = SignalController(DurableStateStore(kv_client, "test:signal"))

        payload = controller.current_for_device()
        assert payload["status"] == "UNKNOWN"
        assert {payload["green"], payload["yellow"], payload["red"]} == {0}

        controller.select("quesos_duros", 10)
        payload = controller.current_for_device()
        assert set(payload) == {"green", "yellow", "red", "status", "lastUpdate", "category", "temperature"}
        assert (payload["green"], payload["yellow"], payload["red"]) == (0, 1, 0)
        assert payload["status"] == "WARNING"

    def test_profile_ranges(self):
        assert SignalController.profile_ranges("pescado") == {"optimal": "-2°C to 0°C", "critical": ">2°C"}
