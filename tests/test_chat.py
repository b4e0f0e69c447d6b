"""
Tests for the chat assistant.

Tests cover:
- Intent classification: Spanish and English keywords, order of precedence
- Handlers: food selection, signal status, temperature statistics, LLM answers
- Error scenarios: empty messages, LLM unavailable
"""

import pytest

from core.coldguard.chat import (
    LLM_UNAVAILABLE_TEXT,
    ChatAssistant,
    Intent,
    analyze_trend,
    classify_intent,
    evaluate_storage_band,
    temperature_alerts,
    temperature_recommendations,
)
from core.coldguard.exceptions import InvalidInputError, LLMError
from core.coldguard.models import SignalStatus
from core.coldguard.settings import Settings


class TestClassifyIntent:
    """Test suite for classify_intent()."""

    @pytest.mark.parametrize("message, expected", [
        ("Quiero monitorear pollo", Intent.FOOD_SELECTION),
        ("Estado de los LEDs", Intent.LED_STATUS),
        ("¿Por qué está encendida la luz roja?", Intent.LED_STATUS),
        ("What is the temperature trend?", Intent.TEMPERATURE_ANALYSIS),
        ("¿Hace mucho frío?", Intent.TEMPERATURE_ANALYSIS),
        ("Is it safe to eat?", Intent.FOOD_SAFETY),
        ("Show the system settings", Intent.SYSTEM_CONFIG),
        ("hello there", Intent.GENERAL),
    ])
    def test_intents(self, message, expected):
        assert classify_intent(message) is expected

    def test_food_selection_wins_over_temperature(self):
        """Order of precedence: food keywords are checked first."""
        assert classify_intent("temperature for chicken") is Intent.FOOD_SELECTION

    def test_whole_words_only(self):
        """'red' must not match inside 'reduce'."""
        assert classify_intent("how do I reduce costs") is Intent.GENERAL


class TestTemperatureHelpers:
    """Test suite for the temperature statistics helpers."""

    @pytest.mark.parametrize("temperature, expected", [
        (-6, "Freezing"), (-1, "Very cold"), (2, "Optimal"), (6, "Marginal"), (8, "Risk"),
    ])
    def test_storage_band(self, temperature, expected):
        assert evaluate_storage_band(temperature).startswith(expected)

    def test_trend_insufficient(self):
        assert analyze_trend([1, 2]).startswith("Not enough")

    def test_trend_stable(self):
        """Boundary: a 0.4°C difference is still stable."""
        assert analyze_trend([2.4, 2.4, 2.4, 2.0, 2.0, 2.0]) == "Stable"

    def test_trend_rising(self):
        assert analyze_trend([5, 5, 5, 2, 2, 2]) == "Rising by 3.0°C"

    def test_trend_falling(self):
        assert analyze_trend([1, 1, 1, 4, 4, 4]) == "Falling by 3.0°C"

    def test_recommendations(self):
        assert len(temperature_recommendations(9, 9)) == 2
        assert temperature_recommendations(2, 2) == []
        assert temperature_recommendations(2, 5) == ["Investigate temperature fluctuations"]

    def test_alerts(self):
        assert len(temperature_alerts(11, 11)) == 2
        assert temperature_alerts(2, 8) == []
        assert temperature_alerts(-11, 0)[0].startswith("ATTENTION")


class TestChatAssistant:
    """Test suite for ChatAssistant.respond()."""

    @pytest.fixture
    def assistant(self, controller, buffer, llm):
        return ChatAssistant(controller, buffer, llm, Settings())

    def test_response_shape(self, assistant):
        result = assistant.respond("Estado de los LEDs")
        assert set(result) == {"response", "intent", "actionData", "timestamp"}
        assert result["intent"] == "led_status"

    def test_food_selection_sets_signal(self, assistant, buffer, controller):
        buffer.ingest({"temperatura": 10})
        result = assistant.respond("monitor hard cheese")

        assert result["intent"] == "food_selection"
        assert result["actionData"]["selectedCategory"] == "quesos_duros"
        assert result["actionData"]["status"] == "WARNING"
        assert controller.current().category == "quesos_duros"

    def test_food_selection_without_reading(self, assistant, controller):
        result = assistant.respond("Seleccionar pescado")
        assert result["actionData"]["status"] == "UNKNOWN"
        assert controller.current().status is SignalStatus.UNKNOWN

    def test_food_selection_lists_options(self, assistant):
        result = assistant.respond("I want to monitor something")
        assert result["actionData"] is None
        assert "Available profiles" in result["response"]

    def test_led_status_reports_state(self, assistant, controller):
        controller.select("carnes", 2)
        result = assistant.respond("which led is on?")
        assert "Green: ON" in result["response"]
        assert result["actionData"]["state"]["status"] == "OPTIMAL"

    def test_temperature_analysis_no_data(self, assistant):
        result = assistant.respond("temperature report")
        assert "No temperature data" in result["response"]
        assert result["actionData"] is None

    def test_temperature_analysis(self, assistant, buffer):
        for value in (2, 2, 2, 9):
            buffer.ingest({"temperature": value})
        result = assistant.respond("temperature report")

        data = result["actionData"]
        assert data["current"] == 9
        assert data["max"] == 9
        assert data["count"] == 4
        assert "high temperatures were recorded" in result["response"]

    def test_food_safety_uses_llm(self, assistant, llm):
        llm.generate_text.return_value = "Keep it below 4°C."
        result = assistant.respond("Is it safe to eat?")
        assert result["response"] == "Keep it below 4°C."
        kwargs = llm.generate_text.call_args.kwargs
        assert (kwargs["temperature"], kwargs["max_tokens"]) == (0.3, 600)

    def test_general_uses_llm(self, assistant, llm):
        llm.generate_text.return_value = "Hi!"
        assert assistant.respond("hello")["response"] == "Hi!"
        kwargs = llm.generate_text.call_args.kwargs
        assert (kwargs["temperature"], kwargs["max_tokens"]) == (0.5, 400)

    def test_system_config(self, assistant):
        response = assistant.respond("Show the system settings")["response"]
        assert "every 3s" in response
        assert "500 records" in response

    # ==================== Error Scenarios ====================

    def test_llm_unavailable(self, assistant, llm):
        llm.generate_text.side_effect = LLMError("disabled")
        assert assistant.respond("hello")["response"] == LLM_UNAVAILABLE_TEXT

    @pytest.mark.parametrize("message", [None, "", "   ", 42])
    def test_empty_message(self, assistant, message):
        with pytest.raises(InvalidInputError):
            assistant.respond(message)
