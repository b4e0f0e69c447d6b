"""
Chat assistant.

Routes a free-text message to a handler by keyword intent. Food selection,
signal status, temperature statistics and system info are answered from local
state; food safety and general questions go to the LLM.
"""

import logging
import re
from enum import Enum
from statistics import mean
from typing import Any, Callable, Optional

from . import food_profiles
from .exceptions import InvalidInputError, LLMError
from .llm_client import LLMClient
from .models import SignalStatus, utc_now
from .sensor_buffer import SensorBuffer
from .settings import Settings
from .signal_controller import SignalController

logger = logging.getLogger(__name__)

LLM_UNAVAILABLE_TEXT = (
    "Sorry, the assistant cannot answer that right now. "
    "Current readings are still available under /api/sensor-data."
)


class Intent(str, Enum):
    FOOD_SELECTION = "food_selection"
    LED_STATUS = "led_status"
    TEMPERATURE_ANALYSIS = "temperature_analysis"
    FOOD_SAFETY = "food_safety"
    SYSTEM_CONFIG = "system_config"
    GENERAL = "general"


# Checked in order, first match wins
INTENT_KEYWORDS: list[tuple[Intent, tuple[str, ...]]] = [
    (Intent.FOOD_SELECTION, (
        "seleccionar", "elegir", "monitorear", "alimento",
        "carne", "pollo", "pescado", "lácteo", "queso", "embutido", "verdura", "fruta",
        "select", "choose", "monitor",
        "meat", "chicken", "fish", "dairy", "cheese", "vegetable", "fruit",
    )),
    (Intent.LED_STATUS, (
        "led", "luz", "verde", "amarillo", "rojo", "alerta",
        "light", "green", "yellow", "red", "signal", "alert",
    )),
    (Intent.TEMPERATURE_ANALYSIS, (
        "temperatura", "frío", "caliente", "grado",
        "temperature", "cold", "hot", "warm", "degree",
    )),
    (Intent.FOOD_SAFETY, (
        "seguridad", "conservación", "deterioro", "vida útil",
        "safety", "safe", "spoil", "spoilage", "preservation", "shelf life",
    )),
    (Intent.SYSTEM_CONFIG, (
        "configurar", "ajustar", "cambiar", "sistema",
        "configure", "config", "settings", "system",
    )),
]


def _has_keyword(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}(?:s|es)?\b", text) is not None


def classify_intent(message: str) -> Intent:
    """Pick the intent of a chat message from its keywords."""
    lowered = message.lower()
    for intent, keywords in INTENT_KEYWORDS:
        if any(_has_keyword(lowered, k) for k in keywords):
            return intent
    return Intent.GENERAL


def evaluate_storage_band(temperature: float) -> str:
    """Generic cold-storage band, independent of any food profile."""
    if temperature < -5:
        return "Freezing: suitable for long-term storage"
    if temperature < 0:
        return "Very cold: good for meat and fish"
    if temperature < 4:
        return "Optimal refrigeration for most foods"
    if temperature < 8:
        return "Marginal refrigeration, monitor closely"
    return "Risk temperature, act immediately"


def analyze_trend(temperatures: list[float]) -> str:
    """Compare the newest three samples with the oldest three.

    Args:
        temperatures: Samples, newest first
    """
    if len(temperatures) < 3:
        return "Not enough data to determine a trend"

    diff = mean(temperatures[:3]) - mean(temperatures[-3:])
    if abs(diff) < 0.5:
        return "Stable"
    if diff > 0:
        return f"Rising by {diff:.1f}°C"
    return f"Falling by {abs(diff):.1f}°C"


def temperature_recommendations(current: float, average: float) -> list[str]:
    recommendations = []
    if current > 8:
        recommendations.append("Check the refrigeration system immediately")
    if current > 4:
        recommendations.append("Watch perishable food closely")
    if current < -3:
        recommendations.append("Make sure nothing is freezing unintentionally")
    if abs(current - average) > 2:
        recommendations.append("Investigate temperature fluctuations")
    return recommendations


def temperature_alerts(current: float, maximum: float) -> list[str]:
    alerts = []
    if current > 10:
        alerts.append("CRITICAL: temperature very high, risk of spoilage")
    if maximum > 8:
        alerts.append("WARNING: high temperatures were recorded")
    if current < -10:
        alerts.append("ATTENTION: temperature very low, possible freezing")
    return alerts


def _bullets(lines: list[str], empty: str) -> str:
    return "\n".join(f"- {line}" for line in lines) if lines else f"- {empty}"


class ChatAssistant:
    """Answers chat messages about the storage unit."""

    def __init__(
        self,
        controller: SignalController,
        buffer: SensorBuffer,
        llm: LLMClient,
        settings: Optional[Settings] = None
    ):
        self.controller = controller
        self.buffer = buffer
        self.llm = llm
        self.settings = settings or Settings()

        self.handlers: dict[Intent, Callable[[str], tuple[str, Optional[dict]]]] = {
            Intent.FOOD_SELECTION: self._handle_food_selection,
            Intent.LED_STATUS: self._handle_led_status,
            Intent.TEMPERATURE_ANALYSIS: self._handle_temperature_analysis,
            Intent.FOOD_SAFETY: self._handle_food_safety,
            Intent.SYSTEM_CONFIG: self._handle_system_config,
            Intent.GENERAL: self._handle_general,
        }

    def respond(self, message: Any) -> dict:
        """Answer one chat message.

        Returns:
            Dict with response text, intent, optional action data and timestamp

        Raises:
            InvalidInputError: If the message is empty
        """
        if not isinstance(message, str) or not message.strip():
            raise InvalidInputError("message required")

        intent = classify_intent(message)
        logger.info(f"Chat message routed to {intent.value}")
        response, action_data = self.handlers[intent](message)

        return {
            "response": response,
            "intent": intent.value,
            "actionData": action_data,
            "timestamp": utc_now().isoformat(),
        }

    def _conditions(self) -> str:
        latest = self.buffer.latest()
        temperature = f"{latest.temperature:g}°C" if latest and latest.temperature is not None else "N/A"
        humidity = f"{latest.humidity:g}%" if latest and latest.humidity is not None else "N/A"
        return (
            f"- Current temperature: {temperature}\n"
            f"- Current humidity: {humidity}\n"
            f"- Readings on record: {self.buffer.count()}"
        )

    def _handle_food_selection(self, message: str) -> tuple[str, Optional[dict]]:
        profile = food_profiles.find_profile_in_text(message)
        if profile is None:
            options = "\n".join(
                f"- {p.name} ({p.category}): {p.ranges()['optimal']}"
                for p in food_profiles.FOOD_PROFILES.values()
            )
            return (
                "Which food do you want to monitor?\n\n"
                f"Available profiles:\n{options}\n\n"
                f"Current conditions:\n{self._conditions()}",
                None,
            )

        temperature = self.buffer.latest_temperature()
        ranges = profile.ranges()
        if temperature is None:
            signal_line = "Waiting for a temperature reading before setting the signal."
            status = SignalStatus.UNKNOWN.value
        else:
            state = self.controller.select(profile.category, temperature)
            status = state.status.value
            signal_line = f"Signal set to {status} at {temperature:g}°C."

        response = (
            f"{profile.name} selected for monitoring.\n\n"
            f"Optimal range: {ranges['optimal']}\n"
            f"Critical: {ranges['critical']}\n"
            f"Expected shelf life: {profile.shelf_life}\n\n"
            f"{signal_line}"
        )
        return response, {
            "selectedCategory": profile.category,
            "foodName": profile.name,
            "currentTemperature": temperature,
            "status": status,
            "ranges": ranges,
        }

    def _handle_led_status(self, message: str) -> tuple[str, Optional[dict]]:
        state = self.controller.current()

        def on_off(flag: bool) -> str:
            return "ON" if flag else "OFF"

        response = (
            "Current signal:\n"
            f"- Green: {on_off(state.green_on)}\n"
            f"- Yellow: {on_off(state.yellow_on)}\n"
            f"- Red: {on_off(state.red_on)}\n"
            f"- Status: {state.status.value}\n"
            f"- Food: {state.category or 'not selected'}\n"
            f"- Last update: {state.last_update.isoformat()}\n\n"
            "Green means optimal, yellow means out of range, red means act now."
        )
        if state.category is None:
            response += "\nNo food is selected, so all lights stay off."
        return response, {"state": state.to_dict()}

    def _handle_temperature_analysis(self, message: str) -> tuple[str, Optional[dict]]:
        temperatures = [r.temperature for r in self.buffer.recent() if r.temperature is not None]
        if not temperatures:
            return (
                "No temperature data is available yet.\n\n"
                "Possible causes:\n"
                "- The sensor board is offline\n"
                "- The temperature sensor is not wired correctly\n"
                "- Readings are not reaching /api/sensor-data",
                None,
            )

        current = temperatures[0]
        minimum, maximum = min(temperatures), max(temperatures)
        average = mean(temperatures)
        trend = analyze_trend(temperatures[:10])

        response = (
            "Temperature analysis\n\n"
            f"- Current: {current:.1f}°C\n"
            f"- Minimum: {minimum:.1f}°C\n"
            f"- Maximum: {maximum:.1f}°C\n"
            f"- Average: {average:.1f}°C\n"
            f"- Readings analyzed: {len(temperatures)}\n\n"
            f"Storage evaluation: {evaluate_storage_band(current)}\n"
            f"Trend: {trend}\n\n"
            "Recommendations:\n"
            f"{_bullets(temperature_recommendations(current, average), 'Conditions within normal parameters')}\n\n"
            "Alerts:\n"
            f"{_bullets(temperature_alerts(current, maximum), 'No critical alerts')}"
        )
        return response, {
            "current": current,
            "min": minimum,
            "max": maximum,
            "average": round(average, 2),
            "count": len(temperatures),
            "trend": trend,
        }

    def _ask_llm(self, prompt: str, temperature: float, max_tokens: int) -> str:
        try:
            return self.llm.generate_text(prompt, temperature=temperature, max_tokens=max_tokens)
        except LLMError as e:
            logger.warning(f"Chat answer unavailable: {e}")
            return LLM_UNAVAILABLE_TEXT

    def _handle_food_safety(self, message: str) -> tuple[str, Optional[dict]]:
        prompt = f"""
You are an expert in food safety and cold-storage preservation.

User question: "{message}"

Current data:
{self._conditions()}

Give a professional answer on food safety, preservation and specific
recommendations, including risks, best practices and actions to take.
"""
        return self._ask_llm(prompt, temperature=0.3, max_tokens=600), None

    def _handle_system_config(self, message: str) -> tuple[str, Optional[dict]]:
        profiles = "\n".join(
            f"- {p.name} ({p.category}): {p.ranges()['optimal']}, critical {p.ranges()['critical']}"
            for p in food_profiles.FOOD_PROFILES.values()
        )
        interval = self.settings.reevaluation_interval_seconds
        refresh = f"every {interval:g}s" if interval > 0 else "disabled"
        response = (
            "System configuration\n\n"
            f"Supported food profiles:\n{profiles}\n\n"
            f"- Signal re-evaluation: {refresh}\n"
            f"- Reading retention: {self.settings.sensor_buffer_size} records\n"
            f"- Readings received: {self.buffer.count()}\n\n"
            'Say "monitor <food>" to switch the monitored profile.'
        )
        return response, None

    def _handle_general(self, message: str) -> tuple[str, Optional[dict]]:
        prompt = f"""
You are an assistant for a food cold-storage monitor driven by an ESP32 board.

Question: "{message}"

Available data:
{self._conditions()}

Answer helpfully and specifically about food preservation, using the system,
or reading its data.
"""
        return self._ask_llm(prompt, temperature=0.5, max_tokens=400), None
