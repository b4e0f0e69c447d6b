"""
Storage condition analysis.

Deterministic checks (temperature status, humidity band, alerts) combined with
an LLM risk assessment. The LLM part is optional: when it is disabled, fails,
or answers with something other than JSON, a fixed fallback is used.
"""

import copy
import json
import logging
import math
import re
from typing import Any, Optional

from . import food_profiles
from .classifier import describe
from .exceptions import InvalidInputError, LLMError
from .food_profiles import FoodProfile
from .llm_client import LLMClient
from .models import SensorReading
from .signal_controller import parse_temperature

logger = logging.getLogger(__name__)

# Humidity this far above the band raises an alert
HUMIDITY_ALERT_MARGIN = 5.0

_FENCE = re.compile(r"```(?:json)?\s*|\s*```")


def parse_json_response(text: str) -> Any:
    """Decode a JSON reply, tolerating Markdown code fences.

    Raises:
        ValueError: If the text is not valid JSON
    """
    return json.loads(_FENCE.sub("", text.strip()))


def _parse_humidity(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidInputError(f"humidity must be numeric, got {value!r}")
    try:
        humidity = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"humidity must be numeric, got {value!r}") from None
    if not math.isfinite(humidity):
        raise InvalidInputError(f"humidity must be finite, got {value!r}")
    return humidity


def analyze_humidity(humidity: float, profile: FoodProfile) -> dict:
    """Compare relative humidity against the profile band."""
    if humidity < profile.humidity_min:
        return {
            "status": "LOW",
            "severity": "warning",
            "message": f"Low humidity ({humidity:g}%). Risk of dehydration.",
        }
    elif humidity > profile.humidity_max:
        return {
            "status": "HIGH",
            "severity": "warning",
            "message": f"High humidity ({humidity:g}%). Risk of bacterial growth.",
        }
    return {
        "status": "OPTIMAL",
        "severity": "safe",
        "message": f"Optimal humidity ({humidity:g}%).",
    }


def generate_alerts(temperature: float, humidity: Optional[float], profile: FoodProfile) -> list[dict]:
    """Actionable alerts, highest priority first."""
    alerts = []

    if temperature > profile.critical_temp:
        alerts.append({
            "type": "CRITICAL",
            "message": f"Temperature {temperature:g}°C exceeds the safe limit for {profile.name.lower()}",
            "action": "Lower the temperature immediately",
            "priority": 1,
        })
    elif temperature > profile.temp_max:
        alerts.append({
            "type": "WARNING",
            "message": f"Temperature {temperature:g}°C is above the optimal range",
            "action": "Adjust refrigeration",
            "priority": 2,
        })

    if humidity is not None and humidity > profile.humidity_max + HUMIDITY_ALERT_MARGIN:
        alerts.append({
            "type": "WARNING",
            "message": f"Humidity {humidity:g}% may cause spoilage",
            "action": "Check ventilation",
            "priority": 3,
        })

    return sorted(alerts, key=lambda a: a["priority"])


class FoodAnalyzer:
    """Storage assessment for one food category."""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    def analyze(
        self,
        category: Any,
        temperature: Any,
        humidity: Any = None,
        duration: Optional[str] = None
    ) -> dict:
        """Assess current conditions for a food category.

        Raises:
            InvalidInputError: If category or temperature are missing/invalid
        """
        if not category:
            raise InvalidInputError("category required")
        profile = food_profiles.lookup(category)
        temp = parse_temperature(temperature)
        hum = _parse_humidity(humidity)

        temp_status = describe(profile, temp)
        humidity_status = analyze_humidity(hum, profile) if hum is not None else None

        return {
            "category": profile.category,
            "foodType": profile.name,
            "currentConditions": {"temperature": temp, "humidity": hum},
            "recommendedConditions": {
                "temperatureRange": profile.ranges()["optimal"],
                "humidityRange": f"{profile.humidity_min:g}% to {profile.humidity_max:g}%",
                "shelfLife": profile.shelf_life,
            },
            "status": temp_status,
            "humidityStatus": humidity_status,
            "aiAnalysis": self._assess(profile, temp, hum, duration, temp_status),
            "alerts": generate_alerts(temp, hum, profile),
        }

    def _assess(
        self,
        profile: FoodProfile,
        temperature: float,
        humidity: Optional[float],
        duration: Optional[str],
        temp_status: dict
    ) -> dict:
        humidity_text = f"{humidity:g}%" if humidity is not None else "not available"
        prompt = f"""
You are an expert in food preservation and food safety. Analyze these storage conditions:

FOOD: {profile.name} ({profile.description})
CURRENT TEMPERATURE: {temperature:g}°C
CURRENT HUMIDITY: {humidity_text}
TIME IN STORAGE: {duration or "unknown"}
OPTIMAL RANGE: {profile.temp_min:g}°C to {profile.temp_max:g}°C
OPTIMAL HUMIDITY: {profile.humidity_min:g}% to {profile.humidity_max:g}%
EXPECTED SHELF LIFE: {profile.shelf_life}
CURRENT STATUS: {temp_status['message']}

Answer ONLY with JSON in this shape:
{{
  "riskLevel": "LOW|MEDIUM|HIGH|CRITICAL",
  "safetyAssessment": "...",
  "qualityImpact": "...",
  "timeToDeterioration": "...",
  "recommendations": ["...", "..."],
  "consequences": "..."
}}
"""
        try:
            assessment = parse_json_response(self.llm.generate_text(prompt, temperature=0.3, max_tokens=800))
            if isinstance(assessment, dict):
                return assessment
            logger.warning("Food assessment reply is not a JSON object, using fallback")
        except LLMError as e:
            logger.warning(f"Food assessment unavailable: {e}")
        except ValueError as e:
            logger.warning(f"Could not parse food assessment: {e}")

        return {
            "riskLevel": "CRITICAL" if temp_status["severity"] == "critical" else "MEDIUM",
            "safetyAssessment": "Automatic analysis not available",
            "qualityImpact": temp_status["message"],
            "timeToDeterioration": "Check manually",
            "recommendations": ["Verify the temperature", "Keep monitoring continuously"],
            "consequences": "Possible deterioration of the food",
        }


class SensorAnalyzer:
    """Natural-language summary of recent sensor readings."""

    FALLBACK = {
        "summary": "System running. Sensor readings received and processed.",
        "recommendations": [
            "Keep monitoring light levels",
            "Check how readings change during the day",
            "Consider adding sensors for a fuller analysis",
        ],
        "alerts": [],
    }

    def __init__(self, llm: LLMClient):
        self.llm = llm

    def analyze(self, readings: list[SensorReading]) -> dict:
        """Summarize readings.

        Raises:
            InvalidInputError: If there are no readings
        """
        if not readings:
            raise InvalidInputError("no data to analyze")

        data = [r.to_dict() for r in readings]
        prompt = f"""
You are an expert in IoT data analysis for ESP32 sensor boards. Analyze these readings:

{json.dumps(data, indent=2)}

System information:
- lightLevel comes from an LDR (0-4095, 0 = very dark, 4095 = very bright)
- The board reports every few seconds
- temperature and humidity come from a DHT11

Reference ranges for light: 0-500 very low (night or covered sensor),
500-1500 low (normal indoor), 1500-3000 medium, 3000-4095 high (direct sunlight).

Answer ONLY with valid JSON in this exact shape:
{{
  "summary": "...",
  "recommendations": ["...", "...", "..."],
  "alerts": ["..."]
}}
"""
        try:
            text = self.llm.generate_text(prompt, temperature=0.3, max_tokens=1000)
        except LLMError as e:
            logger.warning(f"Sensor analysis unavailable: {e}")
            return copy.deepcopy(self.FALLBACK)

        try:
            analysis = parse_json_response(text)
        except ValueError as e:
            logger.warning(f"Could not parse sensor analysis: {e}")
            analysis = {
                "summary": "Could not process the analysis. Try again." if "{" in text else text,
                "recommendations": list(self.FALLBACK["recommendations"]),
                "alerts": [],
            }
        if not isinstance(analysis, dict):
            analysis = {}

        analysis["summary"] = analysis.get("summary") or "Analysis completed"
        if not isinstance(analysis.get("recommendations"), list):
            analysis["recommendations"] = []
        if not isinstance(analysis.get("alerts"), list):
            analysis["alerts"] = []
        return analysis
