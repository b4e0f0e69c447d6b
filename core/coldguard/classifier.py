"""
Temperature band classification.

Maps a temperature sample against a food profile to one of four statuses.
Rules are evaluated in order and the first match wins:

    temp_min <= t <= temp_max                      -> OPTIMAL
    temp_max < t <= critical_temp                  -> WARNING
    t > critical_temp or t < temp_min - margin     -> CRITICAL
    otherwise (just below temp_min)                -> TOO_COLD

The CRITICAL rule runs before TOO_COLD, so a sample more than ``margin``
degrees below the band (freezing damage) is critical, never merely too cold.
"""

import math

from .food_profiles import FoodProfile
from .models import SignalStatus

# Degrees below temp_min that escalate TOO_COLD to CRITICAL, same for every category
TOO_COLD_MARGIN = 3.0


def classify(profile: FoodProfile, temperature: float) -> SignalStatus:
    """Classify a temperature sample for a food profile.

    Args:
        profile: Storage bands of the selected food
        temperature: Sample in °C

    Returns:
        OPTIMAL, WARNING, CRITICAL or TOO_COLD

    Raises:
        ValueError: If temperature is NaN or infinite
    """
    if not math.isfinite(temperature):
        raise ValueError(f"Temperature must be finite, got {temperature}")

    if profile.temp_min <= temperature <= profile.temp_max:
        return SignalStatus.OPTIMAL
    elif profile.temp_max < temperature <= profile.critical_temp:
        return SignalStatus.WARNING
    elif temperature > profile.critical_temp or temperature < profile.temp_min - TOO_COLD_MARGIN:
        return SignalStatus.CRITICAL
    else:
        return SignalStatus.TOO_COLD


_SEVERITY = {
    SignalStatus.OPTIMAL: "safe",
    SignalStatus.WARNING: "warning",
    SignalStatus.TOO_COLD: "warning",
    SignalStatus.CRITICAL: "critical",
}


def describe(profile: FoodProfile, temperature: float) -> dict:
    """Classification plus severity and a message for human-facing layers."""
    status = classify(profile, temperature)

    if status is SignalStatus.OPTIMAL:
        message = f"Optimal temperature ({temperature:g}°C) for {profile.name.lower()}."
    elif status is SignalStatus.WARNING:
        message = f"High temperature ({temperature:g}°C). Shelf life is reduced, check refrigeration."
    elif status is SignalStatus.TOO_COLD:
        message = f"Temperature slightly low ({temperature:g}°C). Risk of freezing."
    elif temperature > profile.critical_temp:
        message = f"CRITICAL temperature ({temperature:g}°C). Risk of immediate spoilage."
    else:
        message = f"CRITICAL temperature ({temperature:g}°C). Freezing damage likely."

    return {
        "status": status.value,
        "severity": _SEVERITY[status],
        "message": message,
    }
