"""
Signal control surface.

Write path: select(category, temperature) classifies and persists a new
SignalState. Read paths: current() for the dashboard and current_for_device()
for the polling board. Reads always go to the store; nothing is cached here.
"""

import logging
import math
from typing import Any

from . import food_profiles
from .classifier import classify
from .exceptions import InvalidInputError, MissingTemperatureError
from .models import SignalState, SignalStatus, utc_now
from .state_store import StateStore

logger = logging.getLogger(__name__)


def parse_temperature(value: Any) -> float:
    """Coerce a client-supplied temperature to a finite float.

    Numbers and numeric strings are accepted; booleans are not.

    Raises:
        MissingTemperatureError: If the value is absent, non-numeric or not finite
    """
    if value is None or isinstance(value, bool):
        raise MissingTemperatureError("temperature required")
    try:
        temperature = float(value)
    except (TypeError, ValueError):
        raise MissingTemperatureError("temperature required") from None
    if not math.isfinite(temperature):
        raise MissingTemperatureError("temperature required")
    return temperature


class SignalController:
    """Boundary operations over the single signal slot."""

    def __init__(self, store: StateStore):
        """Initialize controller.

        Args:
            store: Shared state store, owned by the process
        """
        self.store = store

    def select(self, category: Any, temperature: Any) -> SignalState:
        """Classify a sample for a category and persist the resulting signal.

        Input is validated before anything is written, so a rejected call
        leaves the stored state untouched.

        Args:
            category: Food category key
            temperature: Current sample in °C

        Returns:
            The state that was persisted

        Raises:
            InvalidInputError: If category is missing
            UnknownCategoryError: If category is not in the profile table
            MissingTemperatureError: If temperature is missing or not finite
        """
        if not category:
            raise InvalidInputError("category required")
        profile = food_profiles.lookup(category)
        value = parse_temperature(temperature)

        status = classify(profile, value)
        state = SignalState.for_status(
            status,
            category=profile.category,
            temperature=value,
            last_update=utc_now(),
        )
        self.store.write(state)

        logger.info(f"Signal for {profile.category} at {value:g}°C -> {status.value}")
        return state

    def current(self) -> SignalState:
        """Last persisted state (UNKNOWN before the first select)."""
        return self.store.read()

    def current_for_device(self) -> dict[str, Any]:
        """Flat 0/1 payload for the polling board.

        Never raises: any fault yields an all-off ERROR payload, since the
        board has no error handling of its own.
        """
        try:
            return self.store.read().to_device_payload()
        except Exception:
            logger.exception("Device read failed, returning ERROR payload")
            return {
                "green": 0,
                "yellow": 0,
                "red": 0,
                "status": SignalStatus.ERROR.value,
                "lastUpdate": utc_now().isoformat(),
            }

    @staticmethod
    def profile_ranges(category: str) -> dict[str, str]:
        return food_profiles.lookup(category).ranges()
