"""ColdGuard food cold-storage monitoring package."""

# Define public API
__all__ = [
    "Settings",
    "load_settings",
    "SignalState",
    "SignalStatus",
    "SensorReading",
    "FoodProfile",
    "FOOD_PROFILES",
    "classify",
    "SignalController",
    "create_state_store",
    "SensorBuffer",
]

# Import settings
from .settings import Settings, load_settings

# Import models
from .models import SensorReading, SignalState, SignalStatus

# Import classification
from .food_profiles import FOOD_PROFILES, FoodProfile
from .classifier import classify

# Import control surface
from .signal_controller import SignalController
from .state_store import create_state_store
from .sensor_buffer import SensorBuffer
