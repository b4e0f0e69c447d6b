"""
Food profile table.

Static storage bands for each supported food category. The table is checked
once at import: every profile must satisfy temp_min < temp_max < critical_temp.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .exceptions import ConfigurationError, UnknownCategoryError


@dataclass(frozen=True)
class FoodProfile:
    """Safe storage conditions for one food category."""

    category: str  # Unique key, e.g. "quesos_duros"
    name: str
    description: str
    shelf_life: str
    temp_min: float  # Lower bound of the safe band (°C, inclusive)
    temp_max: float  # Upper bound of the safe band (°C, inclusive)
    critical_temp: float  # Strictly above this is critical (°C)
    humidity_min: float  # %
    humidity_max: float  # %
    aliases: tuple[str, ...] = ()  # Lower-case words matched in chat messages

    def ranges(self) -> dict[str, str]:
        """Human-readable bands for API responses."""
        return {
            "optimal": f"{self.temp_min:g}°C to {self.temp_max:g}°C",
            "critical": f">{self.critical_temp:g}°C",
        }

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "name": self.name,
            "description": self.description,
            "shelfLife": self.shelf_life,
            "tempMin": self.temp_min,
            "tempMax": self.temp_max,
            "criticalTemp": self.critical_temp,
            "humidityMin": self.humidity_min,
            "humidityMax": self.humidity_max,
        }


_PROFILES = [
    FoodProfile(
        category="carnes",
        name="Red meat",
        description="Beef, pork, lamb",
        shelf_life="3-5 days",
        temp_min=-2, temp_max=4, critical_temp=7,
        humidity_min=85, humidity_max=95,
        aliases=("carne", "res", "red meat", "beef", "pork", "lamb"),
    ),
    FoodProfile(
        category="pollo",
        name="Poultry",
        description="Chicken, turkey, duck",
        shelf_life="1-2 days",
        temp_min=-2, temp_max=2, critical_temp=4,
        humidity_min=85, humidity_max=95,
        aliases=("pollo", "ave", "poultry", "chicken", "turkey"),
    ),
    FoodProfile(
        category="pescado",
        name="Fish and shellfish",
        description="Fresh fish, seafood",
        shelf_life="1-2 days",
        temp_min=-2, temp_max=0, critical_temp=2,
        humidity_min=90, humidity_max=95,
        aliases=("pescado", "marisco", "fish", "seafood", "shellfish"),
    ),
    FoodProfile(
        category="lacteos",
        name="Dairy",
        description="Milk, yogurt, cream",
        shelf_life="5-7 days",
        temp_min=1, temp_max=4, critical_temp=7,
        humidity_min=80, humidity_max=85,
        aliases=("lácteo", "lacteo", "leche", "dairy", "milk", "yogurt"),
    ),
    FoodProfile(
        category="quesos_duros",
        name="Hard cheese",
        description="Cheddar, parmesan, gouda",
        shelf_life="2-4 weeks",
        temp_min=2, temp_max=8, critical_temp=12,
        humidity_min=80, humidity_max=85,
        aliases=("queso duro", "quesos duros", "hard cheese", "cheddar", "parmesan", "gouda"),
    ),
    FoodProfile(
        category="quesos_blandos",
        name="Soft cheese",
        description="Brie, camembert, ricotta",
        shelf_life="1-2 weeks",
        temp_min=1, temp_max=4, critical_temp=7,
        humidity_min=85, humidity_max=90,
        aliases=("queso blando", "quesos blandos", "soft cheese", "brie", "camembert", "ricotta"),
    ),
    FoodProfile(
        category="embutidos",
        name="Cured meats",
        description="Ham, salami, chorizo",
        shelf_life="2-3 weeks",
        temp_min=0, temp_max=4, critical_temp=8,
        humidity_min=75, humidity_max=85,
        aliases=("embutido", "cured meat", "ham", "salami", "chorizo", "jamón"),
    ),
    FoodProfile(
        category="verduras",
        name="Vegetables",
        description="Lettuce, celery, carrots",
        shelf_life="1-2 weeks",
        temp_min=0, temp_max=4, critical_temp=8,
        humidity_min=90, humidity_max=95,
        aliases=("verdura", "vegetable", "lettuce", "carrot"),
    ),
    FoodProfile(
        category="frutas",
        name="Fruit",
        description="Apples, pears, grapes",
        shelf_life="1-4 weeks",
        temp_min=0, temp_max=4, critical_temp=10,
        humidity_min=85, humidity_max=90,
        aliases=("fruta", "fruit", "apple", "pear", "grape"),
    ),
]


def _validate_profiles(profiles: list[FoodProfile]) -> dict[str, FoodProfile]:
    """Index profiles by category, rejecting duplicates and inverted bands."""
    table: dict[str, FoodProfile] = {}
    for profile in profiles:
        if profile.category in table:
            raise ConfigurationError(f"Duplicate food category: {profile.category}")
        if not profile.temp_min < profile.temp_max < profile.critical_temp:
            raise ConfigurationError(
                f"{profile.category}: expected temp_min < temp_max < critical_temp, "
                f"got {profile.temp_min}/{profile.temp_max}/{profile.critical_temp}"
            )
        if not profile.humidity_min < profile.humidity_max:
            raise ConfigurationError(f"{profile.category}: humidity band is inverted")
        table[profile.category] = profile
    return table


FOOD_PROFILES: dict[str, FoodProfile] = _validate_profiles(_PROFILES)


def lookup(category: str) -> FoodProfile:
    """Return the profile for a category.

    Raises:
        UnknownCategoryError: If the category is not in the table
    """
    try:
        return FOOD_PROFILES[category]
    except (KeyError, TypeError):
        raise UnknownCategoryError(f"unrecognized category: {category}") from None


def _mentions(text: str, word: str) -> bool:
    # Whole words only, singular or plural ("ave" must not match "have")
    return re.search(rf"\b{re.escape(word)}(?:s|es)?\b", text) is not None


def find_profile_in_text(text: str) -> Optional[FoodProfile]:
    """First profile whose key, name or alias appears in free text."""
    lowered = text.lower()
    for profile in FOOD_PROFILES.values():
        candidates = (profile.category, profile.category.replace("_", " "), profile.name.lower())
        if any(_mentions(lowered, c) for c in candidates + profile.aliases):
            return profile
    return None
