"""
ColdGuard Custom Exceptions

Simple exception hierarchy for error handling.
"""


class ColdGuardError(Exception):
    """Base exception for ColdGuard."""

    pass


class ConfigurationError(ColdGuardError):
    """Configuration is invalid."""

    pass


class InvalidInputError(ColdGuardError):
    """Client supplied input that cannot be processed."""

    pass


class UnknownCategoryError(InvalidInputError):
    """Food category is not in the profile table."""

    pass


class MissingTemperatureError(InvalidInputError):
    """Temperature is absent or not a finite number."""

    pass


class InvalidReadingError(InvalidInputError):
    """Sensor payload carries no usable reading."""

    pass


class StorageError(ColdGuardError):
    """Durable key-value store is unreachable or returned an error."""

    pass


class LLMError(ColdGuardError):
    """Text generation provider failed or is not configured."""

    pass
