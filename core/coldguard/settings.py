"""
ColdGuard Configuration Settings

Settings are resolved in three layers: dataclass defaults, the ``options``
section of config.yaml (development), then environment variables (a .env file
is loaded first if present).
"""

import logging
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config.yaml"

# Settings field -> environment variable
ENV_VARS = {
    "kv_rest_api_url": "KV_REST_API_URL",
    "kv_rest_api_token": "KV_REST_API_TOKEN",
    "state_key": "COLDGUARD_STATE_KEY",
    "kv_timeout_seconds": "KV_TIMEOUT_SECONDS",
    "openai_api_key": "OPENAI_API_KEY",
    "llm_model": "LLM_MODEL",
    "llm_timeout_seconds": "LLM_TIMEOUT_SECONDS",
    "sensor_buffer_size": "SENSOR_BUFFER_SIZE",
    "reevaluation_interval_seconds": "REEVALUATION_INTERVAL_SECONDS",
    "log_level": "LOG_LEVEL",
}


# Level names accepted by the backend logger
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def _camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


@dataclass
class Settings:
    """Runtime configuration for the ColdGuard service."""

    kv_rest_api_url: str = ""  # Redis-over-REST endpoint (Upstash / Vercel KV)
    kv_rest_api_token: str = ""
    state_key: str = "coldguard:signal_state"  # Single slot holding the signal
    kv_timeout_seconds: float = 5.0
    openai_api_key: str = ""
    llm_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 20.0
    sensor_buffer_size: int = 500  # Readings kept in memory
    reevaluation_interval_seconds: float = 3.0  # 0 disables the background loop
    log_level: str = "INFO"

    @property
    def kv_enabled(self) -> bool:
        """Durable storage is used only when both URL and token are set."""
        return bool(self.kv_rest_api_url and self.kv_rest_api_token)

    @property
    def llm_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Create from dictionary, accepting camelCase keys and numeric strings."""
        converted = {_camel_to_snake(k): v for k, v in data.items()}

        known = {f.name: f for f in fields(cls)}
        unknown = set(converted) - set(known)
        if unknown:
            logger.warning(f"Ignoring unknown settings: {sorted(unknown)}")

        values = {}
        for name, value in converted.items():
            if name not in known or value is None:
                continue
            values[name] = _coerce(name, value, type(getattr(cls, name)))

        settings = cls(**values)
        if settings.sensor_buffer_size < 1:
            raise ConfigurationError("sensor_buffer_size must be at least 1")
        if settings.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log_level: {settings.log_level}")
        return settings


def _coerce(name: str, value, target: type):
    """Convert a raw config value to the type of the field default."""
    try:
        if target is float:
            return float(value)
        if target is int:
            return int(value)
        return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {name}: {value!r}") from e


def _load_yaml_options(config_path: Path) -> dict:
    """Read the ``options`` section of config.yaml, if the file exists."""
    if not config_path.exists():
        return {}

    try:
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse {config_path}: {e}") from e

    options = config.get("options", {}) or {}
    logger.debug(f"Loaded {len(options)} option(s) from {config_path}")
    return options


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Build Settings from config.yaml and the environment.

    Args:
        config_path: Optional path to a YAML file with an ``options`` section
            (defaults to config.yaml at the repository root)

    Returns:
        Resolved settings

    Raises:
        ConfigurationError: If a value cannot be converted
    """
    load_dotenv()

    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    data = dict(_load_yaml_options(path))

    for field_name, env_var in ENV_VARS.items():
        value = os.getenv(env_var)
        if value not in (None, ""):
            data[field_name] = value

    return Settings.from_dict(data)
