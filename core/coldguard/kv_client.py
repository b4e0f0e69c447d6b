"""
Simple Redis-over-REST client for ColdGuard

Minimal client for the Upstash / Vercel KV REST protocol: each command is a
JSON array POSTed to the base URL, answered with {"result": ...} or
{"error": "..."}.
"""

import json
import logging
from typing import Any, Optional

import requests

from .exceptions import StorageError

logger = logging.getLogger(__name__)


class KVClient:
    """Key-value REST API client used as the durable signal medium."""

    def __init__(self, base_url: str, token: str, timeout: float = 5):
        """Initialize KV client.

        Args:
            base_url: REST endpoint (e.g., "https://eu1-xyz.upstash.io")
            token: Bearer token with read/write access
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        # Create a session for connection pooling
        self.session = requests.Session()
        self.session.headers.update(self.headers)
        self.timeout = timeout

    def command(self, *args: Any) -> Any:
        """Run a single command and return its result.

        Raises:
            StorageError: If the request fails or the store reports an error
        """
        try:
            response = self.session.post(self.base_url, json=list(args), timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.HTTPError as e:
            raise StorageError(f"KV command {args[0]} failed: {e}") from e
        except requests.exceptions.RequestException as e:
            raise StorageError(f"KV API request failed: {e}") from e
        except ValueError as e:
            raise StorageError(f"KV API returned invalid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise StorageError(f"Unexpected KV response: {payload!r}")
        if payload.get("error"):
            raise StorageError(f"KV command {args[0]} rejected: {payload['error']}")
        return payload.get("result")

    def get(self, key: str) -> Optional[str]:
        """Get the raw value of a key, or None if it is not set."""
        return self.command("GET", key)

    def set(self, key: str, value: str) -> None:
        """Set a key to a raw string value."""
        result = self.command("SET", key, value)
        logger.debug(f"SET {key} -> {result}")

    def get_json(self, key: str) -> Any:
        """Get a key holding a JSON document.

        Raises:
            StorageError: If the stored value is not valid JSON
        """
        raw = self.get(key)
        if raw is None:
            return None
        if not isinstance(raw, str):
            return raw
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Value at {key} is not valid JSON: {e}") from e

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value))

    def ping(self) -> bool:
        """Check connectivity. Returns False instead of raising."""
        try:
            return self.command("PING") == "PONG"
        except StorageError as e:
            logger.warning(f"KV ping failed: {e}")
            return False
