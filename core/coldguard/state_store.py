"""
Single-slot signal state storage.

Two strategies behind one interface, chosen once at construction:

- MemoryStateStore: process-owned cache, one immutable SignalState swapped
  atomically under a lock.
- DurableStateStore: KV-backed, with a MemoryStateStore as fallback. Storage
  faults are logged and absorbed, so reads and writes stay available. After
  a failed write the cache answers reads until the write is retried; a
  restart can lose a write that never reached the KV store.

Writes are last-write-wins. There is no version token or compare-and-swap.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

from .exceptions import StorageError
from .kv_client import KVClient
from .models import SignalState
from .settings import Settings

logger = logging.getLogger(__name__)


class StateStore(ABC):
    """Holder for exactly one SignalState per deployment."""

    @abstractmethod
    def read(self) -> SignalState:
        """Return the last written state, or the UNKNOWN default. Never raises."""

    @abstractmethod
    def write(self, state: SignalState) -> None:
        """Replace the stored state. Never raises for storage faults."""

    @property
    def mode(self) -> str:
        return "memory"


class MemoryStateStore(StateStore):
    """In-process store; the whole record is replaced in one assignment."""

    def __init__(self, initial: Optional[SignalState] = None):
        self._state = initial or SignalState.unknown()
        self._lock = threading.Lock()

    def read(self) -> SignalState:
        with self._lock:
            return self._state

    def write(self, state: SignalState) -> None:
        with self._lock:
            self._state = state


class DurableStateStore(StateStore):
    """KV-backed store falling back to an in-process cache.

    After a failed KV write the cache holds the newest state and is served
    for every read until a retry lands it in KV.
    """

    def __init__(
        self,
        kv_client: KVClient,
        key: str,
        cache: Optional[MemoryStateStore] = None
    ):
        """Initialize durable store.

        Args:
            kv_client: Client for the durable medium
            key: KV key holding the serialized state
            cache: In-process fallback (a fresh one is created if omitted)
        """
        self.kv_client = kv_client
        self.key = key
        self.cache = cache or MemoryStateStore()
        self._dirty = False  # Cache is newer than KV

    @property
    def mode(self) -> str:
        return "durable"

    @property
    def dirty(self) -> bool:
        return self._dirty

    def read(self) -> SignalState:
        if self._dirty:
            self._flush()
            return self.cache.read()

        try:
            record = self.kv_client.get_json(self.key)
            if record is not None:
                state = SignalState.from_dict(record)
                self.cache.write(state)
                return state
        except StorageError as e:
            logger.warning(f"KV read failed, using memory fallback: {e}")
        except (ValueError, TypeError) as e:
            logger.warning(f"Stored signal at {self.key} is malformed, using memory fallback: {e}")

        return self.cache.read()

    def write(self, state: SignalState) -> None:
        self.cache.write(state)
        try:
            self.kv_client.set_json(self.key, state.to_dict())
            self._dirty = False
        except StorageError as e:
            self._dirty = True
            logger.warning(f"KV write failed, kept memory state: {e}")

    def _flush(self):
        """Retry writing the cached state to KV."""
        state = self.cache.read()
        try:
            self.kv_client.set_json(self.key, state.to_dict())
        except StorageError as e:
            logger.debug(f"KV still unavailable, serving memory state: {e}")
            return

        # A write that raced this retry leaves the flag set for the next read
        self._dirty = self.cache.read() is not state
        if not self._dirty:
            logger.info(f"KV write recovered for {self.key}")


def create_state_store(settings: Settings) -> StateStore:
    """Pick the storage strategy from configuration."""
    if settings.kv_enabled:
        kv_client = KVClient(
            settings.kv_rest_api_url,
            settings.kv_rest_api_token,
            timeout=settings.kv_timeout_seconds,
        )
        logger.info(f"Signal state stored in KV under '{settings.state_key}'")
        return DurableStateStore(kv_client, settings.state_key)

    logger.info("KV not configured, signal state kept in memory only")
    return MemoryStateStore()
