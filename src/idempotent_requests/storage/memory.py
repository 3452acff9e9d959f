"""In-memory key-value store with per-entry expiry.

This module provides a thread-safe in-process implementation of the
KeyValueStore protocol.

The MemoryKeyValueStore is suitable for:
    - Single-process deployments
    - Development and testing

It offers no coordination across processes; use RedisKeyValueStore when
several instances must share idempotency state.

Thread Safety:
    - A single threading.Lock guards the underlying dict
    - The lock is held only for the dict operation itself, never across
      calls, so get() followed by put() is not atomic (as with any backend)

Expiry:
    - Deadlines are computed from a monotonic clock
    - Expired entries read as missing and are dropped lazily on access
    - purge_expired() removes all dead entries in one pass

Examples:
    Basic usage::

        from idempotent_requests.storage.memory import MemoryKeyValueStore

        store = MemoryKeyValueStore()
        store.put("c_K1", "hello", ttl_seconds=330)
        store.get("c_K1")
        # b'hello'

    Deterministic expiry in tests::

        now = [0.0]
        store = MemoryKeyValueStore(clock=lambda: now[0])
        store.put("c_K1", b"hello", ttl_seconds=30)
        now[0] = 31.0
        store.get("c_K1")
        # None
"""

import threading
import time
from collections.abc import Callable


class MemoryKeyValueStore:
    """In-memory key-value store with TTL support.

    Attributes:
        _data: Mapping of key to (value, deadline). A deadline of None never expires.
        _lock: Lock guarding _data.
        _clock: Monotonic time source in seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize an empty store.

        Args:
            clock: Monotonic time source in seconds. Override in tests to
                control expiry without sleeping.
        """
        self._data: dict[str, tuple[bytes, float | None]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> bytes | None:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            value, deadline = item
            if deadline is not None and deadline <= self._clock():
                del self._data[key]
                return None
            return value

    def put(self, key: str, value: bytes | str | None, ttl_seconds: int = 0) -> None:
        if value is None:
            self.delete(key)
            return
        if isinstance(value, str):
            value = value.encode("utf-8")
        deadline = self._clock() + ttl_seconds if ttl_seconds > 0 else None
        with self._lock:
            self._data[key] = (bytes(value), deadline)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def purge_expired(self) -> int:
        """Remove every expired entry.

        Returns:
            The number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [
                key
                for key, (_, deadline) in self._data.items()
                if deadline is not None and deadline <= now
            ]
            for key in expired:
                del self._data[key]
        return len(expired)

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet purged."""
        with self._lock:
            return len(self._data)
