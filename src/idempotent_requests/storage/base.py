"""Key-value store protocol for idempotency entries.

The interceptor only needs a very small capability from its backend: per-key
get, put-with-expiry and delete. Any store providing these three operations
(an in-process dict, Redis, memcached, a shared cluster cache) can hold the
coordination state without touching the state machine.

Guarantees expected from implementations:

    1. **Expiry**: get() returns None once the TTL of a key has elapsed, even
       if the backend has not physically removed it yet.

    2. **Per-key consistency**: a get() that follows a completed put() or
       delete() on the same key observes it.

    3. **No transactions**: nothing is assumed about atomicity across keys or
       across a get() followed by a put(). Callers tolerate the resulting race.

    4. **Error reporting**: backend failures are raised as StorageError, not as
       backend-specific exceptions.

Examples:
    Implementing a custom store::

        from idempotent_requests.storage.base import KeyValueStore

        class DictStore:
            def __init__(self):
                self.data = {}

            def get(self, key):
                return self.data.get(key)

            def put(self, key, value, ttl_seconds=0):
                if value is None:
                    self.data.pop(key, None)
                else:
                    self.data[key] = value.encode() if isinstance(value, str) else value

            def delete(self, key):
                self.data.pop(key, None)

        assert isinstance(DictStore(), KeyValueStore)
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol for the key-value backends holding idempotency entries.

    Methods are synchronous: request handling is blocking and occupies the
    calling thread for its whole duration. Implementations must be safe to
    call from several threads at once.
    """

    def get(self, key: str) -> bytes | None:
        """Return the value stored under key.

        Args:
            key: The store key.

        Returns:
            The stored bytes, or None if absent or expired.
        """
        ...

    def put(self, key: str, value: bytes | str | None, ttl_seconds: int = 0) -> None:
        """Store a value under key.

        Args:
            key: The store key.
            value: Value to store; str is stored UTF-8 encoded. None deletes the key.
            ttl_seconds: Lifetime of the value in seconds. 0 means no expiry.
        """
        ...

    def delete(self, key: str) -> None:
        """Remove key. Deleting a missing key is not an error.

        Args:
            key: The store key.
        """
        ...
