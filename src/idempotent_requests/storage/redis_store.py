"""Redis-backed key-value store for cluster-wide idempotency coordination.

Every instance pointing at the same Redis database and namespace shares
the same idempotency entries, so a retry that lands on another process still
replays or conflicts correctly. Expiry is delegated to Redis (SET ... EX).

The store deliberately uses plain SET rather than SET NX: the interceptor's
contract assumes no compare-and-set, and switching primitives is a separate
design change.

Examples:
    Connecting by URL::

        from idempotent_requests.storage.redis_store import RedisKeyValueStore

        store = RedisKeyValueStore.from_url(
            "redis://cache:6379/0",
            namespace="requestcontroller",
        )
        store.put("c_K1", "hello", ttl_seconds=330)

    Reusing an existing client::

        import redis

        client = redis.Redis(host="cache", port=6379)
        store = RedisKeyValueStore(client, namespace="requestcontroller")
"""

from typing import Any

import redis
from redis.exceptions import RedisError

from idempotent_requests.exceptions import StorageError


class RedisKeyValueStore:
    """KeyValueStore implementation on top of a redis-py client.

    Attributes:
        _client: The redis.Redis client (bytes responses).
        _namespace: Prefix scoping keys to one logical store name.
    """

    def __init__(self, client: Any, namespace: str = "") -> None:
        """Initialize the store.

        Args:
            client: A redis.Redis (or compatible) client. It must return bytes,
                i.e. not be created with decode_responses=True.
            namespace: Logical store name; keys are stored as "<namespace>:<key>".
        """
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "") -> "RedisKeyValueStore":
        """Create a store connected to the Redis server at url."""
        return cls(redis.Redis.from_url(url), namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}" if self._namespace else key

    def get(self, key: str) -> bytes | None:
        try:
            value = self._client.get(self._key(key))
        except RedisError as e:
            raise StorageError(f"Redis GET failed for {key!r}: {e}", cause=e) from e
        if value is None:
            return None
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def put(self, key: str, value: bytes | str | None, ttl_seconds: int = 0) -> None:
        if value is None:
            self.delete(key)
            return
        try:
            self._client.set(self._key(key), value, ex=ttl_seconds if ttl_seconds > 0 else None)
        except RedisError as e:
            raise StorageError(f"Redis SET failed for {key!r}: {e}", cause=e) from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except RedisError as e:
            raise StorageError(f"Redis DEL failed for {key!r}: {e}", cause=e) from e
