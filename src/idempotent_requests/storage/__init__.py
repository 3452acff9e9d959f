"""Key-value backends for idempotency entries.

All backends implement the KeyValueStore protocol defined in base.py.

Available Stores:
    - MemoryKeyValueStore: In-process dict with TTL, for single instances and tests
    - RedisKeyValueStore: Redis-based store shared across instances
"""

from idempotent_requests.storage.base import KeyValueStore
from idempotent_requests.storage.memory import MemoryKeyValueStore
from idempotent_requests.storage.redis_store import RedisKeyValueStore
from idempotent_requests.storage.registry import KeyValueService

__all__ = [
    "KeyValueStore",
    "KeyValueService",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
]
