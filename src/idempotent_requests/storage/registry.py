"""Named key-value stores.

Idempotency keys are scoped per store name: two interceptors configured with
different store names never see each other's entries. The KeyValueService
hands out one store per name, creating it on first use.

Examples:
    Default in-memory stores::

        from idempotent_requests.storage.registry import KeyValueService

        service = KeyValueService()
        store = service.get_store("requestcontroller")
        assert service.get_store("requestcontroller") is store

    Registering an explicit backend::

        service.register("requestcontroller", RedisKeyValueStore.from_url(url))

    Building from configuration::

        service = KeyValueService.from_config(IdempotencyConfig(storage_adapter="redis"))
"""

import threading
from collections.abc import Callable

from idempotent_requests.config import IdempotencyConfig
from idempotent_requests.observability.logging import get_logger
from idempotent_requests.storage.base import KeyValueStore
from idempotent_requests.storage.memory import MemoryKeyValueStore
from idempotent_requests.storage.redis_store import RedisKeyValueStore

logger = get_logger(__name__)


class KeyValueService:
    """Registry of key-value stores addressed by name.

    Attributes:
        _factory: Builds a new store for a name seen for the first time.
        _stores: Stores created or registered so far.
        _lock: Guards _stores.
    """

    def __init__(self, factory: Callable[[str], KeyValueStore] | None = None) -> None:
        """Initialize the service.

        Args:
            factory: Called with the store name to create missing stores.
                Defaults to a fresh MemoryKeyValueStore per name.
        """
        self._factory = factory or (lambda _name: MemoryKeyValueStore())
        self._stores: dict[str, KeyValueStore] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: IdempotencyConfig) -> "KeyValueService":
        """Create a service whose stores use the configured backend.

        With the "redis" adapter every named store shares one connection URL
        and is namespaced by its name.
        """
        if config.storage_adapter == "redis":
            url = config.redis_url
            return cls(lambda name: RedisKeyValueStore.from_url(url, namespace=name))
        return cls()

    def get_store(self, name: str) -> KeyValueStore:
        """Return the store registered under name, creating it if needed."""
        with self._lock:
            store = self._stores.get(name)
            if store is None:
                store = self._factory(name)
                self._stores[name] = store
                logger.debug("kv.store_created", store=name, backend=type(store).__name__)
            return store

    def register(self, name: str, store: KeyValueStore) -> None:
        """Install store under name, replacing any previous one."""
        with self._lock:
            self._stores[name] = store

    def names(self) -> list[str]:
        """Names of the stores created or registered so far."""
        with self._lock:
            return sorted(self._stores)
