"""Idempotency entries on top of a key-value store.

Each idempotency key maps to two sub-records sharing one TTL:

    c_<key>   content: the in-progress marker, or the captured response body
    s_<key>   status:  the captured HTTP status code, as ASCII digits

read() decodes these raw values into a StoreEntry once; the interceptor
never inspects the sub-records itself.

Write ordering keeps concurrent readers away from the inconsistent shapes:

    write_completed()  status first, then content. A reader in between sees
                       the marker (IN_PROGRESS), never content without status.
    clear()            content first, then status. A reader in between sees
                       no content (ABSENT); a lingering status is ignored.

Examples:
    >>> from idempotent_requests.storage.memory import MemoryKeyValueStore
    >>> store = IdempotencyStore(MemoryKeyValueStore())
    >>> store.read("K1").state
    <EntryState.ABSENT: 'ABSENT'>
    >>> store.write_in_progress("K1", 330)
    >>> store.read("K1").state
    <EntryState.IN_PROGRESS: 'IN_PROGRESS'>
    >>> store.write_completed("K1", 200, b"hello", 330)
    >>> store.read("K1").content
    b'hello'
"""

from idempotent_requests.exceptions import InconsistentEntryError
from idempotent_requests.models import StoreEntry
from idempotent_requests.storage.base import KeyValueStore

INPROGRESS_MARKER = "IDEMPOTENCY_INPROGRESS_MARKER"
STATUS_PREFIX = "s_"
CONTENT_PREFIX = "c_"

_INPROGRESS_MARKER_BYTES = INPROGRESS_MARKER.encode("ascii")


def content_key(key: str) -> str:
    return CONTENT_PREFIX + key


def status_key(key: str) -> str:
    return STATUS_PREFIX + key


class IdempotencyStore:
    """Reads and writes idempotency entries in a key-value store.

    No operation is atomic with respect to another: there is no
    compare-and-set, so a read() followed by write_in_progress() can race
    with the same pair issued by another request.

    Attributes:
        kv: The underlying key-value store.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    def read(self, key: str) -> StoreEntry:
        """Decode the entry stored for key.

        Args:
            key: The idempotency key.

        Returns:
            ABSENT, IN_PROGRESS or COMPLETED entry.

        Raises:
            InconsistentEntryError: If a response body is stored but the status
                sub-record is missing or is not a valid HTTP status code.
            StorageError: If the backend fails.
        """
        content = self.kv.get(content_key(key))
        if content is None:
            return StoreEntry.absent()
        if content == _INPROGRESS_MARKER_BYTES:
            return StoreEntry.in_progress()

        raw_status = self.kv.get(status_key(key))
        if raw_status is None:
            raise InconsistentEntryError(
                f"Stored response for key '{key}' has no status",
                key=key,
            )
        try:
            status = int(raw_status)
        except ValueError:
            status = None
        if status is None or not (100 <= status <= 599):
            raise InconsistentEntryError(
                f"Stored response for key '{key}' has invalid status {raw_status!r}",
                key=key,
                raw_status=raw_status,
            )
        return StoreEntry.completed(status=status, content=content)

    def write_in_progress(self, key: str, ttl_seconds: int) -> None:
        """Reserve key by storing the in-progress marker."""
        self.kv.put(content_key(key), INPROGRESS_MARKER, ttl_seconds)

    def write_completed(self, key: str, status: int, content: bytes, ttl_seconds: int) -> None:
        """Store the captured response for replay."""
        self.kv.put(status_key(key), str(status), ttl_seconds)
        self.kv.put(content_key(key), content, ttl_seconds)

    def clear(self, key: str) -> None:
        """Remove both sub-records, returning key to ABSENT."""
        self.kv.delete(content_key(key))
        self.kv.delete(status_key(key))
