"""Unit tests for MemoryKeyValueStore.

This test suite covers:
    - Basic operations (get, put, delete)
    - TTL expiry and purging
    - Concurrent access from threads
    - Edge cases
"""

import threading

import pytest

from idempotent_requests.storage.memory import MemoryKeyValueStore


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def adapter(clock):
    """Create a fresh MemoryKeyValueStore for each test."""
    return MemoryKeyValueStore(clock=clock)


# ============================================================================
# Basic Operations
# ============================================================================


def test_get_nonexistent_key(adapter):
    """Test that get() returns None for nonexistent key."""
    assert adapter.get("nonexistent") is None


def test_put_and_get_bytes(adapter):
    adapter.put("k", b"\x00\x01binary")
    assert adapter.get("k") == b"\x00\x01binary"


def test_put_str_is_utf8_encoded(adapter):
    adapter.put("k", "héllo")
    assert adapter.get("k") == "héllo".encode("utf-8")


def test_put_overwrites(adapter):
    adapter.put("k", b"one")
    adapter.put("k", b"two")
    assert adapter.get("k") == b"two"


def test_put_none_deletes(adapter):
    adapter.put("k", b"one")
    adapter.put("k", None)
    assert adapter.get("k") is None
    assert len(adapter) == 0


def test_put_empty_value(adapter):
    adapter.put("k", b"")
    assert adapter.get("k") == b""


def test_delete(adapter):
    adapter.put("k", b"one")
    adapter.delete("k")
    assert adapter.get("k") is None


def test_delete_missing_key(adapter):
    adapter.delete("never-set")
    assert len(adapter) == 0


def test_clear(adapter):
    adapter.put("a", b"1")
    adapter.put("b", b"2")
    adapter.clear()
    assert len(adapter) == 0


# ============================================================================
# TTL
# ============================================================================


def test_value_visible_before_ttl(adapter, clock):
    adapter.put("k", b"v", ttl_seconds=10)
    clock.now = 9.999
    assert adapter.get("k") == b"v"


def test_value_expires_at_ttl(adapter, clock):
    adapter.put("k", b"v", ttl_seconds=10)
    clock.now = 10.0
    assert adapter.get("k") is None
    # dropped lazily on access
    assert len(adapter) == 0


def test_zero_ttl_never_expires(adapter, clock):
    adapter.put("k", b"v", ttl_seconds=0)
    clock.now = 10**9
    assert adapter.get("k") == b"v"


def test_put_refreshes_ttl(adapter, clock):
    adapter.put("k", b"v", ttl_seconds=10)
    clock.now = 8.0
    adapter.put("k", b"v2", ttl_seconds=10)
    clock.now = 15.0
    assert adapter.get("k") == b"v2"


def test_purge_expired(adapter, clock):
    adapter.put("short", b"1", ttl_seconds=5)
    adapter.put("long", b"2", ttl_seconds=50)
    adapter.put("forever", b"3")
    clock.now = 10.0

    removed = adapter.purge_expired()

    assert removed == 1
    assert len(adapter) == 2
    assert adapter.get("long") == b"2"
    assert adapter.get("forever") == b"3"


def test_purge_expired_empty(adapter):
    assert adapter.purge_expired() == 0


def test_default_clock_is_monotonic():
    store = MemoryKeyValueStore()
    store.put("k", b"v", ttl_seconds=60)
    assert store.get("k") == b"v"


# ============================================================================
# Concurrency
# ============================================================================


def test_concurrent_puts_different_keys(adapter):
    def worker(n):
        for i in range(100):
            adapter.put(f"k{n}-{i}", str(i))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(adapter) == 800


def test_concurrent_put_delete_same_key(adapter):
    def writer():
        for _ in range(500):
            adapter.put("k", b"v")

    def deleter():
        for _ in range(500):
            adapter.delete("k")

    threads = [threading.Thread(target=writer), threading.Thread(target=deleter)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert adapter.get("k") in (None, b"v")
