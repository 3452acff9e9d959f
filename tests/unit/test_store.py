"""Unit tests for IdempotencyStore.

This test suite covers:
    - Decoding ABSENT / IN_PROGRESS / COMPLETED entries
    - Sub-record layout and TTLs
    - Inconsistent entries
    - Write ordering of write_completed() and clear()
"""

from unittest.mock import MagicMock, call

import pytest

from idempotent_requests.core.store import (
    INPROGRESS_MARKER,
    IdempotencyStore,
    content_key,
    status_key,
)
from idempotent_requests.exceptions import InconsistentEntryError
from idempotent_requests.models import EntryState

TTL = 30


class TestKeys:
    def test_prefixes(self):
        assert content_key("K1") == "c_K1"
        assert status_key("K1") == "s_K1"

    def test_marker_value(self):
        assert INPROGRESS_MARKER == "IDEMPOTENCY_INPROGRESS_MARKER"


class TestRead:
    def test_unknown_key_is_absent(self, store):
        assert store.read("K1").state == EntryState.ABSENT

    def test_marker_is_in_progress(self, store):
        store.write_in_progress("K1", TTL)
        entry = store.read("K1")
        assert entry.state == EntryState.IN_PROGRESS
        assert entry.status is None

    def test_completed(self, store):
        store.write_completed("K1", 201, b"created", TTL)
        entry = store.read("K1")
        assert entry.state == EntryState.COMPLETED
        assert entry.status == 201
        assert entry.content == b"created"

    def test_empty_body_is_completed(self, store):
        store.write_completed("K1", 204, b"", TTL)
        entry = store.read("K1")
        assert entry.state == EntryState.COMPLETED
        assert entry.content == b""

    def test_lingering_status_without_content_is_absent(self, store, kv):
        kv.put(status_key("K1"), "200", TTL)
        assert store.read("K1").state == EntryState.ABSENT

    def test_keys_are_independent(self, store):
        store.write_in_progress("K1", TTL)
        assert store.read("K2").state == EntryState.ABSENT


class TestInconsistentEntries:
    def test_content_without_status(self, store, kv):
        kv.put(content_key("K1"), b"orphan", TTL)
        with pytest.raises(InconsistentEntryError) as exc_info:
            store.read("K1")
        assert exc_info.value.key == "K1"
        assert exc_info.value.raw_status is None

    @pytest.mark.parametrize("raw", [b"abc", b"", b"2OO", b"99", b"600", b"-200"])
    def test_invalid_status(self, store, kv, raw):
        kv.put(content_key("K1"), b"body", TTL)
        kv.put(status_key("K1"), raw, TTL)
        with pytest.raises(InconsistentEntryError) as exc_info:
            store.read("K1")
        assert exc_info.value.raw_status == raw


class TestWrites:
    def test_in_progress_uses_ttl(self, store, kv, clock):
        store.write_in_progress("K1", TTL)
        clock.advance(TTL - 1)
        assert store.read("K1").state == EntryState.IN_PROGRESS
        clock.advance(1)
        assert store.read("K1").state == EntryState.ABSENT

    def test_completed_uses_ttl(self, store, clock):
        store.write_completed("K1", 200, b"x", TTL)
        clock.advance(TTL)
        assert store.read("K1").state == EntryState.ABSENT

    def test_completed_overwrites_marker(self, store):
        store.write_in_progress("K1", TTL)
        store.write_completed("K1", 200, b"done", TTL)
        assert store.read("K1").content == b"done"

    def test_status_stored_as_ascii(self, store, kv):
        store.write_completed("K1", 201, b"x", TTL)
        assert kv.get(status_key("K1")) == b"201"

    def test_clear_removes_both(self, store, kv):
        store.write_completed("K1", 200, b"x", TTL)
        store.clear("K1")
        assert kv.get(content_key("K1")) is None
        assert kv.get(status_key("K1")) is None
        assert store.read("K1").state == EntryState.ABSENT

    def test_clear_unknown_key(self, store):
        store.clear("never-seen")
        assert store.read("never-seen").state == EntryState.ABSENT


class TestWriteOrdering:
    def test_completed_writes_status_first(self):
        kv = MagicMock()
        IdempotencyStore(kv).write_completed("K1", 200, b"x", TTL)
        assert kv.put.call_args_list == [
            call("s_K1", "200", TTL),
            call("c_K1", b"x", TTL),
        ]

    def test_clear_deletes_content_first(self):
        kv = MagicMock()
        IdempotencyStore(kv).clear("K1")
        assert kv.delete.call_args_list == [call("c_K1"), call("s_K1")]

    def test_in_progress_writes_content_only(self):
        kv = MagicMock()
        IdempotencyStore(kv).write_in_progress("K1", TTL)
        kv.put.assert_called_once_with("c_K1", INPROGRESS_MARKER, TTL)
