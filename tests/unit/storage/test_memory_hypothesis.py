"""Property-based tests for MemoryKeyValueStore.

This test suite uses Hypothesis to check the store against a plain dict
model under arbitrary operation sequences and clock movements.
"""

from hypothesis import given
from hypothesis import strategies as st

from idempotent_requests.storage.memory import MemoryKeyValueStore

# Strategies
key_strategy = st.text(min_size=1, max_size=50)
value_strategy = st.binary(max_size=200)
ttl_strategy = st.integers(min_value=0, max_value=3600)

operation_strategy = st.one_of(
    st.tuples(st.just("put"), key_strategy, value_strategy, ttl_strategy),
    st.tuples(st.just("delete"), key_strategy),
    st.tuples(st.just("advance"), st.integers(min_value=0, max_value=600)),
)


class TestMemoryStoreProperties:
    """Property-based tests for MemoryKeyValueStore."""

    @given(key=key_strategy)
    def test_get_nonexistent_always_returns_none(self, key: str) -> None:
        assert MemoryKeyValueStore().get(key) is None

    @given(key=key_strategy, value=value_strategy, ttl=ttl_strategy)
    def test_put_then_get_returns_value(self, key: str, value: bytes, ttl: int) -> None:
        store = MemoryKeyValueStore(clock=lambda: 0.0)
        store.put(key, value, ttl_seconds=ttl)
        assert store.get(key) == value

    @given(key=key_strategy, text=st.text(max_size=100))
    def test_str_values_roundtrip_as_utf8(self, key: str, text: str) -> None:
        store = MemoryKeyValueStore()
        store.put(key, text)
        assert store.get(key) == text.encode("utf-8")

    @given(ops=st.lists(operation_strategy, max_size=40))
    def test_matches_dict_model(self, ops: list[tuple]) -> None:
        now = [0.0]
        store = MemoryKeyValueStore(clock=lambda: now[0])
        model: dict[str, tuple[bytes, float | None]] = {}

        for op in ops:
            if op[0] == "put":
                _, key, value, ttl = op
                store.put(key, value, ttl_seconds=ttl)
                model[key] = (value, now[0] + ttl if ttl > 0 else None)
            elif op[0] == "delete":
                store.delete(op[1])
                model.pop(op[1], None)
            else:
                now[0] += op[1]

            for key, (value, deadline) in model.items():
                expected = None if deadline is not None and deadline <= now[0] else value
                assert store.get(key) == expected

    @given(ttls=st.lists(st.integers(min_value=1, max_value=100), max_size=30), elapsed=st.integers(0, 120))
    def test_purge_removes_exactly_expired(self, ttls: list[int], elapsed: int) -> None:
        now = [0.0]
        store = MemoryKeyValueStore(clock=lambda: now[0])
        for i, ttl in enumerate(ttls):
            store.put(f"k{i}", b"v", ttl_seconds=ttl)

        now[0] = float(elapsed)

        assert store.purge_expired() == sum(1 for ttl in ttls if ttl <= elapsed)
        assert len(store) == sum(1 for ttl in ttls if ttl > elapsed)
