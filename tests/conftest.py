"""
Pytest configuration and shared fixtures for idempotent_requests tests.
"""

from collections.abc import Callable

import pytest

from idempotent_requests.config import IdempotencyConfig
from idempotent_requests.core.capture import ResponseWriter
from idempotent_requests.core.interceptor import Request, RequestInterceptor
from idempotent_requests.core.store import IdempotencyStore
from idempotent_requests.storage.memory import MemoryKeyValueStore

HEADER = "NuxeoIdempotencyKey"
TTL = 30


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingPipeline:
    """Downstream pipeline that counts its calls and writes a fixed response."""

    def __init__(
        self,
        status: int = 200,
        body: bytes | str = b"test content",
        error: Exception | None = None,
        during: Callable[[], None] | None = None,
    ) -> None:
        self.status = status
        self.body = body
        self.error = error
        self.during = during
        self.calls = 0

    def __call__(self, request: Request, response: ResponseWriter) -> None:
        self.calls += 1
        if self.during is not None:
            self.during()
        if self.error is not None:
            raise self.error
        response.set_status(self.status)
        response.write(self.body)


@pytest.fixture
def clock() -> FakeClock:
    """Provide a controllable clock for TTL tests."""
    return FakeClock()


@pytest.fixture
def kv(clock: FakeClock) -> MemoryKeyValueStore:
    """Provide an empty in-memory key-value store driven by the fake clock."""
    return MemoryKeyValueStore(clock=clock)


@pytest.fixture
def store(kv: MemoryKeyValueStore) -> IdempotencyStore:
    """Provide idempotency entries on the in-memory store."""
    return IdempotencyStore(kv)


@pytest.fixture
def config() -> IdempotencyConfig:
    """Provide a config with a short TTL."""
    return IdempotencyConfig(ttl_seconds=TTL)


@pytest.fixture
def interceptor(store: IdempotencyStore, config: IdempotencyConfig) -> RequestInterceptor:
    """Provide an interceptor on the in-memory store."""
    return RequestInterceptor(store, config)


@pytest.fixture
def make_pipeline() -> type[RecordingPipeline]:
    """Provide the recording pipeline class."""
    return RecordingPipeline


@pytest.fixture
def post_request() -> Callable[..., Request]:
    """Build POST requests carrying the given idempotency key (or none)."""

    def _build(key: str | None = "mykey", method: str = "POST") -> Request:
        headers = {HEADER: key} if key is not None else {}
        return Request(method, path="/api/documents", headers=headers)

    return _build
