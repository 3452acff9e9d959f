"""Core idempotency coordination.

This package contains the framework-agnostic logic:
- Store: status/content entries on top of a key-value store
- Capture: write-through response recording
- Replay: responses resolved from the store (replay, conflict)
- Interceptor: the per-key state machine
- Sweeper: purge of expired in-memory entries

Framework adapters (WSGI, ASGI) wrap the interceptor.
"""

from idempotent_requests.core.capture import BufferedResponse, ResponseCapture, ResponseWriter
from idempotent_requests.core.interceptor import Outcome, Request, RequestInterceptor
from idempotent_requests.core.store import IdempotencyStore

__all__ = [
    "BufferedResponse",
    "IdempotencyStore",
    "Outcome",
    "Request",
    "RequestInterceptor",
    "ResponseCapture",
    "ResponseWriter",
]
