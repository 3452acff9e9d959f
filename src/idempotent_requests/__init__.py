"""
Idempotent execution of mutating HTTP requests.

A client-supplied idempotency key makes the server run a request at most once
within a time window: duplicates that arrive while it runs get 409 Conflict,
and duplicates that arrive afterwards get the original response replayed.
"""

from idempotent_requests.config import IdempotencyConfig
from idempotent_requests.core.capture import BufferedResponse, ResponseCapture
from idempotent_requests.core.interceptor import Outcome, Request, RequestInterceptor
from idempotent_requests.core.store import IdempotencyStore
from idempotent_requests.models import EntryState, StoreEntry

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "BufferedResponse",
    "EntryState",
    "IdempotencyConfig",
    "IdempotencyStore",
    "Outcome",
    "Request",
    "RequestInterceptor",
    "ResponseCapture",
    "StoreEntry",
]
