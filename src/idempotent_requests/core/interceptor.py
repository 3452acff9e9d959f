"""Framework-agnostic idempotency interceptor.

This module provides the request interceptor that coordinates mutating
requests by idempotency key. For every coordinated request it reads the
key's entry once and acts on its state:

    ABSENT       reserve the key (in-progress marker), run the pipeline while
                 capturing its response, then store the response, or clear
                 the key if the pipeline raised or answered with status >= 400
    IN_PROGRESS  answer 409 without running the pipeline
    COMPLETED    replay the stored body and status without running the pipeline

Requests whose method is not enabled, or which carry no key header, go
straight to the pipeline and never touch the store.

Concurrency:
    handle() is synchronous: it blocks its thread for the whole pipeline call
    and takes no lock. Reading ABSENT and writing the marker are two separate
    store operations, so two first-time requests with the same key arriving
    within that gap can both run the pipeline. Closing the gap needs a
    compare-and-set store primitive, which the KeyValueStore contract does
    not offer.

    If the caller goes away mid-pipeline nothing is cleaned up here; the
    reservation disappears when its TTL elapses.

Examples:
    Using the interceptor directly::

        from idempotent_requests.config import IdempotencyConfig
        from idempotent_requests.core.capture import BufferedResponse
        from idempotent_requests.core.interceptor import Request, RequestInterceptor

        interceptor = RequestInterceptor.from_config(IdempotencyConfig())

        def pipeline(request, response):
            response.set_status(201)
            response.write(b"created")

        request = Request("POST", headers={"NuxeoIdempotencyKey": "K1"})
        response = BufferedResponse()
        interceptor.handle(request, response, pipeline)
"""

import time
from collections.abc import Callable, Mapping
from enum import Enum
from types import TracebackType
from typing import Any

from idempotent_requests.config import IdempotencyConfig
from idempotent_requests.core.capture import ResponseCapture, ResponseWriter
from idempotent_requests.core.replay import (
    replay_response,
    write_conflict,
    write_internal_error,
)
from idempotent_requests.core.store import IdempotencyStore
from idempotent_requests.exceptions import InconsistentEntryError
from idempotent_requests.models import EntryState
from idempotent_requests.observability.logging import get_logger
from idempotent_requests.observability.metrics import (
    decrement_in_progress,
    increment_in_progress,
    record_execution_time,
    record_request,
)
from idempotent_requests.storage.registry import KeyValueService
from idempotent_requests.utils.headers import get_header_value

logger = get_logger(__name__)


class Request:
    """Abstract request representation.

    Framework adapters convert their request objects into this format. The
    interceptor only reads ``method`` and ``headers``; ``raw`` carries the
    framework object through to the downstream pipeline untouched.

    Attributes:
        method: HTTP method (GET, POST, etc.)
        path: URL path
        query_string: Query string without leading '?'
        headers: Request headers as dict
        raw: Framework-specific request object (environ, ASGI scope, ...)
    """

    def __init__(
        self,
        method: str,
        path: str = "/",
        query_string: str = "",
        headers: Mapping[str, str] | None = None,
        raw: Any = None,
    ) -> None:
        self.method = method
        self.path = path
        self.query_string = query_string
        self.headers = dict(headers or {})
        self.raw = raw


Downstream = Callable[[Request, ResponseWriter], None]


class Outcome(str, Enum):
    """How handle() resolved a request."""

    PASS_THROUGH = "pass_through"
    EXECUTED = "executed"
    REPLAYED = "replayed"
    CONFLICT = "conflict"
    ERROR = "error"


class _Reservation:
    """Scoped ownership of an in-progress key.

    Leaving the block without complete() having succeeded, whether by normal
    exit or by an exception, clears the key exactly once. Exceptions are never
    suppressed, and a failed clear never replaces the exception that ended
    the block; the reservation then lapses with its TTL.
    """

    def __init__(self, store: IdempotencyStore, key: str, ttl_seconds: int, log: Any) -> None:
        self._store = store
        self._key = key
        self._ttl_seconds = ttl_seconds
        self._log = log
        self._completed = False

    def __enter__(self) -> "_Reservation":
        return self

    def complete(self, status: int, content: bytes) -> None:
        self._store.write_completed(self._key, status, content, self._ttl_seconds)
        self._completed = True
        self._log.info("idempotency.completed", status=status, body_bytes=len(content))

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        try:
            if self._completed:
                return False
            if exc_type is None:
                self._store.clear(self._key)
                self._log.info("idempotency.cleared")
                return False
            try:
                self._store.clear(self._key)
            except Exception as e:
                self._log.error(
                    "idempotency.clear_failed",
                    error_type=exc_type.__name__,
                    clear_error=str(e),
                )
            else:
                self._log.warning("idempotency.cleared", error_type=exc_type.__name__)
        finally:
            decrement_in_progress()
        return False


class RequestInterceptor:
    """Coordinates mutating requests by idempotency key.

    Attributes:
        store: Entries for the configured store name
        config: Configuration object
    """

    def __init__(self, store: IdempotencyStore, config: IdempotencyConfig | None = None) -> None:
        """Initialize the interceptor.

        Args:
            store: Idempotency entries for the configured store name
            config: Configuration object (uses defaults if not provided)
        """
        self.store = store
        self.config = config or IdempotencyConfig()
        self._methods = frozenset(self.config.enabled_methods)

    @classmethod
    def from_config(
        cls,
        config: IdempotencyConfig,
        kv_service: KeyValueService | None = None,
    ) -> "RequestInterceptor":
        """Build an interceptor on the store named by config.store_name.

        Args:
            config: Configuration object
            kv_service: Registry to resolve the store from. Defaults to a new
                service for the configured backend.
        """
        service = kv_service or KeyValueService.from_config(config)
        return cls(IdempotencyStore(service.get_store(config.store_name)), config)

    def is_coordinated(self, request: Request) -> bool:
        """Whether handle() would consult the store for this request."""
        return request.method.upper() in self._methods and self._extract_key(request) is not None

    def handle(self, request: Request, response: ResponseWriter, downstream: Downstream) -> Outcome:
        """Process one request.

        Args:
            request: The incoming request
            response: The response channel of the caller
            downstream: The pipeline that actually serves the request

        Returns:
            How the request was resolved

        Raises:
            Exception: Whatever downstream raised, unchanged, after the key
                has been cleared.
            StorageError: If the key-value backend fails.
        """
        if request.method.upper() not in self._methods:
            return self._pass_through(request, response, downstream)

        key = self._extract_key(request)
        if key is None:
            return self._pass_through(request, response, downstream)

        log = logger.bind(key=key, store=self.config.store_name)

        try:
            entry = self.store.read(key)
        except InconsistentEntryError as e:
            log.error("idempotency.inconsistent_entry", error=e.message, raw_status=e.raw_status)
            write_internal_error(f"Idempotency error: {e.message}", response)
            record_request(Outcome.ERROR.value, response.status)
            return Outcome.ERROR

        if entry.state == EntryState.IN_PROGRESS:
            log.info("idempotency.conflict")
            write_conflict(key, response)
            record_request(Outcome.CONFLICT.value, response.status)
            return Outcome.CONFLICT

        if entry.state == EntryState.COMPLETED:
            replay_response(entry, response)
            log.info("idempotency.replayed", status=entry.status)
            record_request(Outcome.REPLAYED.value, response.status)
            return Outcome.REPLAYED

        return self._execute(key, request, response, downstream, log)

    def _pass_through(
        self, request: Request, response: ResponseWriter, downstream: Downstream
    ) -> Outcome:
        downstream(request, response)
        logger.debug("idempotency.passthrough", method=request.method, path=request.path)
        record_request(Outcome.PASS_THROUGH.value, response.status)
        return Outcome.PASS_THROUGH

    def _execute(
        self,
        key: str,
        request: Request,
        response: ResponseWriter,
        downstream: Downstream,
        log: Any,
    ) -> Outcome:
        ttl = self.config.ttl_seconds
        self.store.write_in_progress(key, ttl)
        increment_in_progress()
        log.debug("idempotency.reserved", ttl_seconds=ttl)

        capture = ResponseCapture(response, max_bytes=self.config.max_capture_bytes)
        start_time = time.perf_counter()

        with _Reservation(self.store, key, ttl, log) as reservation:
            downstream(request, capture)

            status = capture.captured_status()
            if status >= 400:
                log.info("idempotency.error_status", status=status)
            elif capture.overflowed:
                log.warning("idempotency.capture_overflow", limit=capture.max_bytes)
            else:
                reservation.complete(status, capture.captured_body())

        record_execution_time((time.perf_counter() - start_time) * 1000)
        record_request(Outcome.EXECUTED.value, capture.captured_status())
        return Outcome.EXECUTED

    def _extract_key(self, request: Request) -> str | None:
        """Extract the idempotency key from the configured header.

        Returns:
            The stripped key, or None if the header is missing or blank.
        """
        value = get_header_value(request.headers, self.config.header_name)
        if value is None:
            return None
        value = value.strip()
        return value or None
