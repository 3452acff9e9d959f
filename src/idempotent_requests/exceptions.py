"""Custom exceptions for idempotent request handling.

This module defines the exception hierarchy used by the interceptor and the
storage layer. A conflicting duplicate (same key while the first request is
still running) is NOT an exception: it is an ordinary 409 outcome.

Examples:
    Handling a storage error::

        from idempotent_requests.exceptions import StorageError

        try:
            entry = store.read(key)
        except StorageError as e:
            logger.error("storage.unavailable", error=str(e))
            raise

    Handling a corrupted entry::

        from idempotent_requests.exceptions import InconsistentEntryError

        try:
            entry = store.read(key)
        except InconsistentEntryError as e:
            logger.error("entry.inconsistent", key=e.key, raw_status=e.raw_status)
"""


class IdempotencyError(Exception):
    """Base exception for all idempotency-related errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize the exception with a message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


class StorageError(IdempotencyError):
    """Key-value backend operation failed.

    Raised by store implementations when the backend cannot complete a
    get/put/delete (connection refused, timeout, authentication). The
    interceptor does not swallow it: a request whose coordination state cannot
    be read or written fails rather than running unprotected.

    Attributes:
        message: Human-readable error description.
        cause: The underlying exception that caused the storage error.

    Examples:
        Wrapping a backend failure::

            try:
                raw = self._client.get(key)
            except RedisError as e:
                raise StorageError(f"GET {key!r} failed: {e}", cause=e) from e
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        """Initialize the storage error with details.

        Args:
            message: Human-readable error description.
            cause: The underlying exception that caused the storage error.
        """
        super().__init__(message)
        self.cause = cause


class InconsistentEntryError(IdempotencyError):
    """A stored entry violates the status/content invariant.

    Raised when the content sub-record holds a captured response body but the
    status sub-record is missing or is not an integer. This points at store
    corruption or a faulty writer, so the interceptor surfaces it as a server
    error instead of guessing a status code.

    Attributes:
        message: Human-readable error description.
        key: The idempotency key whose entry is inconsistent.
        raw_status: The raw status value found in the store, if any.
    """

    def __init__(self, message: str, key: str, raw_status: bytes | None = None) -> None:
        """Initialize the inconsistency error with details.

        Args:
            message: Human-readable error description.
            key: The idempotency key whose entry is inconsistent.
            raw_status: The raw status value read from the store.
        """
        super().__init__(message)
        self.key = key
        self.raw_status = raw_status
