"""Responses produced without running the downstream pipeline.

The interceptor resolves some requests straight from the store:

1. COMPLETED entries replay the stored body and status verbatim
2. IN_PROGRESS entries get a deterministic 409 conflict
3. Inconsistent entries get a 500 instead of a guessed status

Examples:
    Replaying a stored response::

        from idempotent_requests.core.capture import BufferedResponse
        from idempotent_requests.core.replay import replay_response
        from idempotent_requests.models import StoreEntry

        response = BufferedResponse()
        replay_response(StoreEntry.completed(200, b"hello"), response)
        # response.status == 200, response.body == b"hello"
"""

from idempotent_requests.core.capture import ResponseWriter
from idempotent_requests.models import EntryState, StoreEntry

CONFLICT_STATUS = 409
INTERNAL_ERROR_STATUS = 500


def conflict_message(key: str) -> str:
    return f"Idempotent request already in progress for key '{key}'"


def replay_response(entry: StoreEntry, writer: ResponseWriter) -> None:
    """Write a stored response to writer.

    The body is written before the status is set, exactly as the original
    pipeline's bytes were captured.

    Args:
        entry: A COMPLETED entry.
        writer: The response channel of the duplicate request.

    Raises:
        ValueError: If entry is not COMPLETED.
    """
    if entry.state != EntryState.COMPLETED or entry.status is None or entry.content is None:
        raise ValueError(f"Cannot replay a {entry.state.value} entry")

    writer.write(entry.content)
    writer.set_status(entry.status)


def write_conflict(key: str, writer: ResponseWriter) -> None:
    """Write the 409 response for a request whose key is still in progress."""
    writer.set_status(CONFLICT_STATUS)
    writer.set_header("content-type", "text/plain; charset=utf-8")
    writer.write(conflict_message(key))


def write_internal_error(message: str, writer: ResponseWriter) -> None:
    """Write a plain-text 500 response."""
    writer.set_status(INTERNAL_ERROR_STATUS)
    writer.set_header("content-type", "text/plain; charset=utf-8")
    writer.write(message)
