"""Core type definitions for idempotent request handling.

The store keeps each entry as two raw sub-records (content and status). They
are decoded exactly once, when the store is read, into a StoreEntry whose
``state`` tells the interceptor what to do. Nothing downstream of the read
looks at raw field combinations again.

Examples:
    Building entries::

        from idempotent_requests.models import EntryState, StoreEntry

        StoreEntry.absent().state
        # EntryState.ABSENT

        entry = StoreEntry.completed(status=201, content=b'{"id": 1}')
        entry.state, entry.status
        # (EntryState.COMPLETED, 201)
"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class EntryState(str, Enum):
    """Coordination state of an idempotency key.

    Attributes:
        ABSENT: No entry (never seen, cleared, or expired). Eligible for execution.
        IN_PROGRESS: The in-progress marker is stored; a request is executing.
        COMPLETED: A captured response (status and body) is stored for replay.
    """

    ABSENT = "ABSENT"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class StoreEntry(BaseModel):
    """Decoded view of the entry stored for one idempotency key.

    Only COMPLETED entries carry a status and content; the validator rejects
    any other combination.

    Attributes:
        state: Coordination state of the key.
        status: Captured HTTP status code (COMPLETED only).
        content: Captured response body (COMPLETED only).
    """

    state: EntryState = Field(
        ...,
        description="Coordination state of the key",
    )
    status: int | None = Field(
        default=None,
        description="Captured HTTP status code",
        ge=100,
        le=599,
    )
    content: bytes | None = Field(
        default=None,
        description="Captured response body",
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_state_fields(self) -> "StoreEntry":
        """Check that status and content match the state.

        Raises:
            ValueError: If a COMPLETED entry lacks status or content, or a
                non-COMPLETED entry carries either.
        """
        if self.state == EntryState.COMPLETED:
            if self.status is None or self.content is None:
                raise ValueError("COMPLETED entry requires both status and content")
        elif self.status is not None or self.content is not None:
            raise ValueError(f"{self.state.value} entry must not carry status or content")
        return self

    @classmethod
    def absent(cls) -> "StoreEntry":
        return cls(state=EntryState.ABSENT)

    @classmethod
    def in_progress(cls) -> "StoreEntry":
        return cls(state=EntryState.IN_PROGRESS)

    @classmethod
    def completed(cls, status: int, content: bytes) -> "StoreEntry":
        return cls(state=EntryState.COMPLETED, status=status, content=content)
