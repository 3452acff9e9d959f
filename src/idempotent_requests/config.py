"""Configuration module for idempotent request handling.

This module provides the IdempotencyConfig class: which methods are
coordinated, which header carries the key, which named store holds the
entries and how long they live.

Example:
    Basic usage with defaults:

        >>> config = IdempotencyConfig()
        >>> config.enabled_methods
        ['POST']
        >>> config.ttl_seconds
        330

    Loading from environment:

        >>> import os
        >>> os.environ['IDEMPOTENCY_TTL_SECONDS'] = '600'
        >>> config = IdempotencyConfig.from_env()

    Loading from servlet-style init parameters:

        >>> config = IdempotencyConfig.from_init_params({
        ...     'idempotency_keyvaluestore': 'mystore',
        ...     'idempotency_ttl_seconds': '30',
        ... })
        >>> config.store_name
        'mystore'
"""

import os
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from idempotent_requests.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_HEADER_NAME = "NuxeoIdempotencyKey"
DEFAULT_STORE_NAME = "requestcontroller"
DEFAULT_TTL_SECONDS = 330

# Init-parameter names understood by from_init_params()
STORE_PROPERTY = "idempotency_keyvaluestore"
TTL_SECONDS_PROPERTY = "idempotency_ttl_seconds"

VALID_HTTP_METHODS = {
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "DELETE",
    "CONNECT",
    "OPTIONS",
    "TRACE",
    "PATCH",
}


class IdempotencyConfig(BaseModel):
    """Configuration for the idempotency interceptor.

    Attributes:
        enabled_methods: HTTP methods whose requests are coordinated. Requests
            with any other method pass straight through. Default is POST only.
        header_name: Request header carrying the idempotency key. Looked up
            case-insensitively. Default is "NuxeoIdempotencyKey".
        store_name: Name of the key-value store holding the entries. Keys are
            scoped per store name. Default is "requestcontroller".
        ttl_seconds: Lifetime of both the in-progress reservation and the
            completed response. A value that does not parse as a positive
            integer is replaced by the default (330) and a warning is logged.
        max_capture_bytes: Largest response body retained for replay. Larger
            responses are still delivered but are not cached. 0 means
            unlimited. Default is 1048576 (1 MiB).
        storage_adapter: Key-value backend, "memory" or "redis".
        redis_url: Connection URL used when storage_adapter is "redis".
        sweep_interval_seconds: Interval of the optional purge task for the
            memory backend (1-3600).

    Note:
        This class is immutable (frozen=True). Create a new instance if you
        need different settings.
    """

    enabled_methods: list[str] | str = Field(
        default=["POST"],
        description="HTTP methods that are coordinated by idempotency key",
    )
    header_name: str = Field(
        default=DEFAULT_HEADER_NAME,
        description="Request header carrying the idempotency key",
    )
    store_name: str = Field(
        default=DEFAULT_STORE_NAME,
        description="Name of the key-value store holding idempotency entries",
    )
    ttl_seconds: int = Field(
        default=DEFAULT_TTL_SECONDS,
        description="Time-to-live in seconds for in-progress and completed entries",
    )
    max_capture_bytes: int = Field(
        default=1048576,
        description="Maximum response body size retained for replay (0=unlimited)",
    )
    storage_adapter: Literal["memory", "redis"] = Field(
        default="memory",
        description="Key-value backend for idempotency entries",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Connection URL for the Redis backend",
    )
    sweep_interval_seconds: int = Field(
        default=60,
        description="Interval in seconds between purges of expired memory entries (1-3600)",
    )

    model_config = {"frozen": True}

    @field_validator("enabled_methods", mode="before")
    @classmethod
    def validate_enabled_methods(cls, v: Any) -> list[str]:
        """Validate and normalize enabled HTTP methods.

        Args:
            v: List of HTTP method strings or comma-separated string.

        Returns:
            List of uppercase, validated HTTP methods.

        Raises:
            ValueError: If any method is not a valid HTTP method.
        """
        if isinstance(v, str):
            v = [method.strip() for method in v.split(",") if method.strip()]

        if not isinstance(v, list):
            raise ValueError("enabled_methods must be a list or comma-separated string")

        methods = [method.upper() for method in v]

        invalid_methods = set(methods) - VALID_HTTP_METHODS
        if invalid_methods:
            raise ValueError(
                f"Invalid HTTP methods: {', '.join(sorted(invalid_methods))}. "
                f"Valid methods are: {', '.join(sorted(VALID_HTTP_METHODS))}"
            )

        return methods

    @field_validator("header_name", "store_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty header and store names."""
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("ttl_seconds", mode="before")
    @classmethod
    def validate_ttl_seconds(cls, v: Any) -> int:
        """Parse the TTL, falling back to the default when it is malformed.

        A bad TTL must not prevent startup, so anything that is not a positive
        integer (or a string holding one) is replaced by DEFAULT_TTL_SECONDS.

        Args:
            v: Raw TTL value (int, or string from env/init parameters).

        Returns:
            The parsed TTL, or DEFAULT_TTL_SECONDS.

        Example:
            >>> IdempotencyConfig(ttl_seconds="abc").ttl_seconds
            330
        """
        if isinstance(v, bool):
            ttl = None
        else:
            try:
                ttl = int(str(v).strip())
            except ValueError:
                ttl = None

        if ttl is None or ttl < 1:
            logger.warning(
                "config.invalid_ttl",
                value=repr(v),
                default=DEFAULT_TTL_SECONDS,
            )
            return DEFAULT_TTL_SECONDS
        return ttl

    @field_validator("max_capture_bytes")
    @classmethod
    def validate_max_capture_bytes(cls, v: int) -> int:
        """Validate max capture bytes is non-negative.

        Raises:
            ValueError: If value is negative.
        """
        if v < 0:
            raise ValueError(f"max_capture_bytes must be >= 0, got {v}")
        return v

    @field_validator("sweep_interval_seconds")
    @classmethod
    def validate_sweep_interval_seconds(cls, v: int) -> int:
        """Validate sweep interval is within acceptable range.

        Raises:
            ValueError: If interval is not between 1 and 3600.
        """
        if not (1 <= v <= 3600):
            raise ValueError(f"sweep_interval_seconds must be between 1 and 3600, got {v}")
        return v

    @classmethod
    def from_env(cls, prefix: str = "IDEMPOTENCY_") -> "IdempotencyConfig":
        """Create configuration from environment variables.

        Variable names are the uppercase field names with the prefix, e.g.
        IDEMPOTENCY_TTL_SECONDS or IDEMPOTENCY_ENABLED_METHODS=POST,PUT.
        Missing variables keep their defaults.

        Args:
            prefix: Prefix for environment variable names.

        Returns:
            IdempotencyConfig instance populated from environment variables.
        """
        config_dict: dict[str, Any] = {}

        for field_name in cls.model_fields:
            env_value = os.environ.get(f"{prefix}{field_name.upper()}")
            if env_value is not None:
                config_dict[field_name] = env_value

        return cls(**config_dict)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "IdempotencyConfig":
        """Create configuration from a dictionary.

        Raises:
            ValidationError: If the dictionary contains invalid values.
        """
        return cls(**config_dict)

    @classmethod
    def from_init_params(cls, params: Mapping[str, str | None]) -> "IdempotencyConfig":
        """Create configuration from filter init parameters.

        Understands the "idempotency_keyvaluestore" and
        "idempotency_ttl_seconds" parameter names. Missing or None values keep
        their defaults.

        Args:
            params: Mapping of init parameter names to values.

        Returns:
            IdempotencyConfig instance.
        """
        config_dict: dict[str, Any] = {}

        store = params.get(STORE_PROPERTY)
        if store is not None:
            config_dict["store_name"] = store

        ttl = params.get(TTL_SECONDS_PROPERTY)
        if ttl is not None:
            config_dict["ttl_seconds"] = ttl

        return cls(**config_dict)
