"""Observability utilities for idempotent request handling.

This package provides:
- Prometheus metrics for outcomes, execution time and reservations
- Structured logging with contextual information
"""

from idempotent_requests.observability.logging import configure_logging, get_logger
from idempotent_requests.observability.metrics import (
    record_execution_time,
    record_request,
    record_sweep,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "record_request",
    "record_execution_time",
    "record_sweep",
]
