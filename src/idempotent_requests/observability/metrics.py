"""Prometheus metrics for idempotent request handling.

Metrics:

- Requests by outcome (executed, replayed, conflict, error, pass_through)
- Downstream execution time for fresh executions
- Keys currently reserved (in-progress marker written by this process)
- Sweeper runs and entries purged

Examples:
    >>> from idempotent_requests.observability.metrics import record_request
    >>> record_request("replayed", 200)
"""

from prometheus_client import Counter, Gauge, Histogram

# Labels: outcome (executed, replayed, conflict, error, pass_through), status_code
requests_total = Counter(
    "idempotency_requests_total",
    "Total number of requests seen by the idempotency interceptor",
    ["outcome", "status_code"],
)

# Only fresh executions are observed, never replays
execution_time_ms = Histogram(
    "idempotency_execution_time_ms",
    "Downstream execution time in milliseconds (fresh executions only)",
    buckets=[10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000],
)

in_progress_keys = Gauge(
    "idempotency_in_progress_keys",
    "Number of idempotency keys this process currently holds in progress",
)

sweeps_total = Counter(
    "idempotency_sweeps_total",
    "Total number of expired-entry sweeps performed",
)

swept_entries_total = Counter(
    "idempotency_swept_entries_total",
    "Total number of expired entries purged by the sweeper",
)


def record_request(outcome: str, status_code: int) -> None:
    """Record a handled request.

    Args:
        outcome: How the request was resolved
        status_code: HTTP status code delivered to the caller

    Examples:
        >>> record_request("conflict", 409)
    """
    requests_total.labels(outcome=outcome, status_code=str(status_code)).inc()


def record_execution_time(exec_time_ms: float) -> None:
    """Record downstream execution time for a fresh execution.

    Args:
        exec_time_ms: Execution time in milliseconds
    """
    execution_time_ms.observe(exec_time_ms)


def increment_in_progress() -> None:
    """Increment the in-progress gauge when a reservation is written."""
    in_progress_keys.inc()


def decrement_in_progress() -> None:
    """Decrement the in-progress gauge when a reservation is resolved."""
    in_progress_keys.dec()


def record_sweep(entries_removed: int) -> None:
    """Record one sweeper pass.

    Args:
        entries_removed: Number of expired entries purged
    """
    sweeps_total.inc()
    swept_entries_total.inc(entries_removed)
