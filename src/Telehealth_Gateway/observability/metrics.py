"""Prometheus metrics for the resource gateway.

Key Responsibilities:
    - Count store requests by resource type, operation and outcome
    - Observe store request latency
    - Count optimistic rollbacks and discarded stale search responses

Collaborators:
    - Upstream: Transport clients, the mutation dispatcher and collections
    - Downstream: Prometheus scrape endpoint of the hosting process

Thread Safety:
    - Thread-safe: all metric operations use atomic Prometheus operations
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

STORE_REQUESTS_TOTAL = Counter(
    "gateway_store_requests_total",
    "Total number of resource store calls",
    ["resource_type", "operation", "outcome"],
)

STORE_REQUEST_DURATION_SECONDS = Histogram(
    "gateway_store_request_duration_seconds",
    "Duration of resource store calls",
    ["resource_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

OPTIMISTIC_ROLLBACKS_TOTAL = Counter(
    "gateway_optimistic_rollbacks_total",
    "Held-list mutations rolled back after a failed store call",
    ["resource_type", "operation"],
)

STALE_RESPONSES_TOTAL = Counter(
    "gateway_stale_responses_total",
    "Search responses discarded because a newer search was already applied",
    ["resource_type"],
)


def record_store_request(
    resource_type: str, operation: str, outcome: str, duration_seconds: float
) -> None:
    """Record one store call.

    Args:
        resource_type: Resource type the call addressed.
        operation: One of search, read, create, update, delete, capabilities.
        outcome: ``ok`` or the error reason code.
        duration_seconds: Wall time spent awaiting the store.
    """
    STORE_REQUESTS_TOTAL.labels(resource_type, operation, outcome).inc()
    STORE_REQUEST_DURATION_SECONDS.labels(resource_type, operation).observe(duration_seconds)


def record_rollback(resource_type: str, operation: str) -> None:
    OPTIMISTIC_ROLLBACKS_TOTAL.labels(resource_type, operation).inc()


def record_stale_response(resource_type: str) -> None:
    STALE_RESPONSES_TOTAL.labels(resource_type).inc()


__all__ = [
    "OPTIMISTIC_ROLLBACKS_TOTAL",
    "STALE_RESPONSES_TOTAL",
    "STORE_REQUESTS_TOTAL",
    "STORE_REQUEST_DURATION_SECONDS",
    "record_rollback",
    "record_stale_response",
    "record_store_request",
]
