"""Prometheus metrics definitions for bucketacl.

Metrics are opt-in: until ``init_metrics()`` is called the module-level
references stay ``None``, nothing is registered in the global registry and
``record_operation()`` is a no-op.
"""

from __future__ import annotations

from prometheus_client import Counter

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# ---------------------------------------------------------------------------
# ACL operation counter  (labels: operation, status)
# ---------------------------------------------------------------------------
acl_operations_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics. Safe to call repeatedly."""
    global _initialized, acl_operations_total

    if _initialized:
        return

    acl_operations_total = Counter(
        "bucketacl_operations_total",
        "Total ACL operations by type and outcome",
        ["operation", "status"],
    )

    _initialized = True


def record_operation(operation: str, status: str) -> None:
    """Count one ACL operation outcome (an HTTP status or an error code)."""
    if acl_operations_total is not None:
        acl_operations_total.labels(operation=operation, status=status).inc()
