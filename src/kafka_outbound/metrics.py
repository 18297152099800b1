"""
Prometheus metrics for the outbound adapter.
Registered on the global REGISTRY at import time.
"""

from prometheus_client import Counter, Histogram

DISPATCH_TOTAL = Counter(
    "kafka_outbound_dispatch_total",
    "Records submitted to the publish client",
    ["topic"],
)

OUTCOME_TOTAL = Counter(
    "kafka_outbound_outcome_total",
    "Resolved publish outcomes",
    ["topic", "outcome"],
)

SEND_LATENCY_MS = Histogram(
    "kafka_outbound_send_latency_ms",
    "Time from dispatch to outcome resolution in milliseconds",
    ["topic"],
    buckets=[1, 2.5, 5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000],
)

SYNC_TIMEOUT_TOTAL = Counter(
    "kafka_outbound_sync_timeout_total",
    "Sync-mode waits that exceeded the send timeout",
    ["topic"],
)


class MetricsRegistry:
    """Centralized access to the adapter's metrics."""

    dispatch_total = DISPATCH_TOTAL
    outcome_total = OUTCOME_TOTAL
    send_latency_ms = SEND_LATENCY_MS
    sync_timeout_total = SYNC_TIMEOUT_TOTAL


# Singleton instance
metrics_registry = MetricsRegistry()
