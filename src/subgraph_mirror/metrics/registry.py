"""
Metric registry using prometheus_client.

Provides pre-defined metrics for the subgraph mirror.
Exposes metrics in Prometheus text format via the /metrics endpoint.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Dedicated registry: keeps default Python process metrics out of the output.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Mirror State
# -----------------------------------------------------------------------------

checkpoint = Gauge(
    "mirror_checkpoint",
    "Last synchronized block number",
    registry=REGISTRY,
)

cache_records = Gauge(
    "mirror_cache_records",
    "Records held across all cached collections",
    registry=REGISTRY,
)

sync_in_flight = Gauge(
    "mirror_sync_in_flight",
    "1 while an incremental sync attempt is running",
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Sync Attempts
# -----------------------------------------------------------------------------

sync_attempts = Counter(
    "mirror_sync_attempts_total",
    "Incremental sync attempts started",
    registry=REGISTRY,
)

sync_failures = Counter(
    "mirror_sync_failures_total",
    "Incremental sync attempts that failed",
    registry=REGISTRY,
)

sync_skipped = Counter(
    "mirror_sync_skipped_total",
    "Sync triggers skipped because an attempt was in flight",
    registry=REGISTRY,
)

records_added = Counter(
    "mirror_records_added_total",
    "New records merged from deltas",
    registry=REGISTRY,
)

sync_duration = Histogram(
    "mirror_sync_seconds",
    "Incremental sync attempt duration",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
