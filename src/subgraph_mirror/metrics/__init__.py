"""
Metrics module for observability.

Provides counters, gauges, and histograms tracking sync progress and cache size.
Exposes metrics in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    cache_records,
    checkpoint,
    generate_metrics,
    records_added,
    sync_attempts,
    sync_duration,
    sync_failures,
    sync_in_flight,
    sync_skipped,
)

__all__ = [
    "REGISTRY",
    "cache_records",
    "checkpoint",
    "generate_metrics",
    "records_added",
    "sync_attempts",
    "sync_duration",
    "sync_failures",
    "sync_in_flight",
    "sync_skipped",
]
