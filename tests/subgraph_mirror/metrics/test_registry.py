"""Tests for the metric registry."""

from __future__ import annotations

from subgraph_mirror.metrics import REGISTRY, generate_metrics
from subgraph_mirror.source import TransportError
from subgraph_mirror.sync import SyncDriver
from tests.subgraph_mirror.helpers import MockSource, make_payload


def sample(name: str) -> float:
    """Current value of a sample, treating an absent one as zero."""
    return REGISTRY.get_sample_value(name) or 0.0


class TestGenerateMetrics:
    """Tests for the Prometheus text output."""

    def test_lists_mirror_metrics(self) -> None:
        """Every mirror metric is exposed."""
        output = generate_metrics().decode()

        for name in (
            "mirror_checkpoint",
            "mirror_cache_records",
            "mirror_sync_in_flight",
            "mirror_sync_attempts_total",
            "mirror_sync_failures_total",
            "mirror_sync_skipped_total",
            "mirror_records_added_total",
            "mirror_sync_seconds",
        ):
            assert name in output

    def test_excludes_process_metrics(self) -> None:
        """The dedicated registry carries no default collectors."""
        assert "process_cpu_seconds_total" not in generate_metrics().decode()


class TestSyncInstrumentation:
    """Tests for metrics updated by the sync driver."""

    async def test_successful_sync(self, driver: SyncDriver, source: MockSource) -> None:
        """A merge updates the gauges and counters."""
        source.full = [make_payload(100, sales=[{"id": "a"}])]
        source.deltas = [make_payload(120, sales=[{"id": "b"}, {"id": "c"}])]
        await driver.initialize()

        attempts = sample("mirror_sync_attempts_total")
        added = sample("mirror_records_added_total")
        timed = sample("mirror_sync_seconds_count")

        assert await driver.sync_once()

        assert sample("mirror_sync_attempts_total") == attempts + 1
        assert sample("mirror_records_added_total") == added + 2
        assert sample("mirror_sync_seconds_count") == timed + 1
        assert sample("mirror_checkpoint") == 120
        assert sample("mirror_cache_records") == 3
        assert sample("mirror_sync_in_flight") == 0

    async def test_failed_sync(self, driver: SyncDriver, source: MockSource) -> None:
        """A failure is counted."""
        source.full = [make_payload(100)]
        source.deltas = [TransportError("down")]
        await driver.initialize()

        failures = sample("mirror_sync_failures_total")

        assert not await driver.sync_once()

        assert sample("mirror_sync_failures_total") == failures + 1
