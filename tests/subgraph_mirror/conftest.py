"""
Shared pytest fixtures for subgraph mirror tests.

Provides the components most tests wire together.
"""

from __future__ import annotations

import pytest

from subgraph_mirror.cache import CacheStore
from subgraph_mirror.progress import ProgressTracker
from subgraph_mirror.sync import SyncDriver
from tests.subgraph_mirror.helpers import FakeClock, MockSource


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock shared by every component."""
    return FakeClock()


@pytest.fixture
def tracker(clock: FakeClock) -> ProgressTracker:
    """Uninitialized tracker on the fake clock."""
    return ProgressTracker(time_fn=clock)


@pytest.fixture
def store(clock: FakeClock) -> CacheStore:
    """Empty cache on the fake clock."""
    return CacheStore(time_fn=clock)


@pytest.fixture
def source() -> MockSource:
    """Remote source with nothing queued."""
    return MockSource()


@pytest.fixture
def driver(
    tracker: ProgressTracker,
    store: CacheStore,
    source: MockSource,
    clock: FakeClock,
) -> SyncDriver:
    """Sync driver over the tracker, cache and mock source."""
    return SyncDriver(tracker=tracker, store=store, source=source, interval=30.0, time_fn=clock)
