"""
Sync driver: keeps the cache in step with the subgraph.

The Core Loop
-------------
1. **Full load** once: fetch every entity kind, fill the cache, record the
   block height the snapshot was read at.
2. **Incremental sync** on a fixed cadence: ask for everything changed after
   the recorded block, merge it, move the recorded block forward.

Merging happens before the checkpoint advances. If the process dies between
the two, the next attempt refetches the same delta, which the cache absorbs
idempotently. The reverse order could skip a delta for good.

Overlap
-------
At most one incremental attempt runs at a time. The in-flight flag is
checked and set before the first `await` in `sync_once`, so on a single event
loop no second trigger (scheduled tick or manual request) can slip between
the check and the set. Overlapping triggers are skipped, never queued.

Failures
--------
Scheduled failures never stop the schedule or escape `sync_once`. They are
counted in `SyncStats` and surface through `status()` and `health_report()`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from time import time as wall_time

from subgraph_mirror import metrics
from subgraph_mirror.cache import CacheStats, CacheStore
from subgraph_mirror.progress import ProgressTracker, TrackerStatus
from subgraph_mirror.source import DEFAULT_PAGE_SIZE, RemoteSource, SourcePayload
from subgraph_mirror.types import CamelModel

from .config import DEFAULT_UPDATE_INTERVAL, DELAY_FACTOR
from .states import SyncState

logger = logging.getLogger(__name__)


class SyncStats(CamelModel):
    """Counters for incremental sync attempts."""

    total_attempts: int = 0
    """Attempts that were not skipped for overlap."""

    successes: int = 0
    """Attempts that completed, including those that found no new blocks."""

    failures: int = 0
    """Attempts that raised and were recorded as failed."""

    skipped: int = 0
    """Triggers dropped because another attempt was in flight."""

    last_success_time: float | None = None
    """When the last attempt succeeded."""

    last_error: str | None = None
    """Message of the most recent failure, cleared by the next success."""


class SyncStatus(CamelModel):
    """Aggregate snapshot of the driver, the tracker and the cache."""

    state: str
    initialized: bool
    in_flight: bool
    scheduled: bool
    interval: float
    checkpoint: int
    tracker: TrackerStatus
    cache: CacheStats
    stats: SyncStats


class HealthReport(CamelModel):
    """Overall health with every failing check listed."""

    healthy: bool
    issues: list[str]
    status: SyncStatus
    timestamp: float


@dataclass(slots=True)
class SyncDriver:
    """
    Orchestrates full loads and incremental syncs.

    The driver owns no data. It moves payloads from the remote source into
    the cache and checkpoints into the tracker, in that order.
    """

    tracker: ProgressTracker
    """Last synchronized block height."""

    store: CacheStore
    """Cache receiving full loads and deltas."""

    source: RemoteSource
    """Where payloads come from."""

    interval: float = DEFAULT_UPDATE_INTERVAL
    """Seconds between scheduled incremental syncs."""

    page_size: int = DEFAULT_PAGE_SIZE
    """Rows per collection requested by the full load."""

    time_fn: Callable[[], float] = wall_time
    """Time source function (injectable for testing)."""

    stats: SyncStats = field(default_factory=SyncStats)
    """Attempt counters."""

    _state: SyncState = field(default=SyncState.UNINITIALIZED, init=False)
    """Current state machine state."""

    _in_flight: bool = field(default=False, init=False)
    """Whether an incremental attempt is running."""

    _idle: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    """Set whenever no incremental attempt is running."""

    _ticker: asyncio.Task[None] | None = field(default=None, init=False)
    """Schedule task. None while the schedule is stopped."""

    _attempts: set[asyncio.Task[bool]] = field(default_factory=set, init=False)
    """Attempts spawned by the schedule that have not finished."""

    def __post_init__(self) -> None:
        """Start with no attempt in flight."""
        self._idle.set()

    @property
    def state(self) -> SyncState:
        """Current state machine state."""
        return self._state

    @property
    def in_flight(self) -> bool:
        """Whether an incremental attempt is running."""
        return self._in_flight

    @property
    def scheduled(self) -> bool:
        """Whether the periodic schedule is running."""
        return self._ticker is not None and not self._ticker.done()

    def _transition_to(self, new_state: SyncState) -> None:
        """
        Move the state machine.

        Raises:
            ValueError: If the transition is not allowed.
        """
        if not self._state.can_transition_to(new_state):
            raise ValueError(f"Invalid state transition: {self._state.name} -> {new_state.name}")
        self._state = new_state

    def publish_gauges(self) -> None:
        """Set the checkpoint and cache size gauges from current state."""
        metrics.checkpoint.set(float(self.tracker.current()))
        metrics.cache_records.set(float(self.store.total_record_count()))

    # -------------------------------------------------------------------------
    # Full load
    # -------------------------------------------------------------------------

    async def initialize(self) -> bool:
        """
        Fill the cache from a full snapshot and record its block height.

        A snapshot without a block height still fills the cache. Progress
        tracking then stays at zero and incremental syncs are refused until
        a refresh succeeds.

        Returns:
            True if the cache was loaded. False if the fetch failed or the
            driver was not uninitialized.
        """
        if not self._state.can_transition_to(SyncState.INITIALIZING):
            logger.warning("Cannot initialize from state %s", self._state.name)
            return False

        self._transition_to(SyncState.INITIALIZING)
        logger.info("Initializing cache with full data load...")

        try:
            payload = await self.source.fetch_full(self.page_size)
            self.store.load_full(payload)
        except Exception as e:
            logger.error("Failed to initialize cache: %s", e)
            self.stats.last_error = str(e)
            self._transition_to(SyncState.UNINITIALIZED)
            return False

        self._adopt_checkpoint(payload)
        self._transition_to(SyncState.IDLE)
        self.publish_gauges()

        logger.info("Cache initialization completed at block %d", self.tracker.current())
        return True

    def _adopt_checkpoint(self, payload: SourcePayload) -> None:
        """
        Point the tracker at the snapshot's block height.

        The tracker may already hold an imported checkpoint from a previous
        run. The fresh snapshot wins: it moves the tracker forward, or resets
        it if the imported value is ahead of what the snapshot saw.
        """
        checkpoint = payload.checkpoint
        if checkpoint is None:
            logger.warning("No block number in initial data, progress tracking disabled")
            return

        current = self.tracker.current()
        if current == 0:
            if not self.tracker.initialize(checkpoint):
                logger.warning("Initial block number %r rejected", checkpoint)
            return

        if checkpoint >= current:
            self.tracker.advance(checkpoint)
            return

        logger.warning(
            "Imported block %d is ahead of snapshot block %d, resetting tracker",
            current,
            checkpoint,
        )
        self.tracker.reset()
        self.tracker.initialize(checkpoint)

    # -------------------------------------------------------------------------
    # Incremental sync
    # -------------------------------------------------------------------------

    async def sync_once(self) -> bool:
        """
        Run one guarded incremental attempt.

        Returns:
            True if the attempt completed, including when the subgraph had
            no new blocks. False if it was skipped for overlap, refused
            because the cache was never initialized, or failed.
        """
        # Check and set with no await in between.
        if self._in_flight:
            logger.debug("Update already in progress, skipping")
            self.stats.skipped += 1
            metrics.sync_skipped.inc()
            return False

        self._in_flight = True
        self._idle.clear()
        metrics.sync_in_flight.set(1)
        self.stats.total_attempts += 1
        metrics.sync_attempts.inc()

        try:
            with metrics.sync_duration.time():
                return await self._sync()
        finally:
            if self._state is SyncState.SYNCING:
                self._transition_to(SyncState.IDLE)
            self._in_flight = False
            self._idle.set()
            metrics.sync_in_flight.set(0)

    async def _sync(self) -> bool:
        if not self._state.is_initialized:
            logger.warning("Cache not initialized, cannot perform incremental update")
            return False

        since = self.tracker.current()
        if since == 0:
            logger.warning("Block tracker not initialized, cannot perform incremental update")
            return False

        self._transition_to(SyncState.SYNCING)
        logger.debug("Checking for updates since block %d", since)

        try:
            payload = await self.source.fetch_delta(since)

            latest = payload.checkpoint
            if latest is None:
                raise ValueError("No block number in update data")

            if latest <= since:
                logger.debug("No new blocks (at %d), skipping data update", since)
                self._record_success()
                return True

            added = self.store.merge_delta(payload)
            self.tracker.advance(latest)
        except Exception as e:
            self.stats.failures += 1
            self.stats.last_error = str(e)
            metrics.sync_failures.inc()
            logger.error("Update failed: %s", e)
            return False

        self._record_success()
        metrics.records_added.inc(added)
        self.publish_gauges()

        if added:
            logger.info("Update completed at block %d: %d new records added", latest, added)
        else:
            logger.debug("Update completed at block %d: no new records", latest)
        return True

    def _record_success(self) -> None:
        self.stats.successes += 1
        self.stats.last_success_time = self.time_fn()
        self.stats.last_error = None

    async def trigger_update(self) -> bool:
        """Manually request an incremental attempt."""
        logger.info("Manual update triggered")
        return await self.sync_once()

    # -------------------------------------------------------------------------
    # Schedule
    # -------------------------------------------------------------------------

    def start_schedule(self, interval: float | None = None) -> None:
        """
        Start periodic incremental syncs. No-op if already running.

        Args:
            interval: New cadence in seconds. Keeps the current one if None.
        """
        if self.scheduled:
            logger.debug("Auto updates already running")
            return

        if interval is not None:
            self.interval = interval

        self._ticker = asyncio.create_task(self._tick_loop(), name="sync-schedule")
        logger.info("Starting auto updates every %.1fs", self.interval)

    def stop(self) -> None:
        """
        Stop periodic incremental syncs. No-op if not running.

        An attempt already in flight runs to completion.
        """
        if self._ticker is None:
            return

        self._ticker.cancel()
        self._ticker = None
        logger.info("Auto updates stopped")

    async def _tick_loop(self) -> None:
        """
        Spawn an attempt on every tick of a fixed cadence.

        Deadlines are on the loop's monotonic clock and do not drift with
        attempt duration. An attempt that overruns makes the next tick skip.
        Ticks missed while the loop was blocked are dropped, not replayed.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.interval

        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))

            attempt = asyncio.create_task(self.sync_once())
            self._attempts.add(attempt)
            attempt.add_done_callback(self._attempts.discard)

            deadline += self.interval
            now = loop.time()
            if deadline < now:
                deadline = now + self.interval

    async def close(self) -> None:
        """Stop the schedule and wait for any attempt in flight."""
        ticker = self._ticker
        self.stop()
        if ticker is not None:
            try:
                await ticker
            except asyncio.CancelledError:
                pass

        if self._attempts:
            await asyncio.gather(*self._attempts)
        await self._idle.wait()

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    async def force_refresh(self) -> bool:
        """
        Drop the cache and reload it from scratch.

        Stops the schedule, waits for any attempt in flight, clears the
        cache, resets the tracker and initializes again. The schedule is
        restarted only if initialization succeeds.

        Returns:
            True if the reload succeeded.
        """
        logger.info("Performing force refresh...")

        if self._state is SyncState.INITIALIZING:
            logger.warning("Initialization already in progress, refresh refused")
            return False

        self.stop()
        await self._idle.wait()

        self.store.clear()
        self.tracker.reset()
        if self._state is SyncState.IDLE:
            self._transition_to(SyncState.UNINITIALIZED)
        self.publish_gauges()

        success = await self.initialize()
        if success:
            self.start_schedule()
            logger.info("Force refresh completed successfully")
        else:
            logger.error("Force refresh failed: %s", self.stats.last_error)
        return success

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def status(self) -> SyncStatus:
        """Aggregate snapshot of driver, tracker and cache state."""
        return SyncStatus(
            state=self._state.name,
            initialized=self.store.is_ready(),
            in_flight=self._in_flight,
            scheduled=self.scheduled,
            interval=self.interval,
            checkpoint=self.tracker.current(),
            tracker=self.tracker.status(),
            cache=self.store.stats(),
            stats=self.stats.model_copy(),
        )

    def health_report(self) -> HealthReport:
        """
        Evaluate every health check and list the failing ones.

        Checks are independent: all of them run even after one fails.
        """
        status = self.status()
        issues: list[str] = []

        if not self._state.is_initialized:
            issues.append("Cache not initialized")

        if not status.scheduled:
            issues.append("Auto updates disabled")

        if not self.tracker.healthy():
            issues.append("Block tracker unhealthy")

        if not self.store.is_ready():
            issues.append("Cache not ready")

        last_success = self.stats.last_success_time
        now = self.time_fn()
        if last_success is not None and now - last_success > self.interval * DELAY_FACTOR:
            issues.append("Updates are delayed")

        return HealthReport(healthy=not issues, issues=issues, status=status, timestamp=now)

    def is_healthy(self) -> bool:
        """Check that no health check fails."""
        return self.health_report().healthy
