"""
Mirror node orchestrator.

Wires the tracker, cache, subgraph client, sync driver and API server
together and runs them until shutdown.

Startup order matters:

1. Import tracker state from the previous run (if any). Informational only:
   the full load that follows is authoritative.
2. Full load. Nothing is served before it completes; a failure aborts startup.
3. Start the incremental schedule.
4. Start the API server.

Shutdown reverses it, then exports tracker state for the next run.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from subgraph_mirror.api import ApiServer, ApiServerConfig
from subgraph_mirror.cache import CacheStore
from subgraph_mirror.progress import ProgressTracker
from subgraph_mirror.source import DEFAULT_PAGE_SIZE, SourceConfig, SubgraphClient
from subgraph_mirror.sync import DEFAULT_UPDATE_INTERVAL, SyncDriver

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NodeConfig:
    """Configuration for a mirror node."""

    source: SourceConfig
    """Subgraph endpoint and retry policy."""

    api_config: ApiServerConfig | None = field(default=None)
    """Optional API server configuration. If None, the API server is disabled."""

    interval: float = DEFAULT_UPDATE_INTERVAL
    """Seconds between incremental syncs."""

    page_size: int = DEFAULT_PAGE_SIZE
    """Rows per collection requested by the full load."""

    state_file: Path | None = field(default=None)
    """
    Optional path for tracker state across restarts.

    Read at startup and written at shutdown. Best effort in both directions.
    """

    time_fn: Callable[[], float] = field(default=time.time)
    """Time source (injectable for deterministic testing)."""

    transport: httpx.AsyncBaseTransport | None = field(default=None)
    """Optional HTTP transport override for the subgraph client."""


@dataclass(slots=True)
class Node:
    """
    Mirror node orchestrator.

    Owns one instance of every component. Nothing is shared through module
    globals.
    """

    tracker: ProgressTracker
    """Last synchronized block height."""

    store: CacheStore
    """Mirrored entities."""

    client: SubgraphClient
    """HTTP client for the subgraph."""

    driver: SyncDriver
    """Full load and incremental sync orchestration."""

    api_server: ApiServer | None = field(default=None)
    """Optional API server."""

    state_file: Path | None = field(default=None)
    """Where tracker state is imported from and exported to."""

    _shutdown: asyncio.Event = field(default_factory=asyncio.Event)
    """Event signaling shutdown request."""

    @classmethod
    def from_config(cls, config: NodeConfig) -> Node:
        """
        Build every component from configuration.

        The tracker, cache and driver share the configured clock. The API
        server is created only when an enabled API configuration is given.
        """
        tracker = ProgressTracker(time_fn=config.time_fn)
        store = CacheStore(time_fn=config.time_fn)
        client = SubgraphClient(config.source, transport=config.transport)
        driver = SyncDriver(
            tracker=tracker,
            store=store,
            source=client,
            interval=config.interval,
            page_size=config.page_size,
            time_fn=config.time_fn,
        )

        api_server = None
        if config.api_config is not None and config.api_config.enabled:
            api_server = ApiServer(config=config.api_config, driver=driver)

        return cls(
            tracker=tracker,
            store=store,
            client=client,
            driver=driver,
            api_server=api_server,
            state_file=config.state_file,
        )

    async def run(self, *, install_signal_handlers: bool = True) -> None:
        """
        Run until shutdown.

        Args:
            install_signal_handlers: Route SIGINT and SIGTERM to `stop`.
                Tests and embedded callers pass False.

        Raises:
            RuntimeError: If the initial full load fails.
        """
        if install_signal_handlers:
            self._install_signal_handlers()

        if self.state_file is not None and self.tracker.load(self.state_file):
            logger.info("Resuming from saved block %d", self.tracker.current())

        try:
            if not await self.driver.initialize():
                raise RuntimeError(f"Initial cache load failed: {self.driver.stats.last_error}")

            self.driver.start_schedule()
            if self.api_server is not None:
                await self.api_server.start()

            await self._shutdown.wait()
            logger.info("Shutdown requested")
        finally:
            await self._teardown()

    async def _teardown(self) -> None:
        """Stop every component and export tracker state."""
        await self.driver.close()
        if self.api_server is not None:
            await self.api_server.aclose()
        if self.state_file is not None and self.tracker.current() > 0:
            self.tracker.save(self.state_file)
        await self.client.close()
        logger.info("Node stopped")

    def _install_signal_handlers(self) -> None:
        """Make SIGINT and SIGTERM request shutdown, where the loop supports it."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except (ValueError, RuntimeError, NotImplementedError):
                # Not the main thread, or a loop without signal support.
                logger.debug("Signal handler for %s not installed", sig.name)

    def stop(self) -> None:
        """Ask `run` to tear everything down and return."""
        self._shutdown.set()

    @property
    def is_running(self) -> bool:
        """Whether shutdown has not been requested yet."""
        return not self._shutdown.is_set()

