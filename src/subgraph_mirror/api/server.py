"""
Read-only HTTP API over the mirrored cache.

Routes
------
- /health - Health report (503 when any check fails)
- /status - Driver, tracker and cache status
- /metrics - Prometheus scrape endpoint
- /api/entities/{kind}[/{id}] - Cached records
- /api/tokens/{id}/price, /api/tokens/{id}/history - Token price series
- /api/stats/cache - Cache metadata
- /api/admin/refresh, /api/admin/update - Administrative triggers

Read routes answer 503 with `ready: false` until the first full load
completes, so a partially loaded cache is never served.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from aiohttp import web

from subgraph_mirror.sync import SyncDriver

from .endpoints.common import DRIVER_KEY
from .routes import ROUTES

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3001
"""Port the API listens on unless configured otherwise."""


@web.middleware
async def _log_requests(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Log every request at debug level."""
    logger.debug("%s %s from %s", request.method, request.path_qs, request.remote)
    return await handler(request)


@dataclass(frozen=True, slots=True)
class ApiServerConfig:
    """Where and whether the API listens."""

    host: str = "0.0.0.0"
    """Bind address."""

    port: int = DEFAULT_PORT
    """TCP port."""

    enabled: bool = True
    """If False, `start` does nothing."""


def create_app(driver: SyncDriver | None = None) -> web.Application:
    """Build the aiohttp application with every route registered."""
    app = web.Application(middlewares=[_log_requests])
    if driver is not None:
        app[DRIVER_KEY] = driver
    app.add_routes([web.route(method, path, handler) for method, path, handler in ROUTES])
    return app


@dataclass(slots=True)
class ApiServer:
    """
    HTTP front end of the mirror.

    The server holds no data of its own. Every handler reads through the sync
    driver bound at construction.
    """

    config: ApiServerConfig
    """Bind address and enable flag."""

    driver: SyncDriver | None = None
    """Sync driver whose cache is served. Read routes answer 503 while None."""

    _runner: web.AppRunner | None = field(default=None, init=False)
    """Application runner, present while listening."""

    _closed: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    """Set once the listener has been torn down."""

    @property
    def running(self) -> bool:
        """Whether the server is accepting connections."""
        return self._runner is not None

    async def start(self) -> None:
        """Bind and start listening. No-op if disabled or already running."""
        if not self.config.enabled:
            logger.info("API server is disabled")
            return
        if self._runner is not None:
            return

        runner = web.AppRunner(create_app(self.driver), access_log=None)
        await runner.setup()
        await web.TCPSite(runner, self.config.host, self.config.port).start()

        self._runner = runner
        self._closed.clear()
        logger.info("API server listening on http://%s:%d", self.config.host, self.config.port)

    async def run(self) -> None:
        """Start, then block until the server is closed."""
        await self.start()
        if self._runner is not None:
            await self._closed.wait()

    def stop(self) -> None:
        """Schedule `aclose` on the running loop."""
        if self._runner is not None:
            asyncio.create_task(self.aclose())

    async def aclose(self) -> None:
        """Stop listening and release the runner. Safe to call twice."""
        runner, self._runner = self._runner, None
        if runner is None:
            return

        await runner.cleanup()
        self._closed.set()
        logger.info("API server stopped")
